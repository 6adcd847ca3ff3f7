"""
Every failure during expansion is terminal: no partial output is produced. All errors raised by this package derive
from `DualVariantError` and carry the source position of the offending node, when one is known.
"""
from typing import Optional

from typing_extensions import Self

__all__ = [
    "DualVariantError",
    "UnsupportedItemError",
    "UnsupportedMarkerPayloadError",
    "MalformedInputError",
    "MarkerNotExpandedError",
]


class DualVariantError(Exception):
    message: str
    filename: Optional[str]
    lineno: Optional[int]
    col_offset: Optional[int]

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        lineno: Optional[int] = None,
        col_offset: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.lineno = lineno
        self.col_offset = col_offset

    def __str__(self) -> str:
        loc = ""
        if self.filename:
            loc += f"{self.filename}:"
        if self.lineno is not None:
            loc += f"{self.lineno}:"
        if self.col_offset is not None:
            loc += f"{self.col_offset}:"

        if loc:
            return f"{loc} {self.message}"
        return self.message

    def attach_filename(self, filename: Optional[str]) -> Self:
        """Expansion passes work on bare trees. Callers that know the file name fill it in on the way out"""
        if self.filename is None:
            self.filename = filename
        return self


class UnsupportedItemError(DualVariantError):
    """The definition annotation was applied to something other than a function or method definition"""


class UnsupportedMarkerPayloadError(DualVariantError):
    """A call marker wraps something other than a function or method call"""


class MalformedInputError(DualVariantError):
    """Source that does not parse, or a call marker that is not written as `marker(<call>)`"""

    @classmethod
    def from_syntax_error(cls, error: SyntaxError, filename: Optional[str] = None) -> Self:
        return cls(
            error.msg,
            filename=error.filename or filename,
            lineno=error.lineno,
            col_offset=error.offset - 1 if error.offset else None,
        )


class MarkerNotExpandedError(DualVariantError):
    """A call marker placeholder was evaluated at runtime, ie it was never expanded"""
