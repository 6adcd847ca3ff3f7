import keyword
from dataclasses import dataclass

__all__ = ["NamingScheme", "DEFAULT_NAMING", "mangle"]


def _is_name(value: str) -> bool:
    return value.isidentifier() and not keyword.iskeyword(value)


@dataclass(frozen=True)
class NamingScheme:
    """
    The names shared by the definition expander and the call marker expander.

    Renaming is a plain substitution over the identifiers of a definition, it is not scope aware. So the marker name
    should be a sentinel which is unlikely to collide with anything else in user code.
    """

    marker: str = "_await"
    """The call marker as written by the author inside a dual definition"""

    sync_suffix: str = "_sync"
    """Appended to the marker inside the blocking member"""

    async_suffix: str = "_async"
    """Appended to the marker inside the async member, to the async member's name, and to callees in that member"""

    decorator: str = "dual"
    """Name of the definition annotation, as it appears in source (either `@dual` or `@some.module.dual`)"""

    def __post_init__(self) -> None:
        for name in ("marker", "decorator"):
            if not _is_name(getattr(self, name)):
                raise ValueError(f"{name} must be a valid Python identifier, got {getattr(self, name)!r}")
        for name in ("sync_suffix", "async_suffix"):
            suffix = getattr(self, name)
            if not suffix or not _is_name("x" + suffix):
                raise ValueError(f"{name} must be a non-empty identifier suffix, got {suffix!r}")
        if self.sync_suffix == self.async_suffix:
            raise ValueError("sync_suffix and async_suffix must differ")

    @property
    def sync_marker(self) -> str:
        return self.marker + self.sync_suffix

    @property
    def async_marker(self) -> str:
        return self.marker + self.async_suffix

    def async_name(self, name: str) -> str:
        return name + self.async_suffix


DEFAULT_NAMING = NamingScheme()


def mangle(class_name: str, name: str) -> str:
    """
    The name under which `name` is stored when it is declared inside the body of class `class_name`. Private names
    (`__x`, not ending in `__`) are prefixed with the class name, the way the compiler does it.
    """
    if not name.startswith("__") or name.endswith("__"):
        return name
    stripped = class_name.lstrip("_")
    if not stripped:
        return name
    return f"_{stripped}{name}"
