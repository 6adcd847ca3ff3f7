"""
Call markers are placeholders wrapping a call to a function which itself exists in a blocking and an async flavor.
Inside a dual definition, the author writes `_await(<call>)`. The definition expander renames that marker to
`_await_sync` in the blocking member and `_await_async` in the async member, and the expansion here then turns each
marker into the call it should actually be:

    _await_sync(self.get(x))   ->  self.get(x)
    _await_async(self.get(x))  ->  await self.get_async(x)

Which expansion applies is fixed by the marker's own name, so nothing is decided at runtime.
"""
import ast
import copy
import enum
import logging
from typing import Any
from typing import Callable
from typing import Mapping
from typing import NoReturn
from typing import Optional
from typing import TypeVar

from more_itertools import one
from typing_extensions import cast

from python_dual_variant.errors import MalformedInputError
from python_dual_variant.errors import MarkerNotExpandedError
from python_dual_variant.errors import UnsupportedMarkerPayloadError
from python_dual_variant.naming import DEFAULT_NAMING
from python_dual_variant.naming import NamingScheme
from python_dual_variant.parse.ast_util import node_position
from python_dual_variant.parse.ast_util import terminal_name

__all__ = [
    "Variant",
    "await_sync",
    "await_async",
    "expand_marker",
    "expand_markers",
    "MarkerExpander",
    "_await",
    "_await_sync",
    "_await_async",
]

logger = logging.getLogger(__name__)

_T = TypeVar("_T")
_NodeT = TypeVar("_NodeT", bound=ast.AST)


class Variant(enum.Enum):
    DIRECT = "sync"
    SUSPENDING = "async"

    @classmethod
    def from_marker(cls, ident: Optional[str], naming: NamingScheme = DEFAULT_NAMING) -> Optional["Variant"]:
        """Resolve the variant from a marker's name. None if the name is not one of the expanded markers"""
        if ident == naming.sync_marker:
            return cls.DIRECT
        elif ident == naming.async_marker:
            return cls.SUSPENDING
        return None


def await_sync(payload: ast.expr, naming: NamingScheme = DEFAULT_NAMING) -> ast.expr:
    """A blocking call needs no suspension point, and the callee already has the right name"""
    _ = naming
    return payload


def await_async(payload: ast.expr, naming: NamingScheme = DEFAULT_NAMING) -> ast.Await:
    """Retarget the call to the async sibling of its callee and await the result"""
    if not isinstance(payload, ast.Call):
        raise UnsupportedMarkerPayloadError(
            f"The marker `{naming.marker}` can only be applied to a function or method call.",
            **node_position(payload),
        )

    call = copy.deepcopy(payload)
    func = call.func
    if isinstance(func, ast.Attribute):
        # Covers both `receiver.method(...)` and `package.module.function(...)`: only the last segment changes
        func.attr = naming.async_name(func.attr)
    elif isinstance(func, ast.Name):
        func.id = naming.async_name(func.id)
    else:
        raise UnsupportedMarkerPayloadError(
            f"The marker `{naming.marker}` can only be applied to a method or explicit function call.",
            **node_position(payload),
        )

    return ast.copy_location(ast.Await(value=call), payload)


_EXPANDERS: Mapping[Variant, Callable[[ast.expr, NamingScheme], ast.expr]] = {
    Variant.DIRECT: await_sync,
    Variant.SUSPENDING: await_async,
}


def expand_marker(variant: Variant, payload: ast.expr, naming: NamingScheme = DEFAULT_NAMING) -> ast.expr:
    return _EXPANDERS[variant](payload, naming)


class MarkerExpander(ast.NodeTransformer):
    """
    Replace every expanded marker call in a tree. Children are visited before their parent, so a marker nested in the
    arguments of another marker's payload is expanded first.
    """

    naming: NamingScheme

    def __init__(self, naming: NamingScheme = DEFAULT_NAMING) -> None:
        self.naming = naming

    def visit_Call(self, node: ast.Call) -> Any:
        node = cast(ast.Call, self.generic_visit(node))
        marker_name = terminal_name(node.func)
        variant = Variant.from_marker(marker_name, self.naming)
        if variant is None:
            return node

        logger.debug("Expanding %s marker at line %s", variant.value, getattr(node, "lineno", "?"))
        return expand_marker(variant, self.marker_payload(node, cast(str, marker_name)), self.naming)

    @staticmethod
    def marker_payload(node: ast.Call, marker_name: str) -> ast.expr:
        malformed = MalformedInputError(
            f"The marker `{marker_name}` takes exactly one positional argument, the call to retarget.",
            **node_position(node),
        )
        if node.keywords:
            raise malformed
        return one(node.args, too_short=malformed, too_long=malformed)


def expand_markers(tree: _NodeT, naming: NamingScheme = DEFAULT_NAMING) -> _NodeT:
    """Return a copy of the tree with all `_await_sync(...)` / `_await_async(...)` markers expanded"""
    return cast(_NodeT, MarkerExpander(naming).visit(copy.deepcopy(tree)))


def _raise_not_expanded(marker_name: str) -> NoReturn:
    raise MarkerNotExpandedError(
        f"`{marker_name}(...)` was evaluated at runtime. It is only meaningful inside a function decorated with "
        f"`@dual`, or in source which has been run through `expand_source()`."
    )


# Runtime stand-ins for the markers, so that annotated source can import them and pass linters. After expansion, none
# of these are ever called.


def _await(call: _T) -> _T:
    _raise_not_expanded("_await")


def _await_sync(call: _T) -> _T:
    return call


def _await_async(call: _T) -> _T:
    _raise_not_expanded("_await_async")
