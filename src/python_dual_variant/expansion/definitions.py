"""
Expansion of one annotated definition into its Sibling Pair: the blocking member, which keeps the original name, and
the async member, which gets the async qualifier and a suffixed name. Both are emitted in that order, in place of the
original item.
"""
import ast
import copy
import logging
from typing import List
from typing import Optional
from typing import Union

from python_dual_variant.errors import UnsupportedItemError
from python_dual_variant.expansion.rewriter import replace_ident
from python_dual_variant.naming import DEFAULT_NAMING
from python_dual_variant.naming import NamingScheme
from python_dual_variant.parse.ast_util import node_position
from python_dual_variant.parse.ast_util import terminal_name

__all__ = ["FunctionNode", "expand_definition", "as_async", "decorator_index", "without_decorator"]

logger = logging.getLogger(__name__)

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


def expand_definition(node: ast.AST, naming: NamingScheme = DEFAULT_NAMING) -> List[FunctionNode]:
    """
    Given a function (or method) definition, return `[sync_member, async_member]`. Each is an independent copy and the
    given node is not modified.

    The marker is renamed to its sync or async flavor in the matching member. Markers are *not* expanded here, see
    `expand_markers()`.
    """
    if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        raise UnsupportedItemError(
            f"The decorator `@{naming.decorator}` can only be applied to a function definition.",
            **node_position(node),
        )

    sync_member = replace_ident(node, naming.marker, naming.sync_marker)

    async_member = as_async(replace_ident(node, naming.marker, naming.async_marker))
    async_member.name = naming.async_name(node.name)

    logger.debug("Expanded definition %s into %s and %s", node.name, sync_member.name, async_member.name)
    return [sync_member, async_member]


def as_async(node: FunctionNode) -> ast.AsyncFunctionDef:
    """Give a function definition the async qualifier. The result shares its children with the given node"""
    if isinstance(node, ast.AsyncFunctionDef):
        return node
    return ast.copy_location(ast.AsyncFunctionDef(**dict(ast.iter_fields(node))), node)


def decorator_index(node: ast.AST, naming: NamingScheme = DEFAULT_NAMING) -> Optional[int]:
    """Position of the definition annotation in the node's decorator list, or None if it is not decorated with it"""
    for i, decorator in enumerate(getattr(node, "decorator_list", [])):
        if terminal_name(decorator) == naming.decorator:
            return i
    return None


def without_decorator(node: ast.AST, index: int, drop_outer: bool = False) -> ast.AST:
    """
    Shallow copy of the node with the decorator at `index` removed. With `drop_outer`, the decorators written above it
    are removed as well.
    """
    decorators = getattr(node, "decorator_list")
    stripped = copy.copy(node)
    if drop_outer:
        setattr(stripped, "decorator_list", decorators[index + 1 :])
    else:
        setattr(stripped, "decorator_list", decorators[:index] + decorators[index + 1 :])
    return stripped
