import ast
import copy
from typing import Any
from typing import Dict
from typing import Optional
from typing import TypeVar
from typing import Union

import ast_comments  # type: ignore
from typing_extensions import cast

from python_dual_variant.errors import MalformedInputError

_NodeT = TypeVar("_NodeT", bound=ast.AST)


def parse(source: Union[str, bytes], filename: str = "<unknown>", mode: str = "exec") -> ast.AST:
    """
    Replace the ast.parse method with one which picks up comments. A syntax error is reported as MalformedInputError
    pointing at the offending token.
    """
    try:
        return cast(ast.AST, ast_comments.parse(source, filename, mode))
    except SyntaxError as e:
        raise MalformedInputError.from_syntax_error(e, filename) from e


def unparse(ast_obj: ast.AST) -> str:
    """Write the tree out as source. Comment nodes come back out as comments"""
    return cast(str, ast_comments.unparse(ast_obj))


def is_comment(node: Any) -> bool:
    return isinstance(node, ast_comments.Comment)


class _StripComments(ast.NodeTransformer):
    def visit_Comment(self, node: ast.AST) -> None:
        return None


def strip_comments(tree: _NodeT) -> _NodeT:
    """
    Return a copy of the tree with all comment nodes dropped, so that it can be compiled. Comments only ever appear in
    statement lists which also hold at least one real statement, so no list is left empty by this.
    """
    return cast(_NodeT, _StripComments().visit(copy.deepcopy(tree)))


def node_position(node: ast.AST) -> Dict[str, Optional[int]]:
    """Extract the position of a node so it can be attached to a diagnostic"""
    return dict(
        lineno=getattr(node, "lineno", None),
        col_offset=getattr(node, "col_offset", None),
    )


def terminal_name(expr: ast.AST) -> Optional[str]:
    """
    The last identifier of a name or dotted path (e.g. 'dual' for both `dual` and `python_dual_variant.dual`).
    None for any other kind of expression.
    """
    if isinstance(expr, ast.Name):
        return expr.id
    elif isinstance(expr, ast.Attribute):
        return expr.attr
    return None


def shift_columns(tree: _NodeT, offset: int) -> _NodeT:
    """
    Move every node of the tree `offset` columns to the right, in place. This is the column counterpart of
    `ast.increment_lineno`, for source that was dedented before it was parsed.
    """
    for node in ast.walk(tree):
        if getattr(node, "col_offset", None) is not None:
            node.col_offset += offset  # type: ignore[attr-defined]
        if getattr(node, "end_col_offset", None) is not None:
            node.end_col_offset += offset  # type: ignore[attr-defined]
    return tree
