"""
The identifier rewrite pass shared by both variant-generation paths.

This is a structural substitution over identifiers, not a scope-aware rename: every identifier that is exactly equal to
the name being replaced is replaced, wherever it appears (names, attributes, parameters, keywords, definitions,
imports, ...). Literals and comments are never examined.
"""
import ast
import copy
from typing import List
from typing import Optional
from typing import TypeVar

from typing_extensions import cast

__all__ = ["replace_ident", "IdentifierRewriter"]

_NodeT = TypeVar("_NodeT", bound=ast.AST)


def replace_ident(tree: _NodeT, ident_from: str, ident_to: str) -> _NodeT:
    """
    Return a new tree of the same shape as `tree` where each identifier equal to `ident_from` has become `ident_to`.
    Position info is carried over unchanged and the given tree is left untouched.
    """
    return cast(_NodeT, IdentifierRewriter(ident_from, ident_to).visit(copy.deepcopy(tree)))


class IdentifierRewriter(ast.NodeTransformer):
    """Rewrites nodes in place. Use `replace_ident()` unless the tree is already a private copy"""

    ident_from: str
    ident_to: str

    def __init__(self, ident_from: str, ident_to: str) -> None:
        self.ident_from = ident_from
        self.ident_to = ident_to

    def swap(self, ident: Optional[str]) -> Optional[str]:
        return self.ident_to if ident == self.ident_from else ident

    def swap_all(self, idents: List[str]) -> List[str]:
        return [self.ident_to if i == self.ident_from else i for i in idents]

    def visit_Name(self, node: ast.Name) -> ast.AST:
        node.id = cast(str, self.swap(node.id))
        return node

    def visit_Attribute(self, node: ast.Attribute) -> ast.AST:
        node.attr = cast(str, self.swap(node.attr))
        return self.generic_visit(node)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.AST:
        node.name = cast(str, self.swap(node.name))
        return self.generic_visit(node)

    visit_AsyncFunctionDef = visit_FunctionDef
    visit_ClassDef = visit_FunctionDef

    def visit_arg(self, node: ast.arg) -> ast.AST:
        node.arg = cast(str, self.swap(node.arg))
        return self.generic_visit(node)

    def visit_keyword(self, node: ast.keyword) -> ast.AST:
        # arg is None for `**kwargs` style keywords
        node.arg = self.swap(node.arg)
        return self.generic_visit(node)

    def visit_alias(self, node: ast.alias) -> ast.AST:
        node.name = cast(str, self.swap(node.name))
        node.asname = self.swap(node.asname)
        return node

    def visit_Global(self, node: ast.Global) -> ast.AST:
        node.names = self.swap_all(node.names)
        return node

    visit_Nonlocal = visit_Global

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> ast.AST:
        node.name = self.swap(node.name)
        return self.generic_visit(node)

    # Capture names in `match` statements (Python 3.10+)
    def visit_MatchAs(self, node: ast.AST) -> ast.AST:
        setattr(node, "name", self.swap(getattr(node, "name")))
        return self.generic_visit(node)

    visit_MatchStar = visit_MatchAs

    def visit_MatchMapping(self, node: ast.AST) -> ast.AST:
        setattr(node, "rest", self.swap(getattr(node, "rest")))
        return self.generic_visit(node)

    def visit_MatchClass(self, node: ast.AST) -> ast.AST:
        setattr(node, "kwd_attrs", self.swap_all(getattr(node, "kwd_attrs")))
        return self.generic_visit(node)
