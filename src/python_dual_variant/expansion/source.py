"""
Source-to-source expansion of a whole module. Each `@dual` definition is replaced, in place, by its two members and
every expanded call marker in the module is then resolved. The result is plain Python which no longer depends on this
package at runtime.
"""
import ast
import copy
import logging
from typing import Any

from typing_extensions import cast

from python_dual_variant.errors import DualVariantError
from python_dual_variant.expansion.definitions import decorator_index
from python_dual_variant.expansion.definitions import expand_definition
from python_dual_variant.expansion.definitions import without_decorator
from python_dual_variant.expansion.markers import expand_markers
from python_dual_variant.naming import DEFAULT_NAMING
from python_dual_variant.naming import NamingScheme
from python_dual_variant.parse.ast_util import parse
from python_dual_variant.parse.ast_util import unparse

__all__ = ["expand_source", "expand_tree", "DualDefinitionExpander"]

logger = logging.getLogger(__name__)


class DualDefinitionExpander(ast.NodeTransformer):
    """Replace each annotated definition (at any depth, e.g. methods in a class body) with its Sibling Pair"""

    naming: NamingScheme

    def __init__(self, naming: NamingScheme = DEFAULT_NAMING) -> None:
        self.naming = naming

    def visit_FunctionDef(self, node: ast.FunctionDef) -> Any:
        node = cast(ast.FunctionDef, self.generic_visit(node))
        index = decorator_index(node, self.naming)
        if index is None:
            return node
        return expand_definition(without_decorator(node, index), self.naming)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_ClassDef(self, node: ast.ClassDef) -> Any:
        if decorator_index(node, self.naming) is not None:
            # Not a function definition, so this raises
            expand_definition(node, self.naming)
        return self.generic_visit(node)


def expand_tree(tree: ast.Module, naming: NamingScheme = DEFAULT_NAMING) -> ast.Module:
    """Expand all dual definitions and then all markers. The given tree is not modified"""
    expanded = DualDefinitionExpander(naming).visit(copy.deepcopy(tree))
    return ast.fix_missing_locations(expand_markers(expanded, naming))


def expand_source(source: str, filename: str = "<unknown>", naming: NamingScheme = DEFAULT_NAMING) -> str:
    """
    e.g:

    >>> expand_source('''
    ... @dual
    ... def get(self, key):
    ...     return _await(self.fetch(key))
    ... ''')

    Gives:

        def get(self, key):
            return self.fetch(key)

        async def get_async(self, key):
            return await self.fetch_async(key)

    Comments are kept. Any failure raises a DualVariantError, and no output is produced.
    """
    tree = parse(source, filename)
    assert isinstance(tree, ast.Module)
    try:
        result = unparse(expand_tree(tree, naming))
    except DualVariantError as e:
        e.attach_filename(filename)
        raise

    logger.debug("Expanded source of %s", filename)
    return result
