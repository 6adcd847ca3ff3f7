"""
In this subpackage, we focus on turning source text into an AST and back again. The stock `ast` module drops comments,
so the `ast_comments` parser is used instead: its trees carry `Comment` nodes in statement lists, which lets a
source-to-source expansion hand back code that still has the author's comments in it.

Trees containing comments can not run through `compile()`. Use `strip_comments()` before compiling.
"""

from .ast_util import is_comment, node_position, parse, shift_columns, strip_comments, terminal_name, unparse

__all__ = ["is_comment", "node_position", "parse", "shift_columns", "strip_comments", "terminal_name", "unparse"]
