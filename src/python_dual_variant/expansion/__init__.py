"""
The expansion passes. Starting from a single annotated definition:

1. `expand_definition()` clones it into a blocking member and an async member, renaming the call marker in each one
   (using `replace_ident()`, the generic identifier rewrite).

2. `expand_markers()` then resolves each renamed marker into either a plain call or an awaited call to the async
   sibling of the callee.

`expand_source()` / `expand_tree()` run both passes over a whole module.
"""
from .definitions import expand_definition  # noreorder
from .markers import _await
from .markers import _await_async
from .markers import _await_sync
from .markers import await_async
from .markers import await_sync
from .markers import expand_markers
from .markers import Variant
from .rewriter import replace_ident
from .source import expand_source
from .source import expand_tree

__all__ = [
    "expand_definition",
    "expand_markers",
    "expand_source",
    "expand_tree",
    "replace_ident",
    "await_sync",
    "await_async",
    "Variant",
    "_await",
    "_await_sync",
    "_await_async",
]
