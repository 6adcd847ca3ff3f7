from ._version import version as __version__

__all__ = [
    "__version__",
    "dual",
    "DualVariantBuilder",
    "DualVariantPair",
    "NamingScheme",
    "expand_definition",
    "expand_markers",
    "expand_source",
    "expand_tree",
    "replace_ident",
    "Variant",
    "DualVariantError",
    "UnsupportedItemError",
    "UnsupportedMarkerPayloadError",
    "MalformedInputError",
    "MarkerNotExpandedError",
    "_await",
    "_await_sync",
    "_await_async",
]

from .errors import (
    DualVariantError,
    MalformedInputError,
    MarkerNotExpandedError,
    UnsupportedItemError,
    UnsupportedMarkerPayloadError,
)
from .expansion import (
    _await,
    _await_async,
    _await_sync,
    expand_definition,
    expand_markers,
    expand_source,
    expand_tree,
    replace_ident,
    Variant,
)
from .main import DualVariantBuilder, DualVariantPair, dual
from .naming import NamingScheme
