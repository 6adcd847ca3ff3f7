import importlib.util
import sys
from functools import partial
from pathlib import Path
from types import ModuleType
from typing import Any
from typing import Optional
from typing import TypeVar

__all__ = ["not_optional", "import_module_from_file", "unwrap_function"]

_T = TypeVar("_T")


def not_optional(val: Optional[_T]) -> _T:
    """Raise TypeError if the given value is None"""
    if val is None:
        raise TypeError("Value cannot be None")
    return val


def import_module_from_file(module_name: str, module_file: Path) -> ModuleType:
    spec = not_optional(importlib.util.spec_from_file_location(module_name, str(module_file.absolute())))
    module = not_optional(importlib.util.module_from_spec(spec))
    sys.modules[module_name] = module
    not_optional(spec.loader).exec_module(module)
    return module


def unwrap_function(code: Any) -> Any:
    """Get at the plain function inside a partial, staticmethod or classmethod"""
    if isinstance(code, partial):
        return code.func
    elif isinstance(code, (staticmethod, classmethod)):
        return code.__func__
    return code
