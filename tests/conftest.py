import sys
from pathlib import Path
from textwrap import dedent
from types import ModuleType
from typing import Callable
from typing import Generator
from typing import List

import pytest

from python_dual_variant.util import import_module_from_file

_module_counter = 1

ModuleFactory = Callable[[str], ModuleType]


@pytest.fixture
def make_module(tmp_path: Path) -> Generator[ModuleFactory, None, None]:
    """Write the given source to a new Python file and import it as a module"""
    module_names: List[str] = []

    def factory(source: str) -> ModuleType:
        global _module_counter
        module_name = f"temporary_module_{_module_counter}"
        _module_counter += 1
        module_file = tmp_path.joinpath(f"{module_name}.py")
        module_file.write_text(dedent(source))
        module_names.append(module_name)
        return import_module_from_file(module_name, module_file)

    yield factory

    for module_name in module_names:
        sys.modules.pop(module_name, None)
