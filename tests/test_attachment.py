"""
Test variations of ways to use the `@dual` decorator on different kinds of functions. Each of these works on a real
module file, since the decorator needs to read the source of what it decorates.
"""
import asyncio
import inspect
import logging
from types import ModuleType
from typing import Callable

import pytest
from _pytest.logging import LogCaptureFixture

from python_dual_variant import dual
from python_dual_variant.errors import UnsupportedItemError
from python_dual_variant.errors import UnsupportedMarkerPayloadError

ModuleFactory = Callable[[str], ModuleType]

SAMPLE_MODULE = '''\
"""Functions and methods in both flavors"""
import asyncio

from python_dual_variant import dual, _await

calls = []


def double(x):
    calls.append("double")
    return 2 * x


async def double_async(x):
    calls.append("double_async")
    await asyncio.sleep(0)
    return 2 * x


@dual
def quadruple(x):
    return _await(double(_await(double(x))))


class Repository:
    def __init__(self):
        self.rows = {}

    def load(self, key):
        return self.rows.get(key)

    async def load_async(self, key):
        await asyncio.sleep(0)
        return self.rows.get(key)

    @dual
    def describe(self, key):
        # a comment in the body
        row = _await(self.load(key))
        return f"{key}={row}"

    @dual
    @staticmethod
    def label(x):
        return _await(double(x))

    @dual
    @classmethod
    def build(cls, rows):
        repo = cls()
        repo.rows.update(rows)
        return repo
'''


def test_attach_to_function(make_module: ModuleFactory) -> None:
    module = make_module(SAMPLE_MODULE)

    assert module.quadruple(3) == 12
    assert module.calls == ["double", "double"]
    assert not inspect.iscoroutinefunction(module.quadruple)

    module.calls.clear()
    assert inspect.iscoroutinefunction(module.quadruple_async)
    assert asyncio.run(module.quadruple_async(3)) == 12
    assert module.calls == ["double_async", "double_async"]


def test_generated_code_points_at_original_source(make_module: ModuleFactory) -> None:
    module = make_module(SAMPLE_MODULE)
    def_line = SAMPLE_MODULE.splitlines().index("def quadruple(x):") + 1
    for func in (module.quadruple, module.quadruple_async):
        assert func.__code__.co_filename == module.__file__
        assert func.__code__.co_firstlineno == def_line
    assert module.quadruple_async.__qualname__ == "quadruple_async"


def test_attach_to_method(make_module: ModuleFactory) -> None:
    module = make_module(SAMPLE_MODULE)
    repo = module.Repository()
    repo.rows["a"] = 1

    assert repo.describe("a") == "a=1"
    assert asyncio.run(repo.describe_async("a")) == "a=1"
    assert inspect.iscoroutinefunction(module.Repository.describe_async)
    assert module.Repository.describe.__qualname__ == "Repository.describe"
    assert module.Repository.describe_async.__qualname__ == "Repository.describe_async"


def test_attach_to_staticmethod(make_module: ModuleFactory) -> None:
    module = make_module(SAMPLE_MODULE)
    assert isinstance(inspect.getattr_static(module.Repository, "label_async"), staticmethod)
    assert module.Repository.label(2) == 4
    assert module.Repository().label(2) == 4
    assert asyncio.run(module.Repository.label_async(2)) == 4


def test_attach_to_classmethod(make_module: ModuleFactory) -> None:
    module = make_module(SAMPLE_MODULE)
    repo = module.Repository.build({"a": 1})
    assert isinstance(repo, module.Repository) and repo.rows == {"a": 1}

    repo = asyncio.run(module.Repository.build_async({"b": 2}))
    assert isinstance(repo, module.Repository) and repo.rows == {"b": 2}


def test_attach_to_local_function(make_module: ModuleFactory) -> None:
    """Functions defined inside another function work as long as they don't close over anything"""
    module = make_module(
        """\
        from python_dual_variant import dual, _await


        def fetch(x):
            return x


        async def fetch_async(x):
            return -x


        def make():
            @dual
            def run(x):
                return _await(fetch(x))

            return run
        """
    )
    run = module.make()
    assert run(2) == 2
    assert module.run_async.__qualname__ == "make.<locals>.run_async"


def test_not_a_function() -> None:
    with pytest.raises(UnsupportedItemError, match="only be applied to a function definition"):
        dual(42)  # type: ignore


def test_class_is_rejected(make_module: ModuleFactory) -> None:
    with pytest.raises(UnsupportedItemError, match="only be applied to a function definition") as exc_info:
        make_module(
            """\
            from python_dual_variant import dual


            @dual
            class Thing:
                pass
            """
        )
    assert exc_info.value.lineno == 5
    assert exc_info.value.filename is not None and exc_info.value.filename.endswith(".py")


def test_closure_is_rejected() -> None:
    factor = 3

    with pytest.raises(UnsupportedItemError, match="enclosing scope"):

        @dual
        def scale(x: int) -> int:
            return x * factor


def test_bad_payload_aborts_the_module(make_module: ModuleFactory) -> None:
    with pytest.raises(UnsupportedMarkerPayloadError, match="function or method call") as exc_info:
        make_module(
            """\
            from python_dual_variant import dual, _await


            @dual
            def answer():
                return _await(42)
            """
        )
    assert exc_info.value.lineno == 6


def test_decorator_under_another_name(make_module: ModuleFactory) -> None:
    with pytest.raises(UnsupportedItemError, match="Could not find"):
        make_module(
            """\
            from python_dual_variant import dual as both


            @both
            def f():
                pass
            """
        )


PRIVATE_MODULE = '''\
from python_dual_variant import dual, _await


class Store:
    LIMIT = 3

    def __init__(self):
        self.__rows = {"a": 1}

    def load(self, key):
        return key

    async def load_async(self, key):
        return key.upper()

    def rows(self, n):
        return list(range(n))

    async def rows_async(self, n):
        return list(range(n, 0, -1))

    @dual
    def get(self, key):
        return _await(self.load(key)), self.__rows[key]

    @dual
    def __fetch(self):
        return _await(self.load("x"))

    @dual
    def run(self):
        return _await(self.__fetch())

    @dual
    def head(self, n=LIMIT):
        return _await(self.rows(n))
'''


def test_method_reads_private_attribute(make_module: ModuleFactory) -> None:
    store = make_module(PRIVATE_MODULE).Store()
    assert store.get("a") == ("a", 1)
    assert asyncio.run(store.get_async("a")) == ("A", 1)


def test_private_method(make_module: ModuleFactory) -> None:
    module = make_module(PRIVATE_MODULE)
    assert "_Store__fetch" in vars(module.Store)
    assert "_Store__fetch_async" in vars(module.Store)
    assert module.Store().run() == "x"
    assert asyncio.run(module.Store().run_async()) == "X"


def test_method_default_from_class_body(make_module: ModuleFactory) -> None:
    store = make_module(PRIVATE_MODULE).Store()
    assert store.head() == [0, 1, 2]
    assert asyncio.run(store.head_async()) == [3, 2, 1]


def test_failure_while_declaring(make_module: ModuleFactory) -> None:
    """Defaults are evaluated a second time when the members are declared"""
    with pytest.raises(UnsupportedItemError, match="Declaring the variants of 'take' failed") as exc_info:
        make_module(
            """\
            from python_dual_variant import dual

            _defaults = [1]


            @dual
            def take(x=_defaults.pop()):
                return x
            """
        )
    assert exc_info.value.lineno == 7
    assert isinstance(exc_info.value.__cause__, IndexError)


def test_bad_payload_in_method_column(make_module: ModuleFactory) -> None:
    with pytest.raises(UnsupportedMarkerPayloadError) as exc_info:
        make_module(
            """\
            from python_dual_variant import dual, _await


            class Thing:
                @dual
                def answer(self):
                    return _await(42)
            """
        )
    assert exc_info.value.lineno == 7
    assert exc_info.value.col_offset == len("        return _await(")


def test_local_functions_share_module_async_name(make_module: ModuleFactory, caplog: LogCaptureFixture) -> None:
    """Local functions publish their async sibling in the module, so the most recent declaration wins"""
    module = make_module(
        """\
        from python_dual_variant import dual, _await


        def fetch(x):
            return x


        async def fetch_async(x):
            return -x


        def make_a():
            @dual
            def run(x):
                return _await(fetch(x))

            return run


        def make_b():
            @dual
            def run(x):
                return _await(fetch(x)) + 1

            return run
        """
    )
    module.make_a()
    with caplog.at_level(logging.WARNING, logger="python_dual_variant.main"):
        module.make_a()
        assert not caplog.records, "declaring the same local function again is not reported"
        run_b = module.make_b()

    assert "make_b.<locals>.run_async replaces make_a.<locals>.run_async" in caplog.text
    assert run_b(1) == 2
    assert asyncio.run(module.run_async(1)) == 0
