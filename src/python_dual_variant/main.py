import ast
import inspect
import logging
from typing import Any
from typing import Callable
from typing import ClassVar
from typing import Generic
from typing import List
from typing import Mapping
from typing import Optional
from typing import overload
from typing import Type
from typing import TypeVar

from python_dual_variant.errors import DualVariantError
from python_dual_variant.errors import UnsupportedItemError
from python_dual_variant.expansion.definitions import decorator_index
from python_dual_variant.expansion.definitions import expand_definition
from python_dual_variant.expansion.definitions import FunctionNode
from python_dual_variant.expansion.definitions import without_decorator
from python_dual_variant.expansion.markers import expand_markers
from python_dual_variant.naming import DEFAULT_NAMING
from python_dual_variant.naming import mangle
from python_dual_variant.naming import NamingScheme
from python_dual_variant.runner import DualStream
from python_dual_variant.util import unwrap_function

__all__ = ["DualVariantBuilder", "DualVariantPair", "dual"]

logger = logging.getLogger(__name__)

_S = TypeVar("_S")
_A = TypeVar("_A")
_T = TypeVar("_T")


class DualVariantPair(Generic[_S, _A]):
    """
    What a decorated *method* turns into while its class body is still being executed. As soon as the class is created,
    `__set_name__` installs both members on the class and this object is gone.
    """

    sync_member: _S
    async_member: _A
    async_name: str

    def __init__(self, sync_member: _S, async_member: _A, async_name: str) -> None:
        self.sync_member = sync_member
        self.async_member = async_member
        self.async_name = async_name

    def __set_name__(self, owner: type, name: str) -> None:
        setattr(owner, name, self.sync_member)
        setattr(owner, self.async_name, self.async_member)

    @overload
    def __get__(self, instance: None, owner: Type[_T]) -> "DualVariantPair[_S, _A]":
        ...

    @overload
    def __get__(self, instance: _T, owner: Optional[Type[_T]]) -> Any:
        ...

    def __get__(self, instance: Optional[Any], owner: Optional[Type[Any]] = None) -> Any:
        # Only reached when the pair was attached to a class after the fact, so `__set_name__` never ran
        if instance is None:
            return self
        return self.sync_member.__get__(instance, owner)  # type: ignore


class DualVariantBuilder:
    """
    Attach an instance of this class to a function or method as a decorator, and it will be replaced by two siblings:
    the original, blocking, function and an `async` version of it named with an `_async` suffix. e.g:

    >>> from python_dual_variant import dual, _await
    >>>
    >>> class Client:
    >>>     @dual
    >>>     def get(self, key):
    >>>         response = _await(self.transport.request("GET", key))
    >>>         return response.body

    gives `Client.get()`, which calls `self.transport.request(...)`, and `Client.get_async()`, which awaits
    `self.transport.request_async(...)`.

    The decorator re-reads the source of the function and executes two new definitions in the namespace of the module
    it came from. So:

    * the function must come from a source file (not from an interactive prompt or an `exec()` string)
    * it may not refer to variables from an enclosing function (closures, or a zero-argument `super()`)
    * on methods, `@dual` must be the outermost decorator. Decorators below it are applied to both members.
    * the async sibling of a function defined inside another function is published in the module globals, so two
      local functions of the same name share one `name_async` and the most recent declaration wins

    Methods are declared again inside a stand-in class of the same name, seeded with the class body executed so far.
    So private names (`self.__x`) are mangled as usual and class attributes can serve as defaults or decorators.

    The names used (marker, suffixes, decorator name) can be changed by subclassing and overriding `naming`.
    """

    naming: ClassVar[NamingScheme] = DEFAULT_NAMING

    def __init_subclass__(cls) -> None:
        super().__init_subclass__()
        if not isinstance(cls.naming, NamingScheme):
            raise TypeError(f"Class '{cls}' must define 'naming' as a NamingScheme instance, got {cls.naming!r}")

    def __call__(self, fn: Callable[..., Any]) -> Any:
        func = unwrap_function(fn)
        if not inspect.isfunction(func) and not inspect.isclass(func):
            raise UnsupportedItemError(
                f"The decorator `@{self.naming.decorator}` can only be applied to a function definition."
            )

        if inspect.isfunction(func) and func.__code__.co_freevars:
            raise UnsupportedItemError(
                f"'{func.__qualname__}' refers to variables of an enclosing scope "
                f"({', '.join(func.__code__.co_freevars)}), so its variants can not be generated.",
                filename=func.__code__.co_filename,
                lineno=func.__code__.co_firstlineno,
            )

        owner, _, _ = func.__qualname__.rpartition(".")
        class_name = owner.rpartition(".")[2] if owner and not owner.endswith("<locals>") else None

        stream = DualStream(func.__name__, fn)
        try:
            sync_member, async_member = self.expand(stream.definition)
            namespace = stream.add_new_functions(
                [sync_member, async_member],
                class_name=class_name,
                class_namespace=_class_namespace(owner) if class_name else None,
            )
        except DualVariantError as e:
            e.attach_filename(stream.filename)
            raise

        sync_obj = namespace[sync_member.name]
        async_obj = namespace[async_member.name]
        _set_qualname(sync_obj, func.__qualname__)
        _set_qualname(async_obj, f"{owner}.{async_member.name}" if owner else async_member.name)
        logger.debug("Generated %s and %s from %s", sync_member.name, async_member.name, func.__qualname__)

        if class_name is not None:
            return DualVariantPair(sync_obj, async_obj, mangle(class_name, async_member.name))

        # A plain function: its async sibling goes into the module, where calls from other generated bodies look for it
        previous = stream.namespace.get(async_member.name)
        if previous is not None and _qualname(previous) != _qualname(async_obj):
            logger.warning(
                "%s replaces %s in module %s",
                _qualname(async_obj),
                _qualname(previous),
                stream.namespace.get("__name__"),
            )
        stream.namespace[async_member.name] = async_obj
        return sync_obj

    def expand(self, definition: ast.stmt) -> List[FunctionNode]:
        """Produce the two members, with their markers resolved, from the parsed definition of the decorated object"""
        index = decorator_index(definition, self.naming)
        if index is not None:
            # Decorators above this one are still to be applied, by Python, to whatever this decorator returns
            definition = without_decorator(definition, index, drop_outer=True)
        elif getattr(definition, "decorator_list", None):
            raise UnsupportedItemError(
                f"Could not find `@{self.naming.decorator}` among the decorators of this definition. If the decorator is "
                f"bound to another name, set `naming` to match.",
                lineno=getattr(definition, "lineno", None),
            )

        return [expand_markers(member, self.naming) for member in expand_definition(definition, self.naming)]


def _set_qualname(obj: Any, qualname: str) -> None:
    target = getattr(obj, "__func__", obj)
    if inspect.isfunction(target):
        target.__qualname__ = qualname


def _qualname(obj: Any) -> Optional[str]:
    return getattr(getattr(obj, "__func__", obj), "__qualname__", None)


def _class_namespace(qualname: str) -> Optional[Mapping[str, Any]]:
    """
    The namespace of the class body named `qualname` that is being executed further up the stack, i.e. the class the
    decorated method is being declared in. None if there's no such frame (e.g. the decorator was applied by hand).
    """
    frame = inspect.currentframe()
    try:
        while frame is not None:
            if frame.f_code.co_name == qualname.rpartition(".")[2] and frame.f_locals.get("__qualname__") == qualname:
                return frame.f_locals
            frame = frame.f_back
        return None
    finally:
        del frame


dual = DualVariantBuilder()
"""The default definition annotation"""
