import __future__
import ast
import inspect
import logging
from textwrap import dedent
from typing import Any
from typing import Dict
from typing import Iterable
from typing import Mapping
from typing import MutableMapping
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Union

from more_itertools import one

from python_dual_variant.errors import DualVariantError
from python_dual_variant.errors import MalformedInputError
from python_dual_variant.errors import UnsupportedItemError
from python_dual_variant.naming import mangle
from python_dual_variant.parse import is_comment
from python_dual_variant.parse import parse
from python_dual_variant.parse import shift_columns
from python_dual_variant.parse import strip_comments
from python_dual_variant.util import unwrap_function

__all__ = ["DualStream"]

logger = logging.getLogger(__name__)

_FUTURE_FLAGS = 0
for _feature_name in __future__.all_feature_names:
    _FUTURE_FLAGS |= getattr(__future__, _feature_name).compiler_flag


class DualStream:
    """
    Take the source of a single definition and parse it. Keep track of the file and namespace the code came from and
    facilitate declaring new definitions in that same namespace.
    """

    name: str

    filename: Optional[str]
    """The filename, if applicable. This will be None if source was a raw string (e.g. in a test case)"""

    namespace: MutableMapping[str, Any]
    """
    Globals that new definitions are executed against: the defining module's globals for a function, otherwise
    whatever namespace was given (or an empty one)
    """

    source_ast: ast.Module
    """The parsed source, with line numbers matching the original file"""

    compile_flags: int
    """`from __future__` features in effect where the original was defined"""

    def __init__(
        self,
        name: str,
        code: Union[Any, str, Iterable[str]],
        namespace: Optional[MutableMapping[str, Any]] = None,
    ) -> None:
        self.name = name
        self.filename = None
        self.compile_flags = 0

        if isinstance(code, str):
            self.source_ast = self._parse(code)
            self.namespace = namespace if namespace is not None else {}
        elif callable(code) or isinstance(code, (staticmethod, classmethod)):
            func = unwrap_function(code)
            self.namespace = namespace if namespace is not None else getattr(func, "__globals__", {})
            code_object = getattr(func, "__code__", None)
            if code_object is not None:
                self.compile_flags = code_object.co_flags & _FUTURE_FLAGS

            try:
                self.filename = inspect.getsourcefile(func)
                lines, line_no = inspect.getsourcelines(func)
            except (OSError, TypeError) as e:
                raise UnsupportedItemError(
                    f"The source code of {name!r} is not available, so its variants can not be generated."
                ) from e

            source = dedent("".join(lines))
            # dedent removes the same margin from every line, so the first line shows how much was taken off
            margin = len(lines[0]) - len(source.splitlines(keepends=True)[0]) if lines else 0
            try:
                self.source_ast = self._parse(source, self.filename)
            except MalformedInputError as e:
                if e.lineno is not None:
                    e.lineno += line_no - 1
                if e.col_offset is not None:
                    e.col_offset += margin
                raise

            ast.increment_lineno(self.source_ast, line_no - 1)
            shift_columns(self.source_ast, margin)
        elif isinstance(code, Iterable):
            self.source_ast = self._parse("\n".join(code))
            self.namespace = namespace if namespace is not None else {}
        else:
            raise TypeError(f"Can not read source code from {code!r}")

    @staticmethod
    def _parse(source: str, filename: Optional[str] = None) -> ast.Module:
        tree = parse(source, filename or "<unknown>")
        assert isinstance(tree, ast.Module)
        return tree

    @property
    def definition(self) -> ast.stmt:
        """The one item the source consists of, e.g. the function definition"""
        error = MalformedInputError(
            f"Expected the source of {self.name!r} to hold exactly one item", filename=self.filename
        )
        return one((n for n in self.source_ast.body if not is_comment(n)), too_short=error, too_long=error)

    def add_new_functions(
        self,
        definitions: Sequence[ast.stmt],
        class_name: Optional[str] = None,
        class_namespace: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Take the given definitions and execute them within the namespace of the module the original came from. This
        ensures that, if the definitions make reference to names or globals imported or defined in the module, they
        will be able to run.

        The new objects are bound in a fresh local namespace (returned here, keyed by the names they were declared
        with) rather than in the module globals, so nothing in the module is overwritten. It is up to the caller to
        decide where they end up.

        With a `class_name`, the definitions are executed as the body of a class of that name, so private names
        (`self.__x`) are mangled the same way as in the original. Names in the body then resolve against
        `class_namespace` first, e.g. class attributes used as defaults or as decorators.
        """
        body = list(strip_comments(ast.Module(body=list(definitions), type_ignores=[])).body)
        if class_name is None:
            module = ast.Module(body=body, type_ignores=[])
        else:
            module = ast.parse(f"class {class_name}(metaclass={_CLASS_BODY}):\n    pass\n")
            class_def = module.body[0]
            assert isinstance(class_def, ast.ClassDef)
            class_def.body = body

        try:
            compiled = compile(
                ast.fix_missing_locations(module),
                self.filename or "<dual-variant>",
                mode="exec",
                flags=self.compile_flags,
                dont_inherit=True,
            )
        except SyntaxError as e:
            raise MalformedInputError.from_syntax_error(e, self.filename) from e

        local_namespace: Dict[str, Any] = {_CLASS_BODY: _ClassBody(class_namespace or {})}
        try:
            exec(compiled, self.namespace, local_namespace)
        except DualVariantError:
            raise
        except Exception as e:
            raise UnsupportedItemError(
                f"Declaring the variants of {self.name!r} failed: {e!r}",
                filename=self.filename,
                lineno=getattr(definitions[0], "lineno", None) if definitions else None,
            ) from e
        del local_namespace[_CLASS_BODY]

        if class_name is not None:
            class_body = local_namespace.pop(class_name)
            local_namespace = {
                name: class_body[mangle(class_name, name)]
                for name in (getattr(definition, "name") for definition in definitions)
            }

        logger.debug("Declared %s from the source of %s", ", ".join(local_namespace), self.name)
        return local_namespace


_CLASS_BODY = "__dual_variant_class_body__"


class _ClassBody:
    """
    Used as the metaclass of the stand-in class that generated methods are declared in. Instead of building a class it
    hands back the class body's namespace, which starts out as a copy of the real owner's namespace.
    """

    def __init__(self, namespace: Mapping[str, Any]) -> None:
        self.namespace = namespace

    def __prepare__(self, name: str, bases: Tuple[type, ...], **kwargs: Any) -> Dict[str, Any]:
        return dict(self.namespace)

    def __call__(self, name: str, bases: Tuple[type, ...], namespace: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        return namespace
