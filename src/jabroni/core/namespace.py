"""Running class-body code against a class that already exists.

Both extension shapes end up here: the body of a reopened ``class Post:``
statement and a whole fragment file compiled as a class body. The body runs
in a :class:`ClassBodyNamespace`, which writes every assignment straight
through to the target class and falls back to the class for names the body
does not define itself.
"""

from __future__ import annotations

import logging
from types import FunctionType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import CellType, CodeType

logger = logging.getLogger(__name__)

# Names the compiler stores while running a class body; they describe the
# synthetic body, not the target class.
BOOKKEEPING_NAMES = frozenset({
    "__module__",
    "__qualname__",
    "__firstlineno__",
    "__static_attributes__",
    "__classcell__",
    "__classdictcell__",
    "__doc__",
    "__annotations__",
    "__annotate__",
    "__annotate_func__",
    "__conditional_annotations__",
    "__dict__",
    "__weakref__",
})

# type.__new__ wraps these implicitly; setattr after creation does not.
_IMPLICIT_CLASSMETHODS = frozenset({"__init_subclass__", "__class_getitem__"})


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def merge_attribute(target: type, name: str, value: Any) -> None:
    """Set *name* on *target* the way a class statement would have."""
    if name in _IMPLICIT_CLASSMETHODS and isinstance(value, FunctionType):
        value = classmethod(value)
    elif name == "__new__" and isinstance(value, FunctionType):
        value = staticmethod(value)

    setattr(target, name, value)

    set_name = getattr(type(value), "__set_name__", None)
    if set_name is not None:
        set_name(value, target, name)


class ClassBodyNamespace(dict):
    """Locals mapping for a class body that extends *target* in place."""

    def __init__(self, target: type, load_extensions: Callable[..., Any]) -> None:
        super().__init__()
        self._target = target
        self._load_extensions = load_extensions

    def __getitem__(self, key: str) -> Any:
        value = super().__getitem__(key)
        # Macros defined earlier in the same body are callable right away.
        if isinstance(value, (classmethod, staticmethod)):
            return getattr(self._target, key)
        return value

    def __missing__(self, key: str) -> Any:
        if key == "load_extensions":
            return self._load_extensions
        if key == self._target.__name__:
            return self._target
        if not _is_dunder(key):
            try:
                return getattr(self._target, key)
            except AttributeError:
                pass
        raise KeyError(key)

    def __setitem__(self, key: str, value: Any) -> None:
        super().__setitem__(key, value)
        if key not in BOOKKEEPING_NAMES:
            merge_attribute(self._target, key, value)

    def __delitem__(self, key: str) -> None:
        super().__delitem__(key)
        if key not in BOOKKEEPING_NAMES:
            delattr(self._target, key)


def run_class_body(
    target: type,
    code: CodeType,
    globals_: dict[str, Any],
    load_extensions: Callable[..., Any],
    closure: tuple[CellType, ...] | None = None,
) -> ClassBodyNamespace:
    """Execute class-body *code* so that it extends *target*."""
    namespace = ClassBodyNamespace(target, load_extensions)
    exec(code, globals_, namespace, closure=closure)

    # Zero-argument super() in the merged methods
    classcell = dict.get(namespace, "__classcell__")
    if classcell is not None:
        classcell.cell_contents = target

    # A class statement that defines __eq__ without __hash__ is unhashable
    if "__eq__" in namespace and "__hash__" not in namespace and "__hash__" not in vars(target):
        target.__hash__ = None  # type: ignore[assignment]

    annotations = _body_annotations(namespace)
    if annotations:
        target.__annotations__ = {**target.__annotations__, **annotations}

    logger.debug(
        "Merged %d name(s) from %s into %s",
        sum(1 for k in namespace if k not in BOOKKEEPING_NAMES),
        code.co_filename,
        target.__qualname__,
    )
    return namespace


def _body_annotations(namespace: ClassBodyNamespace) -> dict[str, Any]:
    annotations = dict.get(namespace, "__annotations__")
    if annotations is not None:
        return dict(annotations)

    annotate = dict.get(namespace, "__annotate__") or dict.get(namespace, "__annotate_func__")
    if annotate is None:
        return {}

    # Lazily evaluated annotations (3.14+)
    import annotationlib

    return annotationlib.call_annotate_function(annotate, annotationlib.Format.FORWARDREF)
