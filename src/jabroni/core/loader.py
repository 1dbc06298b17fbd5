"""Loader — merges a class's extension files into the class.

Each extension file takes one of two shapes:

* a *reopening* starts (after comments and ``from __future__`` lines) with
  ``class Post:``. It is imported once as a module; its top-level
  ``class Post`` statement extends the existing class instead of creating a
  new one.
* a *fragment* is anything else. Its statements run as if they were pasted
  into the class body, once per path, tracked by the :class:`LoadLedger`.

Extensions may call ``load_extensions("other")`` to load a dependency
before their remaining statements run.
"""

from __future__ import annotations

import ast
import builtins
import hashlib
import importlib.util
import logging
import re
import sys
import threading
from types import CodeType
from typing import TYPE_CHECKING, Any

from jabroni.core.ledger import LoadLedger, default_ledger
from jabroni.core.namespace import run_class_body
from jabroni.core.paths import PathResolver
from jabroni.core.types import ExtensionFile, ExtensionShape

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from jabroni.config.settings import Settings

logger = logging.getLogger(__name__)

LOADED_MODULE_PREFIX = "jabroni.loaded"

# Leading blank, comment and __future__ lines, stripped only to classify a file
_LEADING_PRAGMAS = re.compile(
    r"\A(?:[ \t]*(?:#[^\n]*|from[ \t]+__future__[ \t]+import(?:[ \t]*\([^)]*\))?[^\n]*)?\r?\n)*"
)

# Reopenings bypass the import system and its per-module locks
_require_lock = threading.RLock()


class InlineBuiltins(dict):
    """Builtins of a reopening module, backed by the target's module.

    Names the reopening does not define itself resolve against the target
    module's live globals, so helpers defined after the class are visible
    by the time a reopened method runs. Real builtins take precedence.
    """

    def __init__(self, module_globals: dict[str, Any], build_class: Callable[..., Any]) -> None:
        super().__init__(vars(builtins))
        self["__build_class__"] = build_class
        self._module_globals = module_globals

    def __missing__(self, key: str) -> Any:
        return self._module_globals[key]


def module_name_for(path: Path) -> str:
    """Return the sys.modules key of a reopening file; one per absolute path."""
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    return f"{LOADED_MODULE_PREFIX}.{path.stem}_{digest}"


def strip_leading_pragmas(source: str) -> str:
    """Drop the leading run of blank, comment and ``from __future__`` lines."""
    return _LEADING_PRAGMAS.sub("", source, count=1)


class Loader:
    """Loads extension files for one target class.

    Args:
        target: The class being extended.
        settings: Directory naming; defaults to :func:`~jabroni.config.loader.default_settings`.
        ledger: Fragment load-once ledger; defaults to the process-wide one.
    """

    def __init__(
        self,
        target: type,
        settings: Settings | None = None,
        ledger: LoadLedger | None = None,
    ) -> None:
        self._target = target
        self._name = target.__name__
        self._resolver = PathResolver(target, settings)
        self._ledger = ledger if ledger is not None else default_ledger()
        self._reopening = re.compile(rf"class[ \t]+{re.escape(self._name)}(?=[ \t]*[:(])")

    @property
    def target(self) -> type:
        return self._target

    @property
    def resolver(self) -> PathResolver:
        return self._resolver

    def load(self, *keys: str) -> list[Path]:
        """Load the named extensions, or every extension when no key is given.

        Returns the resolved paths in the order they were processed.
        """
        if keys:
            paths = [self._resolver.path_for(key) for key in keys]
        else:
            paths = self._resolver.all_paths()

        for path in paths:
            self._load_one(path)
        return paths

    def classify(self, source: str) -> ExtensionShape:
        """Tell whether *source* reopens the target class or is a fragment."""
        if self._reopening.match(strip_leading_pragmas(source)):
            return ExtensionShape.REOPENING
        return ExtensionShape.FRAGMENT

    def describe(self) -> list[ExtensionFile]:
        """Classify every extension file without loading any of them."""
        return [
            ExtensionFile(key=path.stem, path=path, shape=self.classify(_read_source(path)))
            for path in self._resolver.all_paths()
        ]

    def _load_one(self, path: Path) -> None:
        source = _read_source(path)

        if self.classify(source) is ExtensionShape.REOPENING:
            self._require(path)
        elif self._ledger.claim(path):
            logger.debug("Merging fragment %s into %s", path, self._target.__qualname__)
            self._merge_fragment(path, source)
        else:
            logger.debug("Skipping fragment %s: already loaded", path)

    # -- fragments ---------------------------------------------------------

    def _merge_fragment(self, path: Path, source: str) -> None:
        body = self._compile_fragment(path, source)
        run_class_body(self._target, body, self._module_globals(), self.load)

    def _compile_fragment(self, path: Path, source: str) -> CodeType:
        """Compile *source* as the body of ``class <Name>:``.

        Leading ``from __future__`` imports stay at module level so they keep
        applying to the whole file. Line numbers are those of the file.
        """
        tree = ast.parse(source, filename=str(path))

        statements = list(tree.body)
        start = 1 if statements and _is_docstring(statements[0]) else 0
        header: list[ast.stmt] = []
        while len(statements) > start and _is_future_import(statements[start]):
            header.append(statements.pop(start))

        class_def = ast.ClassDef(
            name=self._name,
            bases=[],
            keywords=[],
            body=statements or [ast.Pass()],
            decorator_list=[],
            type_params=[],
        )
        if statements:
            ast.copy_location(class_def, statements[0])
        else:
            class_def.lineno, class_def.col_offset = 1, 0

        module = ast.Module(body=[*header, class_def], type_ignores=[])
        ast.fix_missing_locations(module)
        code = compile(module, str(path), "exec", dont_inherit=True)

        return next(
            const for const in code.co_consts
            if isinstance(const, CodeType) and const.co_name == self._name
        )

    def _module_globals(self) -> dict[str, Any]:
        module = sys.modules.get(self._target.__module__)
        if module is not None:
            return vars(module)
        return {"__name__": self._target.__module__, "__builtins__": builtins}

    # -- reopenings --------------------------------------------------------

    def _require(self, path: Path) -> None:
        """Import a reopening file once, keyed by its absolute path."""
        name = module_name_for(path)
        with _require_lock:
            if name in sys.modules:
                logger.debug("Skipping reopening %s: already required", path)
                return

            spec = importlib.util.spec_from_file_location(name, path)
            if spec is None or spec.loader is None:
                raise ImportError(f"Cannot load extension {path}", path=str(path))

            module = importlib.util.module_from_spec(spec)
            module.__dict__[self._name] = self._target
            module.__dict__["__builtins__"] = InlineBuiltins(
                self._module_globals(), self._reopening_build_class(),
            )

            logger.debug("Requiring reopening %s for %s", path, self._target.__qualname__)
            sys.modules[name] = module
            try:
                spec.loader.exec_module(module)
            except BaseException:
                sys.modules.pop(name, None)
                raise

    def _reopening_build_class(self) -> Callable[..., Any]:
        target = self._target
        load = self.load

        def build_class(func: Any, name: str, *bases: Any, **kwargs: Any) -> Any:
            # Only the top-level statement reopens; nested classes build normally.
            if name != target.__name__ or func.__qualname__ != name:
                return builtins.__build_class__(func, name, *bases, **kwargs)

            if kwargs:
                raise TypeError(f"cannot pass class keywords when reopening {name}")
            for base in bases:
                if base not in target.__mro__:
                    raise TypeError(f"superclass mismatch for class {name}")

            run_class_body(target, func.__code__, func.__globals__, load, closure=func.__closure__)
            return target

        return build_class


def _read_source(path: Path) -> str:
    return importlib.util.decode_source(path.read_bytes())


def _is_docstring(node: ast.stmt) -> bool:
    return (
        isinstance(node, ast.Expr)
        and isinstance(node.value, ast.Constant)
        and isinstance(node.value.value, str)
    )


def _is_future_import(node: ast.stmt) -> bool:
    return isinstance(node, ast.ImportFrom) and node.module == "__future__"
