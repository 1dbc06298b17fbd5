"""PathResolver — maps a class to its extension directory and files."""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import TYPE_CHECKING

from jabroni.config.loader import default_settings
from jabroni.core.errors import ExtensionDirectoryError

if TYPE_CHECKING:
    from jabroni.config.settings import Settings


class PathResolver:
    """Resolves extension paths for a class by naming convention.

    For a class ``Post`` defined in ``blog/models.py`` the extensions live in
    ``blog/post/extensions/*.py``. Only the simple class name is used,
    lower-cased.
    """

    def __init__(self, target: type, settings: Settings | None = None) -> None:
        self._target = target
        self._settings = settings if settings is not None else default_settings()

    def directory_for(self) -> Path:
        """Return the absolute extension directory of the target class."""
        return self._base_dir() / self._target.__name__.lower() / self._settings.extensions_dirname

    def path_for(self, key: str) -> Path:
        """Return the path of extension *key*; existence is not checked."""
        return self.directory_for() / f"{key}{self._settings.suffix}"

    def all_paths(self) -> list[Path]:
        """Every extension file in the directory, in filesystem order.

        The order is whatever the filesystem yields and is not sorted. A
        missing directory yields an empty list.
        """
        return [p for p in self.directory_for().glob(f"*{self._settings.suffix}") if p.is_file()]

    def _base_dir(self) -> Path:
        if self._settings.root is not None:
            return Path(self._settings.root).expanduser().resolve()
        try:
            defining_file = inspect.getfile(self._target)
        except TypeError as e:
            raise ExtensionDirectoryError(
                f"Cannot locate the file defining {self._target.__qualname__}; set 'root' in settings"
            ) from e
        return Path(defining_file).resolve().parent
