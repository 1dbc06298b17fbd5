"""Extendable — loads a subclass's extensions as soon as it is created."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar

from jabroni.core.loader import Loader

if TYPE_CHECKING:
    from pathlib import Path

    from jabroni.config.settings import Settings

logger = logging.getLogger(__name__)


class Extendable:
    """Mixin that merges ``<classname>/extensions/*.py`` into every subclass.

    Pass ``autoload=False`` in the class statement to skip the automatic
    load and call :meth:`load_extensions` yourself.
    """

    extension_settings: ClassVar[Settings | None] = None

    def __init_subclass__(cls, autoload: bool = True, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if autoload:
            logger.debug("Autoloading extensions for %s", cls.__qualname__)
            cls.load_extensions()

    @classmethod
    def load_extensions(cls, *keys: str) -> list[Path]:
        """Load the named extensions of this class, or all of them."""
        return Loader(cls, settings=cls.extension_settings).load(*keys)


def load_extensions(target: type, *keys: str, settings: Settings | None = None) -> list[Path]:
    """Load extensions into *target*, which need not inherit :class:`Extendable`."""
    return Loader(target, settings=settings).load(*keys)
