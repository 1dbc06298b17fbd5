from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class ExtensionShape(str, Enum):
    """How an extension file is merged into its class."""

    REOPENING = "reopening"
    FRAGMENT = "fragment"


@dataclass(frozen=True)
class ExtensionFile:
    """An extension file found on disk, classified but not loaded."""
    key: str
    path: Path
    shape: ExtensionShape
