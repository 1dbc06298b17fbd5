"""Convention-based extension loading for Python classes."""

from __future__ import annotations

from jabroni.core.ledger import LoadLedger, default_ledger
from jabroni.core.loader import Loader
from jabroni.core.types import ExtensionFile, ExtensionShape
from jabroni.inherited import Extendable, load_extensions

__version__ = "0.1.0"

__all__ = [
    "Extendable",
    "ExtensionFile",
    "ExtensionShape",
    "LoadLedger",
    "Loader",
    "default_ledger",
    "load_extensions",
]
