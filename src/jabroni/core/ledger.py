"""LoadLedger — the set of fragment files already merged into a class."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


class LoadLedger:
    """Thread-safe set of extension paths executed through the fragment path.

    Entries are claimed before the file runs and never removed, so a file
    that hoists itself, or is reached again through another hoist, is
    skipped instead of running twice.
    """

    def __init__(self) -> None:
        self._paths: set[Path] = set()
        self._lock = threading.Lock()

    def claim(self, path: Path) -> bool:
        """Record *path*. Returns False if it was already recorded."""
        with self._lock:
            if path in self._paths:
                return False
            self._paths.add(path)
            return True

    def clear(self) -> None:
        """Forget every entry. Meant for test isolation only."""
        with self._lock:
            self._paths.clear()

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._paths

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)

    def __iter__(self) -> Iterator[Path]:
        with self._lock:
            return iter(list(self._paths))


_default = LoadLedger()


def default_ledger() -> LoadLedger:
    """Return the process-wide ledger used when none is injected."""
    return _default
