"""Tests for jabroni.core.ledger."""

from __future__ import annotations

import threading
from pathlib import Path

from jabroni.core.ledger import LoadLedger, default_ledger


class TestClaim:
    def test_first_claim_wins(self) -> None:
        ledger = LoadLedger()
        path = Path("/ext/post/extensions/mailroom.py")

        assert ledger.claim(path) is True
        assert ledger.claim(path) is False
        assert path in ledger
        assert len(ledger) == 1

    def test_distinct_paths(self) -> None:
        ledger = LoadLedger()
        ledger.claim(Path("/a.py"))
        ledger.claim(Path("/b.py"))
        assert set(ledger) == {Path("/a.py"), Path("/b.py")}

    def test_clear(self) -> None:
        ledger = LoadLedger()
        ledger.claim(Path("/a.py"))
        ledger.clear()
        assert len(ledger) == 0
        assert ledger.claim(Path("/a.py")) is True

    def test_concurrent_claims_admit_one(self) -> None:
        ledger = LoadLedger()
        path = Path("/contended.py")
        barrier = threading.Barrier(16)
        results: list[bool] = []
        results_lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            claimed = ledger.claim(path)
            with results_lock:
                results.append(claimed)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert results.count(False) == 15


class TestDefaultLedger:
    def test_is_shared(self) -> None:
        assert default_ledger() is default_ledger()
