from __future__ import annotations

import sheet_import.services.progress as progress_module
from sheet_import.services.progress import ProgressTracker


def test_disabled_when_not_tty(monkeypatch):
    monkeypatch.setattr(progress_module, "is_tty_enabled", lambda: False)
    with ProgressTracker(2) as tracker:
        assert tracker.bar is None
        tracker.start("a.xlsx")
        tracker.finish(True, rows=3)
        tracker.start("b.xlsx")
        tracker.finish(False, rows=5)
    assert tracker.current == 2
    assert (tracker.succeeded, tracker.failed, tracker.rows) == (1, 1, 3)


def test_enabled_on_tty(monkeypatch):
    monkeypatch.setattr(progress_module, "is_tty_enabled", lambda: True)
    tracker = ProgressTracker(2, description="Importing files")
    assert tracker.bar is not None
    tracker.start("a.xlsx")
    assert "a.xlsx" in tracker.bar.desc
    tracker.finish(True, rows=10)
    assert tracker.bar.n == 1
    assert tracker.bar.desc.startswith("Importing files")
    assert "a.xlsx" not in tracker.bar.desc
    assert "rows=10" in tracker.bar.postfix
    tracker.close()
    assert tracker.bar is None
    tracker.close()  # second close is a no-op
