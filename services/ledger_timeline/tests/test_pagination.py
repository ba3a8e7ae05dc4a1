from datetime import datetime, timedelta, timezone
from pathlib import Path
import random
import sys

ROOT = Path(__file__).resolve().parents[3]
SVC_DIR = ROOT / "services" / "ledger_timeline"
if str(SVC_DIR) not in sys.path:
    sys.path.insert(0, str(SVC_DIR))

import pytest
from pydantic import ValidationError

from schemas import NormalizedEvent
from timeline.pagination import WindowCursor, order_events

BASE = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _event(event_id: str, minutes: int) -> NormalizedEvent:
    return NormalizedEvent(
        id=event_id,
        timestamp=BASE + timedelta(minutes=minutes),
        facility_id="DC-North",
    )


def test_order_events_most_recent_first() -> None:
    ordered = order_events([_event("a", 1), _event("b", 5), _event("c", 3)])
    assert [e.id for e in ordered] == ["b", "c", "a"]


def test_order_events_ties_keep_input_order() -> None:
    ordered = order_events([_event("a", 1), _event("b", 2), _event("c", 1), _event("d", 2)])
    assert [e.id for e in ordered] == ["b", "d", "a", "c"]


def test_order_events_randomized_is_non_increasing() -> None:
    rng = random.Random(11)
    events = [_event(str(i), rng.randrange(30)) for i in range(200)]
    ordered = order_events(events)
    for prev, nxt in zip(ordered, ordered[1:]):
        assert prev.timestamp >= nxt.timestamp


def test_cursor_starts_at_initial_clamped_to_total() -> None:
    assert WindowCursor.start(55, initial=20, step=20).size == 20
    assert WindowCursor.start(7, initial=20, step=20).size == 7
    assert WindowCursor.start(0).size == 0


def test_advance_is_monotonic_and_terminal_is_noop() -> None:
    cursor = WindowCursor.start(55, initial=20, step=20)
    sizes = [cursor.size]
    for _ in range(6):
        cursor = cursor.advance()
        sizes.append(cursor.size)

    assert sizes == [20, 40, 55, 55, 55, 55, 55]
    assert cursor.is_terminal
    assert cursor.advance() == cursor


def test_advance_never_exceeds_total_randomized() -> None:
    rng = random.Random(3)
    for _ in range(100):
        total = rng.randrange(0, 120)
        cursor = WindowCursor.start(total, initial=rng.randrange(0, 30), step=rng.randrange(1, 30))
        prev = cursor.size
        for _ in range(total + 1):
            cursor = cursor.advance()
            assert prev <= cursor.size <= total
            prev = cursor.size
        assert cursor.is_terminal


def test_cursor_is_immutable_value() -> None:
    cursor = WindowCursor.start(50)
    advanced = cursor.advance()
    assert cursor.size == 20
    assert advanced.size == 40


def test_resume_clamps_client_size() -> None:
    cursor = WindowCursor.start(50, initial=20, step=20)
    assert cursor.resume(40).size == 40
    assert cursor.resume(500).size == 50
    assert cursor.resume(3).size == 20


def test_rebase_keeps_window_after_data_change() -> None:
    cursor = WindowCursor.start(50).advance()
    assert cursor.rebase(80).size == 40
    assert cursor.rebase(30).size == 30
    assert WindowCursor.start(5).rebase(60).size == 20


def test_window_is_sorted_prefix() -> None:
    ordered = order_events([_event(str(i), i) for i in range(30)])
    cursor = WindowCursor.start(len(ordered), initial=10, step=10)

    window = cursor.window(ordered)
    assert window == ordered[:10]
    assert cursor.advance().window(ordered) == ordered[:20]


def test_cursor_rejects_size_above_total() -> None:
    with pytest.raises(ValidationError):
        WindowCursor(total=5, size=10)

    cursor = WindowCursor(total=5, size=5)
    assert cursor.is_terminal
    assert cursor.advance() is cursor
