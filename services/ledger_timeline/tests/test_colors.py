from datetime import datetime, timezone
from pathlib import Path
import random
import sys

ROOT = Path(__file__).resolve().parents[3]
SVC_DIR = ROOT / "services" / "ledger_timeline"
if str(SVC_DIR) not in sys.path:
    sys.path.insert(0, str(SVC_DIR))

from schemas import NormalizedEvent
from timeline.colors import (
    DEFAULT_KIND_COLOR,
    assign_colors,
    generate_palette,
    kind_color,
    pick_colors,
)


def _window(size: int) -> list[NormalizedEvent]:
    return [
        NormalizedEvent(
            id=f"e{i}",
            timestamp=datetime(2025, 1, 1, tzinfo=timezone.utc),
            facility_id="DC-North",
        )
        for i in range(size)
    ]


def test_adjacent_colors_differ_for_two_events_two_colors() -> None:
    window = _window(2)
    palette = ["#111111", "#222222"]
    for _ in range(500):
        colors = assign_colors(window, palette)
        assert colors["e0"] != colors["e1"]


def test_adjacent_colors_differ_randomized() -> None:
    rng = random.Random(2024)
    for _ in range(300):
        palette = generate_palette(size=rng.randrange(2, 12))
        colors = pick_colors(rng.randrange(2, 60), palette, rng)
        for prev, nxt in zip(colors, colors[1:]):
            assert prev != nxt
        assert all(color in palette for color in colors)


def test_single_color_palette_terminates() -> None:
    colors = assign_colors(_window(5), ["#00f0ff"])
    assert list(colors.values()) == ["#00f0ff"] * 5


def test_duplicate_palette_entries_collapse() -> None:
    rng = random.Random(5)
    for _ in range(100):
        colors = pick_colors(10, ["red", "red", "blue"], rng)
        for prev, nxt in zip(colors, colors[1:]):
            assert prev != nxt


def test_empty_palette_and_empty_window() -> None:
    assert pick_colors(3, []) == []
    assert assign_colors([], ["#111111", "#222222"]) == {}


def test_seeded_assignment_is_reproducible() -> None:
    palette = generate_palette()
    first = pick_colors(25, palette, random.Random(123))
    second = pick_colors(25, palette, random.Random(123))
    assert first == second


def test_generate_palette_shape() -> None:
    palette = generate_palette()
    assert len(palette) == 100
    assert palette[0] == "hsl(0, 70%, 60%)"
    assert palette[50] == "hsl(180, 70%, 60%)"
    assert len(set(palette)) == 100


def test_kind_color() -> None:
    assert kind_color("REPORT_FROZEN") == "#ff0055"
    assert kind_color("EMISSIONS_UPLOADED") == "#fcee0a"
    assert kind_color("ORCHESTRATOR_TX") == DEFAULT_KIND_COLOR
    assert kind_color(None) == DEFAULT_KIND_COLOR


def _events(ids: list) -> list[NormalizedEvent]:
    return [
        NormalizedEvent(
            id=event_id,
            timestamp=datetime(2025, 1, 1, tzinfo=timezone.utc),
            facility_id="DC-North",
        )
        for event_id in ids
    ]


def test_events_without_id_each_get_a_color() -> None:
    for seed in range(50):
        colors = assign_colors(_events([None, None, None]), ["#111", "#222"], random.Random(seed))
        assert list(colors) == ["#0", "#1", "#2"]
        values = list(colors.values())
        for prev, nxt in zip(values, values[1:]):
            assert prev != nxt


def test_duplicate_ids_do_not_collapse() -> None:
    window = _events(["a", "a", None, "#1", "b"])
    colors = assign_colors(window, ["#111", "#222", "#333"], random.Random(7))
    assert len(colors) == len(window)
    assert list(colors)[0] == "a"
    assert list(colors)[-1] == "b"
    values = list(colors.values())
    for prev, nxt in zip(values, values[1:]):
        assert prev != nxt
