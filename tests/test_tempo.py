"""Tick -> time conversion over the merged tempo map."""

import pytest

from midikeys.midi.tempo import TempoMap, build_timeline
from midikeys.notes.model import Event, RawEvent, TempoChange


@pytest.mark.parametrize("tpqn", [1, 24, 96, 480, 960, 0x7FFF])
@pytest.mark.parametrize("tick", [0, 1, 7, 479, 480, 12345, 0x0FFFFFFF])
def test_default_tempo_matches_closed_form(tpqn: int, tick: int) -> None:
    tm = TempoMap([], tpqn)
    assert tm.tick_to_ms(tick) == tick * 500000 // tpqn // 1000


def test_tempo_change_only_affects_later_ticks() -> None:
    base = TempoMap([TempoChange(0, 500000)], 480)
    changed = TempoMap([TempoChange(0, 500000), TempoChange(960, 250000)], 480)
    for tick in range(0, 961, 37):
        assert changed.tick_to_us(tick) == base.tick_to_us(tick)
    # after the change a quarter takes half as long
    assert changed.tick_to_ms(960 + 480) == 1000 + 250
    assert base.tick_to_ms(960 + 480) == 1500


def test_change_at_exact_tick_is_not_applied_to_that_tick() -> None:
    tm = TempoMap([TempoChange(480, 1000000)], 480)
    assert tm.tick_to_us(480) == 500000
    assert tm.tick_to_us(960) == 1500000


def test_segments_truncate_independently() -> None:
    # 1 tick at 1000 us / 3 tpqn = 333 (floor), then 1 tick at 2000/3 = 666
    tm = TempoMap([TempoChange(1, 2000)], 3)
    assert tm.tick_to_us(1) == 166666
    tm = TempoMap([TempoChange(0, 1000), TempoChange(1, 2000)], 3)
    assert tm.tick_to_us(2) == 333 + 666


def test_build_merges_tracks_and_sorts_stably() -> None:
    tm = TempoMap.build(
        [
            [TempoChange(960, 300000)],
            [TempoChange(0, 400000), TempoChange(960, 600000)],
        ],
        480,
    )
    assert tm.changes == (
        TempoChange(0, 400000),
        TempoChange(960, 300000),
        TempoChange(960, 600000),
    )
    # last entry at a shared tick wins
    assert tm.tempo_at(960) == 600000
    assert tm.tempo_at(959) == 400000
    assert tm.bpm_at(960) == pytest.approx(100.0)


def test_tempo_at_defaults_to_120_bpm() -> None:
    tm = TempoMap([TempoChange(100, 600000)], 96)
    assert tm.tempo_at(0) == 500000
    assert tm.bpm_at(0) == pytest.approx(120.0)


def test_zero_tpqn_rejected() -> None:
    with pytest.raises(ValueError):
        TempoMap([], 0)


def test_build_timeline_is_sorted_and_stable() -> None:
    tm = TempoMap([], 480)
    raw = [
        RawEvent(480, 60, False),   # track 0
        RawEvent(0, 60, True),
        RawEvent(480, 64, True),    # track 1, same time as the note-off
        RawEvent(240, 62, True),
    ]
    assert build_timeline(raw, tm) == (
        Event(0, 60, True),
        Event(250, 62, True),
        Event(500, 60, False),
        Event(500, 64, True),
    )
