"""Playback scheduling against a fake clock."""

import threading

import pytest

from midikeys.input.keymap import NoteMapper
from midikeys.notes.model import Event
from midikeys.timeline.scheduler import Playback


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, secs: float) -> None:
        self.sleeps.append(round(secs, 6))
        self.now += secs


EVENTS = (
    Event(0, 60, True),
    Event(0, 20, True),       # unmapped
    Event(250, 62, True),
    Event(500, 60, False),
    Event(500, 62, False),
)


def test_sends_mapped_keys_at_event_times(sink) -> None:
    clock = FakeClock()
    pb = Playback(EVENTS, NoteMapper.for_layout("full"), sink, clock=clock, sleep=clock.sleep)
    assert pb.run() == 4
    assert sink.sent == [("z", True), ("x", True), ("z", False), ("x", False)]
    assert clock.sleeps == [0.25, 0.25]
    assert clock.now == pytest.approx(100.5)


def test_speed_scales_waits(sink) -> None:
    clock = FakeClock()
    pb = Playback(EVENTS, NoteMapper.for_layout("full"), sink, speed=2.0, clock=clock, sleep=clock.sleep)
    pb.run()
    assert clock.sleeps == [0.125, 0.125]


def test_late_events_do_not_sleep(sink) -> None:
    clock = FakeClock()

    def slow_sleep(secs: float) -> None:
        clock.sleep(secs + 1.0)

    pb = Playback(EVENTS, NoteMapper.for_layout("full"), sink, clock=clock, sleep=slow_sleep)
    pb.run()
    # first wait overshoots by a second, everything after is already due
    assert clock.sleeps == [1.25]
    assert len(sink.sent) == 4


def test_stop_before_start_sends_nothing(sink) -> None:
    stop = threading.Event()
    stop.set()
    events = (Event(0, 60, True), Event(60_000, 60, False))
    pb = Playback(events, NoteMapper.for_layout("full"), sink)
    assert pb.run(stop) == 0
    assert sink.sent == []


def test_stop_midway(sink) -> None:
    stop = threading.Event()
    clock = FakeClock()
    sent = []

    class StoppingSink:
        def send(self, key: str, pressed: bool) -> None:
            sent.append((key, pressed))
            if len(sent) == 1:
                stop.set()

    events = (Event(0, 60, True), Event(0, 62, True), Event(10, 62, False))
    pb = Playback(events, NoteMapper.for_layout("full"), StoppingSink(), clock=clock)
    assert pb.run(stop) == 1
    assert sent == [("z", True), ("z", False)]


def test_pending_at() -> None:
    pb = Playback(EVENTS, NoteMapper.for_layout("full"), None)
    assert len(pb.pending_at(-1)) == 0
    assert len(pb.pending_at(0)) == 2
    assert len(pb.pending_at(499)) == 3
    assert len(pb.pending_at(500)) == 5


def test_rejects_non_positive_speed(sink) -> None:
    with pytest.raises(ValueError):
        Playback(EVENTS, NoteMapper.for_layout("full"), sink, speed=0)
