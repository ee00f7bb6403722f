# notes/model.py
from dataclasses import dataclass
from typing import Tuple

DEFAULT_TEMPO = 500000  # µs per quarter, 120 bpm


@dataclass(frozen=True)
class RawEvent:
    tick: int       # absolute tick within its track
    note: int       # MIDI note number
    note_on: bool


@dataclass(frozen=True)
class TempoChange:
    tick: int
    us_per_quarter: int

    @property
    def bpm(self) -> float:
        return 60_000_000 / self.us_per_quarter if self.us_per_quarter else 0.0


@dataclass(frozen=True)
class Event:
    time_ms: int    # milliseconds from playback start
    note: int
    note_on: bool


@dataclass(frozen=True)
class MidiSong:
    format: int
    track_count: int
    tpqn: int
    tempo_map: Tuple[TempoChange, ...]
    events: Tuple[Event, ...]

    @property
    def duration_ms(self) -> int:
        return self.events[-1].time_ms if self.events else 0
