# midi/tempo.py
from typing import Iterable, List, Tuple

from midikeys.notes.model import DEFAULT_TEMPO, Event, RawEvent, TempoChange


class TempoMap:
    """Song-wide tempo table shared by every track.

    Conversion always walks the table from tick 0, so events may be
    converted in any order (tracks are only tick-ordered internally).
    """
    def __init__(self, changes: Iterable[TempoChange], tpqn: int):
        if tpqn <= 0:
            raise ValueError(f"tpqn must be positive, got {tpqn}")
        # sorted() is stable: same-tick entries keep their scan order
        self.changes: Tuple[TempoChange, ...] = tuple(sorted(changes, key=lambda c: c.tick))
        self.tpqn = tpqn

    @classmethod
    def build(cls, per_track: Iterable[Iterable[TempoChange]], tpqn: int) -> "TempoMap":
        merged: List[TempoChange] = []
        for changes in per_track:
            merged.extend(changes)
        return cls(merged, tpqn)

    def tick_to_us(self, tick: int) -> int:
        us = 0
        last_tick = 0
        tempo = DEFAULT_TEMPO
        for tc in self.changes:
            if tc.tick >= tick:
                break
            us += (tc.tick - last_tick) * tempo // self.tpqn
            last_tick = tc.tick
            tempo = tc.us_per_quarter
        us += (tick - last_tick) * tempo // self.tpqn
        return us

    def tick_to_ms(self, tick: int) -> int:
        return self.tick_to_us(tick) // 1000

    def tempo_at(self, tick: int) -> int:
        """µs per quarter in effect at ``tick`` (a change at ``tick`` counts)."""
        tempo = DEFAULT_TEMPO
        for tc in self.changes:
            if tc.tick > tick:
                break
            tempo = tc.us_per_quarter
        return tempo

    def bpm_at(self, tick: int) -> float:
        tempo = self.tempo_at(tick)
        return 60_000_000 / tempo if tempo else 0.0


def build_timeline(raw_events: Iterable[RawEvent], tempo_map: TempoMap) -> Tuple[Event, ...]:
    events = [Event(tempo_map.tick_to_ms(r.tick), r.note, r.note_on) for r in raw_events]
    events.sort(key=lambda e: e.time_ms)
    return tuple(events)
