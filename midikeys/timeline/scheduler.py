# timeline/scheduler.py
import logging
import threading
import time
from bisect import bisect_right
from typing import Callable, List, Optional, Sequence, Set

from midikeys.input.keymap import NoteMapper
from midikeys.notes.model import Event
from midikeys.output.keyboard import KeySink

log = logging.getLogger(__name__)


class Playback:
    """Sleeps until each event's absolute time, then sends its key.

    ``events`` must already be sorted by time (parse output is). ``speed``
    scales the timeline: 2.0 plays twice as fast.
    """
    def __init__(self, events: Sequence[Event], mapper: NoteMapper, sink: KeySink,
                 speed: float = 1.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        self.events = events
        self.mapper = mapper
        self.sink = sink
        self.speed = speed
        self.clock = clock
        self.sleep = sleep
        self._starts: List[int] = [e.time_ms for e in events]
        self._down: Set[str] = set()

    def pending_at(self, t_ms: int) -> Sequence[Event]:
        """Events due at or before ``t_ms``."""
        return self.events[:bisect_right(self._starts, t_ms)]

    def run(self, stop: Optional[threading.Event] = None) -> int:
        sent = 0
        start = self.clock()
        for e in self.events:
            due = start + e.time_ms / 1000 / self.speed
            delay = due - self.clock()
            if stop is not None:
                if delay > 0 and stop.wait(delay):
                    break
                if stop.is_set():
                    break
            elif delay > 0:
                self.sleep(delay)

            key = self.mapper.map_note(e.note)
            if key is None:
                continue
            self.sink.send(key, e.note_on)
            if e.note_on:
                self._down.add(key)
            else:
                self._down.discard(key)
            sent += 1
        else:
            log.info("Playback finished: %d key commands", sent)
            return sent

        # 中途停止：放開還按著的鍵
        for key in sorted(self._down):
            self.sink.send(key, False)
        self._down.clear()
        log.info("Playback stopped after %d key commands", sent)
        return sent
