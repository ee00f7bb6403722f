# input/live.py
import logging
import queue
import threading
from dataclasses import dataclass
from typing import FrozenSet, Optional, Set

from midikeys.input.keymap import NoteMapper
from midikeys.output.keyboard import KeySink

log = logging.getLogger(__name__)

NOTE_OFF = 0x80
NOTE_ON = 0x90

_STOP = object()


@dataclass(frozen=True)
class Transition:
    key: str
    pressed: bool


class LiveInputStateMachine:
    """Held/unheld state per output key for live MIDI input.

    Each key is either unheld or held; only press (unheld -> held) and
    release (held -> unheld) are emitted, so duplicate or out-of-order
    input never produces two presses or two releases in a row. The check,
    the set update and the sink call happen under one lock.
    """
    def __init__(self, mapper: NoteMapper, sink: KeySink):
        self.mapper = mapper
        self.sink = sink
        self._held: Set[str] = set()
        self._lock = threading.Lock()

    @property
    def held(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._held)

    def is_held(self, key: str) -> bool:
        with self._lock:
            return key in self._held

    def handle(self, status: int, note: int, velocity: int) -> Optional[Transition]:
        key = self.mapper.map_note(note)
        if key is None:
            return None

        kind = status & 0xF0
        if kind == NOTE_ON and velocity > 0:
            pressed = True
        elif kind == NOTE_OFF or kind == NOTE_ON:
            pressed = False
        else:
            return None

        with self._lock:
            if pressed == (key in self._held):
                return None
            if pressed:
                self._held.add(key)
            else:
                self._held.discard(key)
            self.sink.send(key, pressed)
        return Transition(key, pressed)

    def release_all(self) -> int:
        """Release every held key; returns how many were released."""
        with self._lock:
            keys = sorted(self._held)
            for key in keys:
                self.sink.send(key, False)
            self._held.clear()
        return len(keys)


class LiveSession:
    """
    Queue between the notification source and the state machine.
    - the source (any thread) calls feed(status, note, velocity)
    - one drain thread hands triples to machine.handle()
    - stop(): source first, then drain, then release held keys
    """
    def __init__(self, machine: LiveInputStateMachine, source=None):
        self.machine = machine
        self.source = source
        self._queue: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._accepting = False
        self._feed_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None

    def feed(self, status: int, note: int, velocity: int):
        with self._feed_lock:
            if self._accepting:
                self._queue.put((status, note, velocity))

    def _close_queue(self):
        # nothing can be queued behind the sentinel
        with self._feed_lock:
            self._accepting = False
            self._queue.put(_STOP)

    def start(self):
        if self._thread is not None:
            return
        self._accepting = True
        self._thread = threading.Thread(target=self._drain, name="midikeys-live", daemon=True)
        self._thread.start()
        if self.source is not None:
            try:
                self.source.start(self.feed)
            except Exception:
                self._close_queue()
                self._thread.join()
                self._thread = None
                raise
        log.info("Live session started")

    def _drain(self):
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self.machine.handle(*item)
            except Exception:
                log.exception("live event %r failed", item)
            finally:
                self._queue.task_done()

    def stop(self):
        if self._thread is None:
            return
        if self.source is not None:
            self.source.stop()
        self._close_queue()
        self._thread.join()
        self._thread = None
        released = self.machine.release_all()
        log.info("Live session stopped (%d held key(s) released)", released)

    def wait_idle(self):
        """Block until every triple fed so far has been handled."""
        self._queue.join()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc):
        self.stop()
        return False
