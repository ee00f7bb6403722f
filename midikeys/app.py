# app.py
import logging
import threading
from typing import Callable, Optional, Union

from midikeys.config import AppConfig
from midikeys.errors import KeyOutputError, MidiDeviceError, MidiFileError
from midikeys.input.device import MidiInputDevice
from midikeys.input.keymap import NoteMapper, load_layout
from midikeys.input.live import LiveInputStateMachine, LiveSession
from midikeys.midi.parser import parse_midi
from midikeys.notes.model import MidiSong
from midikeys.output.keyboard import KeyboardSink, KeySink
from midikeys.timeline.scheduler import Playback
from midikeys.utils.crashlog import init_logging, log_exception, set_log_dir, setup_crashlog

log = logging.getLogger(__name__)


def setup_logging(cfg: AppConfig):
    set_log_dir(cfg.log.log_dir)
    init_logging(cfg.log.level, cfg.log.max_bytes, cfg.log.backup_count)
    setup_crashlog()


def make_mapper(cfg: AppConfig) -> NoteMapper:
    if cfg.layout.custom_path:
        return load_layout(cfg.layout.custom_path)
    return NoteMapper.for_layout(cfg.layout.mode)


class App:
    """File playback and live MIDI input, both ending in key presses.

    ``sink`` defaults to the OS keyboard; ``device_factory`` builds the live
    notification source (pygame.midi input by default).
    """
    def __init__(self, cfg: AppConfig, sink: Optional[KeySink] = None,
                 device_factory: Optional[Callable[[], object]] = None):
        self.cfg = cfg
        self.mapper = make_mapper(cfg)
        self.sink = sink if sink is not None else KeyboardSink()
        self.device_factory = device_factory or (lambda: MidiInputDevice(
            cfg.live.device_id, cfg.live.poll_interval, cfg.live.read_size))
        self.session: Optional[LiveSession] = None
        self._device = None
        log.info("Layout: %d mapped notes", len(self.mapper))

    def _require_output(self, what: str):
        if not getattr(self.sink, "available", True):
            e = KeyOutputError("keyboard controller failed to start")
            log.error("Cannot %s: %s", what, e)
            log_exception(what, e)
            raise e

    # ---------- File ----------
    def load(self, path: str) -> MidiSong:
        try:
            return parse_midi(path)
        except MidiFileError as e:
            log.error("Failed to load %s: %s", path, e)
            log_exception("load", e)
            raise

    def play(self, song: Union[MidiSong, str], stop: Optional[threading.Event] = None) -> int:
        self._require_output("play")
        if isinstance(song, str):
            song = self.load(song)
        pb = Playback(song.events, self.mapper, self.sink, speed=self.cfg.playback.speed)
        return pb.run(stop)

    # ---------- Live ----------
    def start_live(self) -> LiveSession:
        if self.session is not None:
            return self.session
        self._require_output("start_live")
        device = self.device_factory()
        session = LiveSession(LiveInputStateMachine(self.mapper, self.sink), device)
        try:
            session.start()
        except MidiDeviceError as e:
            log.error("Live input unavailable: %s", e)
            log_exception("start_live", e)
            raise
        self._device = device
        self.session = session
        return session

    def stop_live(self):
        if self.session is None:
            return
        self.session.stop()
        self.session = None
        close = getattr(self._device, "close", None)
        if close is not None:
            close()
        self._device = None

    def run_live(self, wait: Callable[[], object]):
        """Listen until ``wait`` returns (e.g. ``input``)."""
        self.start_live()
        try:
            wait()
        finally:
            self.stop_live()

    def close(self):
        self.stop_live()
        close = getattr(self.sink, "close", None)
        if close is not None:
            close()
