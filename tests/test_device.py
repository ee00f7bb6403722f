"""pygame.midi input source, with pygame.midi replaced by fakes."""

import threading

import pygame.midi
import pytest

from midikeys.errors import DeviceOpenError, DeviceUnavailableError, ErrorKind
from midikeys.input import device as device_mod
from midikeys.input.device import MidiInputDevice


class FakeInput:
    def __init__(self, dev: int, buffer_size: int) -> None:
        self.dev = dev
        self.pending = [
            [[0x90, 60, 100, 0], 10],
            [[0x80, 60, 0, 0], 20],
        ]
        self.closed = False

    def poll(self) -> bool:
        return bool(self.pending)

    def read(self, n: int):
        out, self.pending = self.pending[:n], self.pending[n:]
        return out

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_midi(monkeypatch: pytest.MonkeyPatch):
    state = {"devices": [(b"ALSA", b"Keys", 1, 0, 0), (b"ALSA", b"Synth", 0, 1, 0)], "quit": 0}
    monkeypatch.setattr(pygame.midi, "init", lambda: None)
    monkeypatch.setattr(pygame.midi, "quit", lambda: state.__setitem__("quit", state["quit"] + 1))
    monkeypatch.setattr(pygame.midi, "get_count", lambda: len(state["devices"]))
    monkeypatch.setattr(pygame.midi, "get_device_info", lambda i: state["devices"][i])
    monkeypatch.setattr(pygame.midi, "get_default_input_id", lambda: 0 if state["devices"] else -1)
    monkeypatch.setattr(pygame.midi, "Input", FakeInput)
    return state


def test_list_input_devices(fake_midi) -> None:
    assert device_mod.list_input_devices() == [(0, "Keys")]


def test_no_input_devices(fake_midi) -> None:
    fake_midi["devices"] = [(b"ALSA", b"Synth", 0, 1, 0)]
    with pytest.raises(DeviceUnavailableError) as info:
        MidiInputDevice().open()
    assert info.value.kind is ErrorKind.DEVICE_UNAVAILABLE
    assert fake_midi["quit"] == 1


def test_open_failure_is_distinct(fake_midi, monkeypatch: pytest.MonkeyPatch) -> None:
    def busy(dev, size):
        raise pygame.midi.MidiException("Host error")

    monkeypatch.setattr(pygame.midi, "Input", busy)
    with pytest.raises(DeviceOpenError) as info:
        MidiInputDevice().open()
    assert info.value.kind is ErrorKind.DEVICE_OPEN_FAILED
    assert not isinstance(info.value, DeviceUnavailableError)


def test_reader_thread_delivers_triples(fake_midi) -> None:
    got = []
    done = threading.Event()

    def cb(status: int, note: int, vel: int) -> None:
        got.append((status, note, vel))
        if len(got) == 2:
            done.set()

    dev = MidiInputDevice(poll_interval=0.0005)
    dev.start(cb)
    assert dev.name == "Keys"
    assert done.wait(5)
    dev.stop()
    midi_in = dev.midi_in
    dev.close()
    assert got == [(0x90, 60, 100), (0x80, 60, 0)]
    assert midi_in.closed
    assert dev.midi_in is None
