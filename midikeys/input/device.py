# input/device.py
import logging
import threading
from typing import Callable, List, Optional, Tuple

import pygame.midi

from midikeys.errors import DeviceOpenError, DeviceUnavailableError

log = logging.getLogger(__name__)

Callback = Callable[[int, int, int], None]


def list_input_devices() -> List[Tuple[int, str]]:
    """(device id, name) for every MIDI input; pygame.midi must be initialised."""
    out = []
    for i in range(pygame.midi.get_count()):
        _interf, name, is_input, _is_output, _opened = pygame.midi.get_device_info(i)
        if is_input:
            out.append((i, name.decode("utf-8", "replace") if isinstance(name, bytes) else str(name)))
    return out


class MidiInputDevice:
    """
    pygame.midi 輸入裝置：
    - open() 找裝置並開啟（沒有裝置 / 開不起來 是兩種錯誤）
    - start(cb) 開背景執行緒 poll，收到的 (status, note, velocity) 丟給 cb
    - stop() 保證 return 之後不會再呼叫 cb
    """
    def __init__(self, device_id: Optional[int] = None, poll_interval: float = 0.001, read_size: int = 64):
        self.device_id = device_id
        self.poll_interval = poll_interval
        self.read_size = read_size
        self.midi_in = None
        self.name = ""
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def open(self):
        pygame.midi.init()
        inputs = list_input_devices()
        if not inputs:
            pygame.midi.quit()
            raise DeviceUnavailableError("no MIDI input devices")

        dev = self.device_id
        if dev is None:
            dev = pygame.midi.get_default_input_id()
            if dev == -1:
                dev = inputs[0][0]
        try:
            self.midi_in = pygame.midi.Input(dev, self.read_size)
        except Exception as e:
            pygame.midi.quit()
            raise DeviceOpenError(f"failed to open MIDI input {dev}: {e}") from e
        self.device_id = dev
        self.name = dict(inputs).get(dev, str(dev))
        log.info("Opened MIDI input %d (%s)", dev, self.name)

    def start(self, callback: Callback):
        if self.midi_in is None:
            self.open()
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, args=(callback,), name="midikeys-midi-in", daemon=True)
        self._thread.start()

    def _run(self, callback: Callback):
        while not self._stop.is_set():
            if not self.midi_in.poll():
                self._stop.wait(self.poll_interval)
                continue
            for data, _timestamp in self.midi_in.read(self.read_size):
                if self._stop.is_set():
                    return
                callback(data[0], data[1], data[2])

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def close(self):
        self.stop()
        if self.midi_in is not None:
            try:
                self.midi_in.close()
            finally:
                self.midi_in = None
                pygame.midi.quit()
