# output/keyboard.py
import logging
from typing import Protocol, Set

log = logging.getLogger(__name__)


class KeySink(Protocol):
    def send(self, key: str, pressed: bool) -> None: ...


class KeyboardSink:
    """
    系統鍵盤輸出（pynput）：
    - send(key, True/False) 送出按下/放開
    - key 是單一字元（'z', ',', '['）或 pynput Key 名稱（'space', 'enter'）
    - close() 放開所有還按著的鍵
    """
    def __init__(self):
        self.controller = None
        self._down: Set[str] = set()
        try:
            from pynput.keyboard import Controller
            self.controller = Controller()
            log.info("Using pynput keyboard controller")
        except Exception as e:
            # no display / no input backend
            log.error("Keyboard controller init failed: %s", e)

    @property
    def available(self) -> bool:
        return self.controller is not None

    @staticmethod
    def _resolve(key: str):
        from pynput.keyboard import Key, KeyCode
        if len(key) == 1:
            return KeyCode.from_char(key)
        try:
            return Key[key]
        except KeyError:
            raise ValueError(f"Unknown key name: {key}") from None

    def send(self, key: str, pressed: bool) -> None:
        if not self.controller:
            return
        try:
            k = self._resolve(key)
            if pressed:
                self.controller.press(k)
                self._down.add(key)
            else:
                self.controller.release(k)
                self._down.discard(key)
        except Exception as e:
            log.warning("send %r (%s) failed: %s", key, "down" if pressed else "up", e)

    def close(self):
        for key in list(self._down):
            self.send(key, False)
        self._down.clear()
        self.controller = None
