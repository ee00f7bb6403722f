import threading
from typing import List, Tuple

import pytest


class RecordingSink:
    """KeySink that remembers every (key, pressed) it was sent."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, bool]] = []
        self._lock = threading.Lock()

    def send(self, key: str, pressed: bool) -> None:
        with self._lock:
            self.sent.append((key, pressed))

    def for_key(self, key: str) -> List[bool]:
        return [p for k, p in self.sent if k == key]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
