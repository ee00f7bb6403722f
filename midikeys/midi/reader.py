# midi/reader.py
from typing import Optional
from midikeys.errors import TruncatedStreamError

VLQ_MAX_BYTES = 4  # MIDI VLQ 最多 4 bytes (28 bits)


class ByteReader:
    """Forward cursor over an in-memory buffer, bounded by ``end``.

    All multi-byte integers are big-endian (MIDI file order). Any read or
    relocation past the bound raises TruncatedStreamError.
    """
    def __init__(self, data: bytes, start: int = 0, end: Optional[int] = None):
        self.data = data
        self.start = start
        self.end = len(data) if end is None else end
        self.pos = start

    @property
    def remaining(self) -> int:
        return self.end - self.pos

    @property
    def at_end(self) -> bool:
        return self.pos >= self.end

    def tell(self) -> int:
        return self.pos

    def _need(self, n: int):
        if n > self.remaining:
            raise TruncatedStreamError(
                f"need {n} byte(s) at offset {self.pos}, only {max(0, self.remaining)} left"
            )

    # ---------- reads ----------
    def read_bytes(self, n: int) -> bytes:
        self._need(n)
        out = self.data[self.pos:self.pos + n]
        self.pos += n
        return out

    def read_byte(self) -> int:
        self._need(1)
        b = self.data[self.pos]
        self.pos += 1
        return b

    def peek_byte(self) -> int:
        self._need(1)
        return self.data[self.pos]

    def read_fixed(self, n: int) -> int:
        if n not in (2, 3, 4):
            raise ValueError(f"unsupported integer width: {n}")
        return int.from_bytes(self.read_bytes(n), "big")

    def read_var_length(self) -> int:
        value = 0
        for _ in range(VLQ_MAX_BYTES):
            b = self.read_byte()
            value = (value << 7) | (b & 0x7F)
            if not b & 0x80:
                break
        # continuation bit still set after 4 bytes: keep what we have
        return value

    # ---------- relocation ----------
    def skip(self, n: int):
        self._need(n)
        self.pos += n

    def seek(self, pos: int):
        if pos < self.start or pos > self.end:
            raise TruncatedStreamError(f"seek to {pos} outside [{self.start}, {self.end}]")
        self.pos = pos

    def back(self, n: int = 1):
        self.seek(self.pos - n)

    def sub_reader(self, length: int) -> "ByteReader":
        """Reader over the next ``length`` bytes; this cursor does not move."""
        self._need(length)
        return ByteReader(self.data, self.pos, self.pos + length)
