# errors.py
from enum import Enum


class ErrorKind(Enum):
    OPEN_FAILED = "open failed"
    TRUNCATED_STREAM = "truncated stream"
    INVALID_HEADER = "invalid header"
    INVALID_TRACK_HEADER = "invalid track header"
    MALFORMED_HEADER = "malformed header"
    DEVICE_UNAVAILABLE = "device unavailable"
    DEVICE_OPEN_FAILED = "device open failed"
    INVALID_LAYOUT = "invalid layout"
    OUTPUT_UNAVAILABLE = "key output unavailable"


class MidikeysError(Exception):
    """Base error; every subclass carries one ErrorKind."""
    kind: ErrorKind

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.reason}"


# ---------- MIDI file ----------
class MidiFileError(MidikeysError):
    pass

class MidiOpenError(MidiFileError):
    kind = ErrorKind.OPEN_FAILED

class TruncatedStreamError(MidiFileError):
    kind = ErrorKind.TRUNCATED_STREAM

class InvalidHeaderError(MidiFileError):
    kind = ErrorKind.INVALID_HEADER

class InvalidTrackHeaderError(MidiFileError):
    kind = ErrorKind.INVALID_TRACK_HEADER

class MalformedHeaderError(MidiFileError):
    kind = ErrorKind.MALFORMED_HEADER


# ---------- MIDI device ----------
class MidiDeviceError(MidikeysError):
    pass

class DeviceUnavailableError(MidiDeviceError):
    kind = ErrorKind.DEVICE_UNAVAILABLE

class DeviceOpenError(MidiDeviceError):
    kind = ErrorKind.DEVICE_OPEN_FAILED


class LayoutError(MidikeysError, ValueError):
    kind = ErrorKind.INVALID_LAYOUT


class KeyOutputError(MidikeysError):
    kind = ErrorKind.OUTPUT_UNAVAILABLE
