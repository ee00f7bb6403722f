# midi/parser.py
import logging
from typing import List

from midikeys.errors import InvalidHeaderError, MalformedHeaderError, MidiOpenError
from midikeys.midi.reader import ByteReader
from midikeys.midi.tempo import TempoMap, build_timeline
from midikeys.midi.track import scan_track
from midikeys.notes.model import MidiSong, RawEvent

log = logging.getLogger(__name__)

HEADER_MAGIC = b"MThd"
HEADER_MIN_LEN = 6


def parse_midi_bytes(data: bytes) -> MidiSong:
    """Decode a Standard MIDI File into one time-ordered event list.

    Any error aborts the whole parse; there is no partial result.
    """
    r = ByteReader(data)
    magic = r.read_bytes(4)
    if magic != HEADER_MAGIC:
        raise InvalidHeaderError(f"expected {HEADER_MAGIC!r}, got {magic!r}")

    header_len = r.read_fixed(4)
    header_start = r.tell()
    fmt = r.read_fixed(2)
    track_count = r.read_fixed(2)
    tpqn = r.read_fixed(2)
    if header_len > HEADER_MIN_LEN:
        r.seek(header_start + header_len)

    if tpqn == 0:
        raise MalformedHeaderError("ticks per quarter note is 0")
    if tpqn & 0x8000:
        log.warning("division 0x%04X looks like SMPTE timing; treating it as ticks per quarter", tpqn)

    raw: List[RawEvent] = []
    tempo_tracks = []
    for i in range(track_count):
        scan = scan_track(r, i)
        raw.extend(scan.events)
        tempo_tracks.append(scan.tempo_changes)

    tempo_map = TempoMap.build(tempo_tracks, tpqn)
    events = build_timeline(raw, tempo_map)
    log.debug("format %d, %d tracks, tpqn %d: %d events, %d tempo changes",
              fmt, track_count, tpqn, len(events), len(tempo_map.changes))
    return MidiSong(
        format=fmt,
        track_count=track_count,
        tpqn=tpqn,
        tempo_map=tempo_map.changes,
        events=events,
    )


def parse_midi(path: str) -> MidiSong:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise MidiOpenError(f"failed to open {path}: {e.strerror or e}") from e
    song = parse_midi_bytes(data)
    log.info("loaded %s: %d events, %.1f s", path, len(song.events), song.duration_ms / 1000)
    return song
