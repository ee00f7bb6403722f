# midi/track.py
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from midikeys.errors import InvalidTrackHeaderError, TruncatedStreamError
from midikeys.midi.reader import ByteReader
from midikeys.notes.model import RawEvent, TempoChange

log = logging.getLogger(__name__)

TRACK_MAGIC = b"MTrk"

NOTE_OFF = 0x80
NOTE_ON = 0x90
META = 0xFF
META_SET_TEMPO = 0x51
SYSEX = 0xF0
SYSEX_ESCAPE = 0xF7

TICK_MASK = 0xFFFFFFFF  # ticks are u32 and wrap

# channel messages we don't care about -> data byte count
CHANNEL_DATA_LEN = {
    0xA0: 2,  # poly aftertouch
    0xB0: 2,  # control change
    0xC0: 1,  # program change
    0xD0: 1,  # channel aftertouch
    0xE0: 2,  # pitch bend
}


@dataclass
class TrackScan:
    index: int
    events: List[RawEvent] = field(default_factory=list)
    tempo_changes: List[TempoChange] = field(default_factory=list)
    end_tick: int = 0
    truncated: bool = False  # last event ran past the declared length


def scan_track(reader: ByteReader, index: int = 0) -> TrackScan:
    """Scan one MTrk chunk starting at the reader's position.

    On return the reader sits exactly at the chunk's declared end, no matter
    how many bytes the event stream actually used.
    """
    magic = reader.read_bytes(4)
    if magic != TRACK_MAGIC:
        raise InvalidTrackHeaderError(f"track {index}: expected {TRACK_MAGIC!r}, got {magic!r}")
    length = reader.read_fixed(4)
    chunk = reader.sub_reader(length)

    scan = TrackScan(index=index)
    try:
        _scan_events(chunk, scan)
    except TruncatedStreamError:
        # 尾端資料不完整：丟掉半個事件，照宣告長度跳到下一軌
        scan.truncated = True
        log.warning("track %d: event at offset %d runs past declared length %d, ignored",
                    index, chunk.tell(), length)

    reader.seek(chunk.end)
    log.debug("track %d: %d notes, %d tempo changes, end tick %d",
              index, len(scan.events), len(scan.tempo_changes), scan.end_tick)
    return scan


def _scan_events(r: ByteReader, scan: TrackScan):
    tick = 0
    last_status: Optional[int] = None

    while not r.at_end:
        tick = (tick + r.read_var_length()) & TICK_MASK
        scan.end_tick = tick

        status = r.read_byte()
        if status < 0x80:
            # running status: the byte is data for the previous status
            r.back()
            status = last_status
            if status is None:
                continue
        else:
            last_status = status

        kind = status & 0xF0
        if kind in (NOTE_ON, NOTE_OFF):
            note = r.read_byte()
            vel = r.read_byte()
            scan.events.append(RawEvent(tick, note, kind == NOTE_ON and vel > 0))
        elif status == META:
            meta_type = r.read_byte()
            n = r.read_var_length()
            if meta_type == META_SET_TEMPO and n == 3:
                scan.tempo_changes.append(TempoChange(tick, r.read_fixed(3)))
            else:
                r.skip(n)
        elif kind in CHANNEL_DATA_LEN:
            r.skip(CHANNEL_DATA_LEN[kind])
        elif status in (SYSEX, SYSEX_ESCAPE):
            r.skip(r.read_var_length())
