# ========================= input/keymap.py =========================
import json
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from midikeys.errors import LayoutError

# 完整配置：C3..C6，黑鍵也有對應
FULL_LAYOUT: Mapping[int, str] = MappingProxyType({
    48: ",", 49: "l", 50: ".", 51: ";", 52: "/", 53: "o",
    54: "0", 55: "p", 56: "-", 57: "[", 58: "=", 59: "]",
    60: "z", 61: "s", 62: "x", 63: "d", 64: "c", 65: "v",   # C4
    66: "g", 67: "b", 68: "h", 69: "n", 70: "j", 71: "m",
    72: "q", 73: "2", 74: "w", 75: "3", 76: "e", 77: "r",   # C5
    78: "5", 79: "t", 80: "6", 81: "y", 82: "7", 83: "u",
    84: "i",                                                # C6
})

# 只有白鍵：C4..C6
WHITES_LAYOUT: Mapping[int, str] = MappingProxyType({
    60: "a", 62: "s", 64: "d", 65: "f", 67: "g", 69: "h", 71: "j",
    72: "q", 74: "w", 76: "e", 77: "r", 79: "t", 81: "y", 83: "u",
    84: "i",
})

LAYOUTS = {"full": FULL_LAYOUT, "whites": WHITES_LAYOUT}


class NoteMapper:
    """Note number -> key identifier, over a table fixed at construction."""
    def __init__(self, table: Mapping[int, str]):
        self._table = MappingProxyType(dict(table))

    @classmethod
    def for_layout(cls, mode: str) -> "NoteMapper":
        try:
            return cls(LAYOUTS[mode])
        except KeyError:
            raise LayoutError(f"unknown layout {mode!r} (expected one of {sorted(LAYOUTS)})") from None

    @property
    def table(self) -> Mapping[int, str]:
        return self._table

    def map_note(self, note: int) -> Optional[str]:
        return self._table.get(note)

    def __contains__(self, note: int) -> bool:
        return note in self._table

    def __len__(self) -> int:
        return len(self._table)


def serialize_layout(table: Mapping[int, str]) -> dict:
    """JSON 的 key 只能是字串：note -> key。"""
    return {str(note): key for note, key in sorted(table.items())}

def deserialize_layout(obj: dict) -> Dict[int, str]:
    if not isinstance(obj, dict):
        raise LayoutError("layout JSON must be an object of note -> key")
    out: Dict[int, str] = {}
    for note, key in obj.items():
        try:
            n = int(note)
        except ValueError:
            raise LayoutError(f"note {note!r} is not an integer") from None
        if not 0 <= n <= 127:
            raise LayoutError(f"note {n} outside 0..127")
        if not isinstance(key, str) or not key:
            raise LayoutError(f"note {n}: key must be a non-empty string")
        out[n] = key
    return out

def save_layout(path: str, table: Mapping[int, str]):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(serialize_layout(table), f, ensure_ascii=False, indent=2)

def load_layout(path: str) -> NoteMapper:
    with open(path, "r", encoding="utf-8") as f:
        try:
            obj = json.load(f)
        except json.JSONDecodeError as e:
            raise LayoutError(f"{path}: {e}") from e
    return NoteMapper(deserialize_layout(obj))
