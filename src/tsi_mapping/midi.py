from __future__ import annotations

import re
from typing import NamedTuple, Optional

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

# e.g. F4, C#3, G-1 (Traktor often uses negative octaves)
_NOTE_NAME_RE = re.compile(r"^([A-Ga-g])([#b])?(-?\d+)$")

# Semitone map relative to C
_SEMITONE = {
    "C": 0, "C#": 1, "Db": 1,
    "D": 2, "D#": 3, "Eb": 3,
    "E": 4,
    "F": 5, "F#": 6, "Gb": 6,
    "G": 7, "G#": 8, "Ab": 8,
    "A": 9, "A#": 10, "Bb": 10,
    "B": 11,
}


class MidiControl(NamedTuple):
    channel: int
    is_cc: bool
    number: Optional[int]


def note_name_to_number(note_name: str) -> Optional[int]:
    """
    Convert musical note like 'F4', 'C#3', 'G-1' to a MIDI number using C-1 = 0.
    Formula: number = (octave + 1) * 12 + semitone
    """
    m = _NOTE_NAME_RE.match(note_name.strip())
    if not m:
        return None
    key = m.group(1).upper() + (m.group(2) or "")
    if key not in _SEMITONE:
        return None
    return (int(m.group(3)) + 1) * 12 + _SEMITONE[key]  # C-1 -> 0


def note_number_to_name(number: int) -> str:
    """60 -> 'C4', 0 -> 'C-1'."""
    return f"{NOTE_NAMES[number % 12]}{number // 12 - 1}"


def parse_control_name(name: Optional[str]) -> MidiControl:
    """
    Parses control strings like:
        "Ch07.CC.064"   -> (7, True, 64)
        "Ch05.Note.C#3" -> (5, False, 49)
        "garbage"       -> (1, False, None)

    Never raises: the channel defaults to 1 and the number to None.
    """
    if not name:
        return MidiControl(1, False, None)

    channel = 1
    ch = name.find("Ch")
    if ch >= 0:
        dot = name.find(".", ch + 2)
        if dot >= 0:
            try:
                channel = int(name[ch + 2 : dot])
            except ValueError:
                pass

    if ".CC." in name:
        tail = name.split(".CC.", 1)[1].strip()
        try:
            return MidiControl(channel, True, int(tail))
        except ValueError:
            return MidiControl(channel, True, None)

    if ".Note." in name:
        tail = name.split(".Note.", 1)[1]
        return MidiControl(channel, False, note_name_to_number(tail))

    return MidiControl(channel, False, None)


def format_control_name(channel: int, is_cc: bool, number: int) -> str:
    """Inverse of parse_control_name: (9, True, 16) -> 'Ch09.CC.016'."""
    if is_cc:
        return f"Ch{channel:02d}.CC.{number:03d}"
    return f"Ch{channel:02d}.Note.{note_number_to_name(number)}"
