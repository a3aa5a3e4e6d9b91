from __future__ import annotations

from enum import IntEnum


class DeviceTarget(IntEnum):
    """Device target (top-level device scope, DDIF)."""
    FOCUS = 0
    DECK_A = 1
    DECK_B = 2
    DECK_C = 3
    DECK_D = 4


class MidiEncoderMode(IntEnum):
    """Encoder delta coding as stored in MidiDefinition (DCDT)."""
    MODE_3FH_41H = 0
    MODE_7FH_01H = 1

    @property
    def display_name(self) -> str:
        return "3Fh/41h" if self is MidiEncoderMode.MODE_3FH_41H else "7Fh/01h"


class TargetAssignment(IntEnum):
    """
    Per-mapping target (the 'Deck' field inside CMAD).
    Values are the raw signed codes; anything else decodes to GLOBAL.
    """
    DEVICE_TARGET = -1
    GLOBAL = 0
    DECK_A = 1
    DECK_B = 2
    DECK_C = 3
    DECK_D = 4
    FX_UNIT_1 = 5
    FX_UNIT_2 = 6
    FX_UNIT_3 = 7
    FX_UNIT_4 = 8

    @property
    def display_name(self) -> str:
        if self is TargetAssignment.DEVICE_TARGET:
            return "Device Target"
        if self is TargetAssignment.GLOBAL:
            return "Global"
        if self <= TargetAssignment.DECK_D:
            return f"Deck {'ABCD'[self - 1]}"
        return f"FX Unit {self - 4}"


class InteractionMode(IntEnum):
    """Mapping interaction mode (CMAD); values are the raw codes."""
    TOGGLE = 1
    HOLD = 2
    DIRECT = 3
    RELATIVE = 4
    OUTPUT = 8


class ControllerType(IntEnum):
    """
    Controller type (CMAD). Decoding collapses ENCODER into FADER_OR_KNOB and
    LED into BUTTON; the values are the canonical codes used when writing.
    """
    BUTTON = 0
    FADER_OR_KNOB = 1
    ENCODER = 2
    LED = 65535


class MappingResolution(IntEnum):
    """
    Knob/encoder step size in the CMAD tail. Stored as the bit pattern of
    an f32 (1/64, 1/16, 1/8, 1/2), kept here as the raw DWORD.
    """
    FINE = 0x3C800000
    DEFAULT = 0x3D800000
    COARSE = 0x3E000000
    SWITCH = 0x3F000000


class MappingType(IntEnum):
    """Mapping direction (CMAI header)."""
    IN = 0
    OUT = 1
