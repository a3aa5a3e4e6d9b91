"""
Raw CMAD/CMAI integer codes <-> domain enums.

Decoders are total: unknown codes fall back instead of raising. Encoders
take an optional ``raw`` code remembered from the file and keep it when it
still decodes to the value being written, so lossy decodes (encoder vs.
fader, increment modes, remix-slot targets) survive an unedited save.
"""
from __future__ import annotations

from typing import Optional

from .commands import MODIFIER_RANGE
from .enums import ControllerType, InteractionMode, TargetAssignment


def decode_interaction_mode(code: int, is_output: bool) -> InteractionMode:
    """Known codes map 1:1; anything else is HOLD for inputs and OUTPUT for outputs."""
    try:
        return InteractionMode(code)
    except ValueError:
        return InteractionMode.OUTPUT if is_output else InteractionMode.HOLD


def encode_interaction_mode(
    mode: InteractionMode, is_output: bool, raw: Optional[int] = None
) -> int:
    if raw is not None and decode_interaction_mode(raw, is_output) is mode:
        return raw
    return int(mode)


def decode_controller_type(code: int) -> ControllerType:
    # Encoders read back as faders, LEDs and unknown codes as buttons.
    if code in (ControllerType.FADER_OR_KNOB, ControllerType.ENCODER):
        return ControllerType.FADER_OR_KNOB
    return ControllerType.BUTTON


def encode_controller_type(ctype: ControllerType, raw: Optional[int] = None) -> int:
    """
    Canonical codes are the enum values (fader/knob -> 1, not 2). Whether
    Traktor prefers 1 or 2 for a plain fader is unverified; a raw code read
    from the file wins when it decodes to the same type.
    """
    if raw is not None and decode_controller_type(raw) is ctype:
        return raw
    return int(ctype)


def decode_assignment(code: int) -> TargetAssignment:
    try:
        return TargetAssignment(code)
    except ValueError:
        return TargetAssignment.GLOBAL


def encode_assignment(assignment: TargetAssignment, raw: Optional[int] = None) -> int:
    if raw is not None and decode_assignment(raw) is assignment:
        return raw
    return int(assignment)


def decode_modifier_id(code: int) -> Optional[int]:
    """Modifier slot 1..8 from a CMAD modifier id (command id 2548.. or a bare 1..8)."""
    if MODIFIER_RANGE.first <= code <= MODIFIER_RANGE.last:
        return code - MODIFIER_RANGE.first + 1
    if 1 <= code <= 8:
        return code
    return None


def encode_modifier_id(modifier: Optional[int]) -> int:
    if modifier is None:
        return 0
    return MODIFIER_RANGE.first + modifier - 1
