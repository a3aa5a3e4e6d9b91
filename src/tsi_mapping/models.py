from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from .beio import to_f32
from .enums import (
    ControllerType,
    DeviceTarget,
    InteractionMode,
    MappingResolution,
    MappingType,
    MidiEncoderMode,
    TargetAssignment,
)
from .frames import Frame
from .midi import format_control_name, note_number_to_name

_FLOAT_FIELDS = (
    "set_to_value",
    "rotary_sensitivity",
    "rotary_acceleration",
    "led_min_controller",
    "led_max_controller",
)


@dataclass
class ModifierCondition:
    """Mapping is active only while modifier M<modifier> (1..8) holds <value> (0..7)."""
    modifier: int
    value: int

    @property
    def display_string(self) -> str:
        return f"M{self.modifier} = {self.value}"


@dataclass
class MappingEntry:
    """
    One controller-to-command binding.

    Notes
    -----
    - ``midi_note`` and ``midi_cc`` are mutually exclusive; both None means
      the mapping has no MIDI control assigned yet.
    - Float fields are kept at single precision, the width they have on disk.
    - ``*_raw`` fields remember the codes read from the file so an unedited
      entry is written back with the same codes. They take no part in equality.
    """

    command_name: str = ""
    io_type: MappingType = MappingType.IN
    assignment: TargetAssignment = TargetAssignment.GLOBAL
    interaction_mode: InteractionMode = InteractionMode.HOLD
    midi_channel: int = 1                                  # 1..16
    midi_note: Optional[int] = None                        # 0..127
    midi_cc: Optional[int] = None                          # 0..127
    modifier1_condition: Optional[ModifierCondition] = None
    modifier2_condition: Optional[ModifierCondition] = None
    controller_type: ControllerType = ControllerType.BUTTON
    invert: bool = False
    soft_takeover: bool = False
    auto_repeat: bool = False
    set_to_value: float = 0.0                              # Direct mode only
    rotary_sensitivity: float = 1.0
    rotary_acceleration: float = 0.0
    encoder_mode: MidiEncoderMode = MidiEncoderMode.MODE_7FH_01H
    comment: str = ""

    # LED/meter ranges (outputs)
    led_min_controller: float = 0.0
    led_max_controller: float = 1.0
    led_min_midi: int = 0
    led_max_midi: int = 127
    led_invert: bool = False
    led_blend: bool = False
    resolution: int = MappingResolution.DEFAULT

    # Local identity, never written to the file
    id: uuid.UUID = field(default_factory=uuid.uuid4, compare=False)

    command_id_raw: Optional[int] = field(default=None, compare=False, repr=False)
    controller_type_raw: Optional[int] = field(default=None, compare=False, repr=False)
    interaction_mode_raw: Optional[int] = field(default=None, compare=False, repr=False)
    assignment_raw: Optional[int] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.midi_note is not None and self.midi_cc is not None:
            raise ValueError("a mapping is either note- or CC-addressed, not both")
        for name in _FLOAT_FIELDS:
            setattr(self, name, to_f32(getattr(self, name)))

    @property
    def is_output(self) -> bool:
        return self.io_type == MappingType.OUT

    @property
    def has_midi_assignment(self) -> bool:
        return self.midi_note is not None or self.midi_cc is not None

    @property
    def midi_control_name(self) -> Optional[str]:
        """Traktor control string, e.g. "Ch01.CC.100" or "Ch09.Note.A#2"."""
        if self.midi_cc is not None:
            return format_control_name(self.midi_channel, True, self.midi_cc)
        if self.midi_note is not None:
            return format_control_name(self.midi_channel, False, self.midi_note)
        return None

    @property
    def mapped_to_display(self) -> str:
        channel = f"Ch{self.midi_channel:02d}"
        if self.midi_note is not None:
            return f"{channel} Note {note_number_to_name(self.midi_note)}"
        if self.midi_cc is not None:
            return f"{channel} CC {self.midi_cc:03d}"
        return f"{channel} --"


@dataclass
class Device:
    """A MIDI device section (DEVI) and its mappings."""
    name: str = ""
    comment: str = ""
    in_port: str = ""
    out_port: str = ""
    target: int = DeviceTarget.FOCUS
    mappings: List[MappingEntry] = field(default_factory=list)
    # DDAT children this codec does not model, re-emitted verbatim on write
    unknown_frames: List[Frame] = field(default_factory=list)


@dataclass
class MappingFile:
    """The whole controller configuration of one TSI document."""
    devices: List[Device] = field(default_factory=list)
    version: int = 0

    @property
    def all_mappings(self) -> List[MappingEntry]:
        return [m for d in self.devices for m in d.mappings]
