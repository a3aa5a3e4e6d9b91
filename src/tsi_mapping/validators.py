from __future__ import annotations

from typing import Dict, List, Tuple

from .commands import is_known_name
from .enums import InteractionMode, MappingType, MidiEncoderMode
from .models import MappingFile

Issue = Tuple[str, str]  # (severity, message)


def _mode_name(mode: int) -> str:
    try:
        return MidiEncoderMode(mode).display_name
    except ValueError:
        return str(mode)


def validate_mapping_file(mf: MappingFile) -> List[Issue]:
    issues: List[Issue] = []

    for device in mf.devices:
        # one encoder mode per control and direction is stored; the first mapping sets it
        encoder_modes: Dict[Tuple[MappingType, str], MidiEncoderMode] = {}

        for i, m in enumerate(device.mappings):
            ctx = f"[{device.name} #{i} {m.command_name!r} {m.mapped_to_display}]"

            if not (1 <= m.midi_channel <= 16):
                issues.append(("error", f"{ctx} MIDI channel out of range: {m.midi_channel}"))

            if m.midi_note is not None and m.midi_cc is not None:
                issues.append(("error", f"{ctx} both note and CC assigned"))

            for label, number in (("note", m.midi_note), ("CC", m.midi_cc)):
                if number is not None and not (0 <= number <= 127):
                    issues.append(("error", f"{ctx} {label} number out of range: {number}"))

            for cond in (m.modifier1_condition, m.modifier2_condition):
                if cond is None:
                    continue
                if not (1 <= cond.modifier <= 8):
                    issues.append(("error", f"{ctx} modifier out of range: M{cond.modifier}"))
                if not (0 <= cond.value <= 7):
                    issues.append(("error", f"{ctx} modifier value out of range: {cond.value}"))

            if not m.command_name:
                issues.append(("warn", f"{ctx} no command assigned, saved as command id 0"))
            elif not is_known_name(m.command_name):
                issues.append(("warn", f"{ctx} command not in table"))

            control = m.midi_control_name
            if control is not None:
                first = encoder_modes.setdefault((m.io_type, control), m.encoder_mode)
                if first != m.encoder_mode:
                    issues.append((
                        "warn",
                        f"{ctx} encoder mode {_mode_name(m.encoder_mode)} "
                        f"will be saved as {_mode_name(first)} (shared control)",
                    ))

            # set_to_value is only meaningful in DIRECT
            if m.set_to_value != 0.0 and m.interaction_mode != InteractionMode.DIRECT:
                issues.append(("info", f"{ctx} set_to_value set but mode is not DIRECT"))

            # LED ranges only matter for outputs
            if m.io_type == MappingType.IN and (m.led_min_midi, m.led_max_midi) != (0, 127):
                issues.append(("info", f"{ctx} LED MIDI range set on IN mapping"))

            if not (0 <= m.led_min_midi <= 127 and 0 <= m.led_max_midi <= 127):
                issues.append(("error", f"{ctx} LED MIDI range out of bounds"))

    return issues
