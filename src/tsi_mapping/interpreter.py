from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from . import grammar as g
from .beio import BER
from .commands import name_for_id
from .enums import (
    DeviceTarget,
    InteractionMode,
    MappingResolution,
    MappingType,
    MidiEncoderMode,
)
from .exceptions import UnsupportedFrameGrammar
from .frames import ContainerNode, FrameNode, build_tree
from .midi import parse_control_name
from .models import Device, MappingEntry, MappingFile, ModifierCondition
from .transcode import (
    decode_assignment,
    decode_controller_type,
    decode_interaction_mode,
    decode_modifier_id,
)

logger = logging.getLogger(__name__)

# LED/resolution tail of CMAD: 10 x 4 bytes
_LED_TAIL_SIZE = 40


def _cast(enum_cls, value: int):
    """Enum member when the value is known, the raw int otherwise."""
    try:
        return enum_cls(value)
    except ValueError:
        return value


class TsiInterpreter:
    """
    Builds a MappingFile from the controller-blob frame tree.

    - Walks DIOM > DEVS > DEVI > DDAT
    - Handles CMAS/DCBM order in DDCB (bindings are collected first)
    - Reads DDDC (MIDI definitions) to attach the encoder mode per control
    - Reads the CMAD LED/resolution tail only when complete and sane
    - Skips unknown frames; unknown DDAT children stay on the Device
    - Remembers raw codes (*_raw) so lossy decodes can be written back unchanged
    """

    def __init__(self, strict_counts: bool = False) -> None:
        self._strict_counts = strict_counts

    # ---------- Public API ----------

    def parse(self, blob: bytes) -> MappingFile:
        return self.interpret(build_tree(blob, g.GRAMMAR))

    def interpret(self, nodes: Sequence[FrameNode]) -> MappingFile:
        if not nodes:
            return MappingFile()

        roots = [n for n in nodes if isinstance(n, ContainerNode) and n.id4 == g.DEVICE_IO_MAPPINGS]
        if not roots:
            ids = ", ".join(n.id4 for n in nodes)
            raise UnsupportedFrameGrammar(f"no {g.DEVICE_IO_MAPPINGS} frame among top-level frames ({ids})")

        mf = MappingFile()
        for root in roots:
            for child in root.children:
                if child.id4 == g.DEVICE_IO_INFO:
                    mf.version = BER(child.to_frame().payload).u32()
                elif child.id4 == g.DEVICES and isinstance(child, ContainerNode):
                    mf.devices.extend(self._parse_devices(child))
                else:
                    self._skip(child, root)
        return mf

    # ---------- Internal: devices ----------

    def _parse_devices(self, node: ContainerNode) -> List[Device]:
        devices: List[Device] = []
        for child in node.children:
            if child.id4 == g.DEVICE and isinstance(child, ContainerNode):
                devices.append(self._parse_device(child))
            else:
                self._skip(child, node)
        self._check_count(node, len(devices))
        return devices

    def _parse_device(self, node: ContainerNode) -> Device:
        # Device name (UTF-16 **BE**, prefixed char count)
        device = Device(name=BER(node.prefix).wstr_prefixed())
        for child in node.children:
            if child.id4 == g.DEVICE_DATA and isinstance(child, ContainerNode):
                self._parse_device_data(child, device)
            else:
                self._skip(child, node)
        logger.debug("device %r: %d mappings", device.name, len(device.mappings))
        return device

    def _parse_device_data(self, node: ContainerNode, device: Device) -> None:
        # name -> encoder mode, per direction
        midi_defs: Dict[MappingType, Dict[str, int]] = {MappingType.IN: {}, MappingType.OUT: {}}
        command_bindings: List[ContainerNode] = []

        for child in node.children:
            if child.id4 == g.DEVICE_TARGET:
                device.target = _cast(DeviceTarget, BER(child.frame.payload).u32())

            elif child.id4 == g.DEVICE_COMMENT:
                device.comment = BER(child.frame.payload).wstr_prefixed()

            elif child.id4 == g.DEVICE_PORTS:
                r = BER(child.frame.payload)
                device.in_port = r.wstr_prefixed()
                device.out_port = r.wstr_prefixed()

            elif child.id4 == g.MIDI_DEFINITIONS and isinstance(child, ContainerNode):
                self._parse_midi_definitions(child, midi_defs)

            elif child.id4 == g.COMMAND_BINDINGS and isinstance(child, ContainerNode):
                command_bindings.append(child)

            else:
                logger.debug("keeping unknown %s child %r", g.DEVICE_DATA, child.id4)
                device.unknown_frames.append(child.to_frame())

        # DDDC normally precedes DDCB, but do not depend on it
        for ddcb in command_bindings:
            device.mappings.extend(self._parse_mappings_container(ddcb, midi_defs))

    # ---------- MIDI definitions (DDDC -> DDCI/DDCO with DCDT entries) ----------

    def _parse_midi_definitions(
        self, node: ContainerNode, out: Dict[MappingType, Dict[str, int]]
    ) -> None:
        """
        Structure:
          DDDC {
            DDCI { count; repeat count: DCDT ... }
            DDCO { count; repeat count: DCDT ... }
          }
        DCDT: name, u32, u32, f32 default velocity, u32 encoder mode, s32 control id
        """
        for lst in node.children:
            if lst.id4 == g.MIDI_DEFINITIONS_IN:
                direction = MappingType.IN
            elif lst.id4 == g.MIDI_DEFINITIONS_OUT:
                direction = MappingType.OUT
            else:
                self._skip(lst, node)
                continue

            found = 0
            for item in lst.children:
                if item.id4 != g.MIDI_DEFINITION:
                    self._skip(item, lst)
                    continue
                r = BER(item.frame.payload)
                name = r.wstr_prefixed()
                _unk1 = r.u32()
                _unk2 = r.u32()
                _velocity = r.f32()
                out[direction][name] = r.u32()
                found += 1
            self._check_count(lst, found)

    # ---------- Mappings container (bindings first, then mappings) ----------

    def _parse_mappings_container(
        self, node: ContainerNode, midi_defs: Dict[MappingType, Dict[str, int]]
    ) -> List[MappingEntry]:
        # Pass A: binding id -> control name from every DCBM list
        midi_bindings: Dict[int, str] = {}
        for lst in node.children_of(g.MIDI_BINDINGS):
            found = 0
            for item in lst.children:
                if item.id4 != g.MIDI_BINDINGS:
                    self._skip(item, lst)
                    continue
                r = BER(item.frame.payload)
                binding_id = r.u32()
                midi_bindings[binding_id] = r.wstr_prefixed()
                found += 1
            self._check_count(lst, found)

        # Pass B: every CMAS list
        rows: List[MappingEntry] = []
        for child in node.children:
            if child.id4 == g.MAPPINGS:
                rows.extend(self._read_mappings_list(child, midi_bindings, midi_defs))
            elif child.id4 != g.MIDI_BINDINGS:
                self._skip(child, node)
        return rows

    def _read_mappings_list(
        self,
        node: ContainerNode,
        midi_bindings: Dict[int, str],
        midi_defs: Dict[MappingType, Dict[str, int]],
    ) -> List[MappingEntry]:
        out: List[MappingEntry] = []
        for item in node.children:
            if item.id4 == g.MAPPING and isinstance(item, ContainerNode):
                out.append(self._read_mapping(item, midi_bindings, midi_defs))
            else:
                self._skip(item, node)
        self._check_count(node, len(out))
        return out

    # ---------- One mapping (CMAI/CMAD) ----------

    def _read_mapping(
        self,
        node: ContainerNode,
        midi_bindings: Dict[int, str],
        midi_defs: Dict[MappingType, Dict[str, int]],
    ) -> MappingEntry:
        r = BER(node.prefix)
        midi_binding_id = r.u32()
        io_type = MappingType.OUT if r.u32() == MappingType.OUT else MappingType.IN
        command_id = r.s32()

        settings = node.child(g.MAPPING_SETTINGS)
        if settings is None:
            logger.debug("%s without %s for command %d", g.MAPPING, g.MAPPING_SETTINGS, command_id)
            fields = self._read_settings(b"", io_type)
        else:
            fields = self._read_settings(settings.to_frame().payload, io_type)

        control_name = midi_bindings.get(midi_binding_id)
        ctrl = parse_control_name(control_name)
        # a name without a usable number is unassigned, channel and encoder mode included
        if ctrl.number is not None:
            fields["midi_channel"] = ctrl.channel
            fields["midi_cc" if ctrl.is_cc else "midi_note"] = ctrl.number
            encoder_mode = midi_defs[io_type].get(control_name)
            if encoder_mode is not None:
                fields["encoder_mode"] = _cast(MidiEncoderMode, encoder_mode)

        return MappingEntry(
            command_name=name_for_id(command_id),
            io_type=io_type,
            command_id_raw=command_id,
            **fields,
        )

    def _read_settings(self, payload: bytes, io_type: MappingType) -> Dict[str, Any]:
        """CMAD fields as MappingEntry keyword arguments. Safe if truncated."""
        sr = BER(payload)
        is_output = io_type == MappingType.OUT

        def _u32() -> Optional[int]:
            return sr.u32() if sr.remain() >= 4 else None

        def _s32() -> Optional[int]:
            return sr.s32() if sr.remain() >= 4 else None

        def _f32() -> Optional[float]:
            return sr.f32() if sr.remain() >= 4 else None

        def _wstr() -> Optional[str]:
            if sr.remain() < 4:
                return None
            n = sr.u32()
            raw = sr.bytes(min(n * 2, sr.remain()))
            return raw.decode("utf-16-be", errors="ignore")

        # ---- CMAD fixed head ----
        _unknown1 = _u32()
        controller_type = _u32()
        interaction_mode = _u32()
        deck = _s32()
        auto_repeat = _u32()
        invert = _u32()
        soft_takeover = _u32()
        rotary_sensitivity = _f32()
        rotary_acceleration = _f32()
        _unknown10 = _u32()
        _unknown11 = _u32()
        set_to_value = _f32()
        comment = _wstr()
        mod1_id = _u32()
        _unk15 = _u32()
        mod1_val = _u32()
        mod2_id = _u32()
        _unk18 = _u32()
        mod2_val = _u32()
        _unk20 = _u32()

        fields: Dict[str, Any] = {
            "interaction_mode": InteractionMode.OUTPUT if is_output else InteractionMode.HOLD,
        }
        if controller_type is not None:
            fields["controller_type"] = decode_controller_type(controller_type)
            fields["controller_type_raw"] = controller_type
        if interaction_mode is not None:
            fields["interaction_mode"] = decode_interaction_mode(interaction_mode, is_output)
            fields["interaction_mode_raw"] = interaction_mode
        if deck is not None:
            fields["assignment"] = decode_assignment(deck)
            fields["assignment_raw"] = deck
        for key, flag in (("auto_repeat", auto_repeat), ("invert", invert), ("soft_takeover", soft_takeover)):
            if flag is not None:
                fields[key] = bool(flag)
        for key, value in (
            ("rotary_sensitivity", rotary_sensitivity),
            ("rotary_acceleration", rotary_acceleration),
            ("set_to_value", set_to_value),
        ):
            if value is not None:
                fields[key] = value
        if comment:
            fields["comment"] = comment

        for key, mod_id, mod_val in (
            ("modifier1_condition", mod1_id, mod1_val),
            ("modifier2_condition", mod2_id, mod2_val),
        ):
            slot = decode_modifier_id(mod_id) if mod_id is not None else None
            if slot is not None and mod_val is not None:
                fields[key] = ModifierCondition(slot, mod_val)

        # ---- CMAD LED/resolution tail ----
        if sr.remain() >= _LED_TAIL_SIZE:
            tail = BER(payload, sr.tell(), sr.tell() + _LED_TAIL_SIZE)
            led_min_controller = tail.f32()
            _ = tail.u32()  # unknown22
            led_max_controller = tail.f32()
            led_min_midi = tail.u32()
            led_max_midi = tail.u32()
            led_invert = tail.u32()
            led_blend = tail.u32()
            _ = tail.u32()  # unknown29
            resolution = tail.u32()
            _ = tail.u32()  # unknown30

            if 0 <= led_min_midi <= 127 and 0 <= led_max_midi <= 127:
                fields.update(
                    led_min_controller=led_min_controller,
                    led_max_controller=led_max_controller,
                    led_min_midi=led_min_midi,
                    led_max_midi=led_max_midi,
                    led_invert=bool(led_invert),
                    led_blend=bool(led_blend),
                    resolution=_cast(MappingResolution, resolution),
                )
            else:
                logger.warning(
                    "ignoring %s LED tail with MIDI range %d..%d",
                    g.MAPPING_SETTINGS, led_min_midi, led_max_midi,
                )

        return fields

    # ---------- Helpers ----------

    def _check_count(self, node: ContainerNode, found: int) -> None:
        """Compare a list's u32 count prefix with the items actually present."""
        if len(node.prefix) < 4:
            return
        declared = BER(node.prefix).u32()
        if declared == found:
            return
        msg = f"{node.id4} declares {declared} items, found {found}"
        if self._strict_counts:
            raise UnsupportedFrameGrammar(msg)
        logger.warning(msg)

    @staticmethod
    def _skip(node: FrameNode, parent: FrameNode) -> None:
        logger.debug("skipping unknown frame %r in %r", node.id4, parent.id4)
