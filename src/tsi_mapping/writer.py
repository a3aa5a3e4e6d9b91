from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from . import grammar as g
from .beio import BEW
from .commands import id_for_name, name_for_id
from .enums import MappingType
from .frames import ContainerNode, Frame, FrameNode, LeafNode, serialize_tree
from .models import Device, MappingEntry, MappingFile
from .transcode import (
    encode_assignment,
    encode_controller_type,
    encode_interaction_mode,
    encode_modifier_id,
)

logger = logging.getLogger(__name__)

# CMAI binding id of a mapping with no MIDI control assigned
NO_BINDING = 0xFFFFFFFF


def _leaf(id4: str, w: BEW) -> LeafNode:
    return LeafNode(Frame(id4, w.getvalue()))


def _count(n: int) -> bytes:
    return BEW().u32(n).getvalue()


def command_id_for(entry: MappingEntry) -> int:
    """Raw id from the file while the name still matches it, else the table id."""
    raw = entry.command_id_raw
    if raw is not None and name_for_id(raw) == entry.command_name:
        return raw
    return id_for_name(entry.command_name)


class TsiWriter:
    """
    Serializes a MappingFile into the controller blob:
    DIOM > DIOI + DEVS > DEVI > DDAT > (DDIF, DDIC, DDPT, DDDC, DDCB, unknown...)
    """

    def __init__(self, version: Optional[int] = None) -> None:
        self._version = version

    # ---------- Public API ----------

    def write(self, mapping_file: MappingFile) -> bytes:
        blob = serialize_tree(self.build_tree(mapping_file))
        logger.debug(
            "wrote %d devices, %d mappings, %d bytes",
            len(mapping_file.devices), len(mapping_file.all_mappings), len(blob),
        )
        return blob

    def build_tree(self, mapping_file: MappingFile) -> List[FrameNode]:
        version = mapping_file.version if self._version is None else self._version
        devices = tuple(self._build_device(d) for d in mapping_file.devices)
        root = ContainerNode(g.DEVICE_IO_MAPPINGS, b"", (
            _leaf(g.DEVICE_IO_INFO, BEW().u32(version)),
            ContainerNode(g.DEVICES, _count(len(devices)), devices),
        ))
        return [root]

    # ---------- Devices ----------

    def _build_device(self, device: Device) -> ContainerNode:
        name = BEW().wstr_prefixed(device.name).getvalue()
        return ContainerNode(g.DEVICE, name, (self._build_device_data(device),))

    def _build_device_data(self, device: Device) -> ContainerNode:
        bindings = self._binding_ids(device.mappings)
        children: List[FrameNode] = [
            _leaf(g.DEVICE_TARGET, BEW().u32(int(device.target))),
            _leaf(g.DEVICE_COMMENT, BEW().wstr_prefixed(device.comment)),
            _leaf(g.DEVICE_PORTS, BEW().wstr_prefixed(device.in_port).wstr_prefixed(device.out_port)),
            self._build_midi_definitions(device.mappings),
            self._build_command_bindings(device.mappings, bindings),
        ]
        children.extend(LeafNode(f) for f in device.unknown_frames)
        return ContainerNode(g.DEVICE_DATA, b"", tuple(children))

    @staticmethod
    def _binding_ids(mappings: List[MappingEntry]) -> Dict[str, int]:
        """Control name -> binding id, numbered in order of first use."""
        ids: Dict[str, int] = {}
        for m in mappings:
            name = m.midi_control_name
            if name is not None and name not in ids:
                ids[name] = len(ids)
        return ids

    # ---------- MIDI definitions ----------

    def _build_midi_definitions(self, mappings: List[MappingEntry]) -> ContainerNode:
        lists = []
        for id4, direction in ((g.MIDI_DEFINITIONS_IN, MappingType.IN), (g.MIDI_DEFINITIONS_OUT, MappingType.OUT)):
            # first mapping using a control decides its encoder mode
            modes: Dict[str, int] = {}
            for m in mappings:
                name = m.midi_control_name
                if name is not None and m.io_type == direction:
                    modes.setdefault(name, int(m.encoder_mode))
            items = tuple(
                _leaf(g.MIDI_DEFINITION, BEW().wstr_prefixed(name).u32(0).u32(0).f32(0.0).u32(mode).s32(-1))
                for name, mode in modes.items()
            )
            lists.append(ContainerNode(id4, _count(len(items)), items))
        return ContainerNode(g.MIDI_DEFINITIONS, b"", tuple(lists))

    # ---------- Mappings ----------

    def _build_command_bindings(
        self, mappings: List[MappingEntry], bindings: Dict[str, int]
    ) -> ContainerNode:
        cmai = tuple(self._build_mapping(m, bindings) for m in mappings)
        dcbm = tuple(
            _leaf(g.MIDI_BINDINGS, BEW().u32(bid).wstr_prefixed(name))
            for name, bid in bindings.items()
        )
        return ContainerNode(g.COMMAND_BINDINGS, b"", (
            ContainerNode(g.MAPPINGS, _count(len(cmai)), cmai),
            ContainerNode(g.MIDI_BINDINGS, _count(len(dcbm)), dcbm),
        ))

    def _build_mapping(self, m: MappingEntry, bindings: Dict[str, int]) -> ContainerNode:
        name = m.midi_control_name
        header = (
            BEW()
            .u32(NO_BINDING if name is None else bindings[name])
            .u32(int(m.io_type))
            .s32(command_id_for(m))
            .getvalue()
        )
        return ContainerNode(g.MAPPING, header, (_leaf(g.MAPPING_SETTINGS, self._settings(m)),))

    @staticmethod
    def _settings(m: MappingEntry) -> BEW:
        mods: List[Tuple[int, int]] = []
        for cond in (m.modifier1_condition, m.modifier2_condition):
            if cond is None:
                mods.append((0, 0))
            else:
                mods.append((encode_modifier_id(cond.modifier), cond.value))

        w = BEW()
        w.u32(4)  # unknown1, always 4
        w.u32(encode_controller_type(m.controller_type, m.controller_type_raw))
        w.u32(encode_interaction_mode(m.interaction_mode, m.is_output, m.interaction_mode_raw))
        w.s32(encode_assignment(m.assignment, m.assignment_raw))
        w.u32(int(m.auto_repeat))
        w.u32(int(m.invert))
        w.u32(int(m.soft_takeover))
        w.f32(m.rotary_sensitivity)
        w.f32(m.rotary_acceleration)
        w.u32(0).u32(0)  # unknown10, unknown11
        w.f32(m.set_to_value)
        w.wstr_prefixed(m.comment)
        w.u32(mods[0][0]).u32(0).u32(mods[0][1])
        w.u32(mods[1][0]).u32(0).u32(mods[1][1])
        w.u32(0)  # unknown20

        # LED/resolution tail
        w.f32(m.led_min_controller)
        w.u32(0)  # unknown22
        w.f32(m.led_max_controller)
        w.u32(m.led_min_midi)
        w.u32(m.led_max_midi)
        w.u32(int(m.led_invert))
        w.u32(int(m.led_blend))
        w.u32(0)  # unknown29
        w.u32(int(m.resolution))
        w.u32(0)  # unknown30
        return w
