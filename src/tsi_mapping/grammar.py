"""
Frame identifiers of the controller blob and which of them are containers.

    DIOM
      DIOI                 version
      DEVS                 count, DEVI...
        DEVI               device name, DDAT
          DDAT
            DDIF           device target
            DDIC           device comment
            DDPT           in/out port names
            DDDC
              DDCI / DDCO  count, DCDT...
            DDCB
              CMAS         count, CMAI...
                CMAI       binding id, io type, command id, CMAD
              DCBM         count, DCBM...      (the items reuse the list id)

Everything not listed in GRAMMAR is a leaf.
"""
from __future__ import annotations

from types import MappingProxyType

from .frames import Prefix

DEVICE_IO_MAPPINGS = "DIOM"
DEVICE_IO_INFO = "DIOI"
DEVICES = "DEVS"
DEVICE = "DEVI"
DEVICE_DATA = "DDAT"
DEVICE_TARGET = "DDIF"
DEVICE_COMMENT = "DDIC"
DEVICE_PORTS = "DDPT"
MIDI_DEFINITIONS = "DDDC"
MIDI_DEFINITIONS_IN = "DDCI"
MIDI_DEFINITIONS_OUT = "DDCO"
MIDI_DEFINITION = "DCDT"
COMMAND_BINDINGS = "DDCB"
MAPPINGS = "CMAS"
MAPPING = "CMAI"
MAPPING_SETTINGS = "CMAD"
MIDI_BINDINGS = "DCBM"

# CMAI: binding id, io type, command id
MAPPING_HEADER_SIZE = 12

GRAMMAR = MappingProxyType({
    (None, DEVICE_IO_MAPPINGS): Prefix(Prefix.NONE),
    (DEVICE_IO_MAPPINGS, DEVICES): Prefix(Prefix.COUNT),
    (DEVICES, DEVICE): Prefix(Prefix.WSTR),
    (DEVICE, DEVICE_DATA): Prefix(Prefix.NONE),
    (DEVICE_DATA, MIDI_DEFINITIONS): Prefix(Prefix.NONE),
    (MIDI_DEFINITIONS, MIDI_DEFINITIONS_IN): Prefix(Prefix.COUNT),
    (MIDI_DEFINITIONS, MIDI_DEFINITIONS_OUT): Prefix(Prefix.COUNT),
    (DEVICE_DATA, COMMAND_BINDINGS): Prefix(Prefix.NONE),
    (COMMAND_BINDINGS, MAPPINGS): Prefix(Prefix.COUNT),
    (MAPPINGS, MAPPING): Prefix.fixed_size(MAPPING_HEADER_SIZE),
    (COMMAND_BINDINGS, MIDI_BINDINGS): Prefix(Prefix.COUNT),
})
