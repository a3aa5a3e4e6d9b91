import logging
import struct

import pytest

from tsi_mapping import grammar as g
from tsi_mapping.codec import parse, parse_blob, write, write_blob
from tsi_mapping.enums import (
    ControllerType,
    DeviceTarget,
    InteractionMode,
    MappingResolution,
    MappingType,
    MidiEncoderMode,
    TargetAssignment,
)
from tsi_mapping.exceptions import UnsupportedFrameGrammar
from tsi_mapping.frames import Frame, build_tree
from tsi_mapping.interpreter import TsiInterpreter
from tsi_mapping.models import Device, MappingEntry, MappingFile, ModifierCondition
from tsi_mapping.validators import validate_mapping_file
from tsi_mapping.writer import NO_BINDING, TsiWriter
from tsi_mapping.xml import build_document, extract_controller_data


# ---------- hand-built blobs ----------


def _frame(id4: bytes, payload: bytes) -> bytes:
    return id4 + struct.pack(">I", len(payload)) + payload


def _u32(v: int) -> bytes:
    return struct.pack(">I", v)


def _wstr(s: str) -> bytes:
    raw = s.encode("utf-16-be")
    return _u32(len(raw) // 2) + raw


def _cmad(controller_type=0, mode=2, deck=0, mod1=(0, 0), mod2=(0, 0), comment="",
          sensitivity=1.0, tail=True, led_midi=(0, 127)) -> bytes:
    body = struct.pack(">IIIiIII", 4, controller_type, mode, deck, 0, 0, 0)
    body += struct.pack(">ffIIf", sensitivity, 0.0, 0, 0, 0.0)
    body += _wstr(comment)
    body += struct.pack(">IIIIIII", mod1[0], 0, mod1[1], mod2[0], 0, mod2[1], 0)
    if tail:
        body += struct.pack(">fIfIIIIIII", 0.0, 0, 1.0, led_midi[0], led_midi[1], 0, 0, 0, 0x3D800000, 0)
    return _frame(b"CMAD", body)


def _cmai(binding: int, io: int, command: int, cmad: bytes) -> bytes:
    return _frame(b"CMAI", struct.pack(">IIi", binding, io, command) + cmad)


def _blob(cmai_frames, bindings=((0, "Ch01.CC.008"),), ddat_extra=b"",
          devs_count=None, diom_extra=b"") -> bytes:
    cmas = _frame(b"CMAS", _u32(len(cmai_frames)) + b"".join(cmai_frames))
    items = b"".join(_frame(b"DCBM", _u32(bid) + _wstr(name)) for bid, name in bindings)
    dcbm = _frame(b"DCBM", _u32(len(bindings)) + items)
    ddat = _frame(
        b"DDAT",
        _frame(b"DDIF", _u32(2))
        + _frame(b"DDIC", _wstr("desk"))
        + _frame(b"DDPT", _wstr("In") + _wstr("Out"))
        + _frame(b"DDCB", cmas + dcbm)
        + ddat_extra,
    )
    devi = _frame(b"DEVI", _wstr("Generic MIDI") + ddat)
    devs = _frame(b"DEVS", _u32(1 if devs_count is None else devs_count) + devi)
    return _frame(b"DIOM", _frame(b"DIOI", _u32(1)) + diom_extra + devs)


# ---------- models ----------


def _sample_file() -> MappingFile:
    deck = Device(
        name="Generic MIDI",
        comment="Main desk ✓",
        in_port="All Ports",
        out_port="None",
        target=DeviceTarget.DECK_B,
        mappings=[
            MappingEntry(
                command_name="Play/Pause",
                assignment=TargetAssignment.DECK_A,
                interaction_mode=InteractionMode.TOGGLE,
                midi_channel=1,
                midi_note=60,
                comment="play",
            ),
            MappingEntry(
                command_name="Tempo Adjust",
                assignment=TargetAssignment.DEVICE_TARGET,
                interaction_mode=InteractionMode.RELATIVE,
                midi_channel=2,
                midi_cc=16,
                controller_type=ControllerType.FADER_OR_KNOB,
                rotary_sensitivity=0.3,
                rotary_acceleration=0.7,
                encoder_mode=MidiEncoderMode.MODE_3FH_41H,
                soft_takeover=True,
                modifier1_condition=ModifierCondition(1, 7),
                modifier2_condition=ModifierCondition(8, 0),
            ),
            MappingEntry(
                command_name="Volume",
                assignment=TargetAssignment.FX_UNIT_2,
                interaction_mode=InteractionMode.DIRECT,
                midi_channel=16,
                midi_cc=127,
                set_to_value=0.1,
                invert=True,
                auto_repeat=True,
            ),
            MappingEntry(command_name="Command #99999"),  # unassigned
            MappingEntry(
                command_name="Deck A Post-Fader Level (L)",
                io_type=MappingType.OUT,
                interaction_mode=InteractionMode.OUTPUT,
                midi_channel=1,
                midi_note=60,
                led_min_controller=0.25,
                led_max_controller=0.75,
                led_min_midi=10,
                led_max_midi=100,
                led_invert=True,
                led_blend=True,
                resolution=MappingResolution.FINE,
            ),
        ],
    )
    fx = Device(
        name="FX Pad",
        mappings=[
            MappingEntry(
                command_name="Slot 3 Cell 9 Trigger",
                midi_channel=10,
                midi_note=0,
            ),
        ],
    )
    return MappingFile(devices=[deck, fx], version=7)


# Round trips hold for models where mappings sharing a control and direction
# agree on encoder_mode; see test_shared_control_keeps_first_encoder_mode.
def test_blob_round_trip():
    mf = _sample_file()
    assert parse_blob(write_blob(mf)) == mf


def test_document_round_trip():
    mf = _sample_file()
    doc = write(mf)
    assert parse(doc) == mf


def test_round_trip_with_template_keeps_other_entries():
    template = (
        b'<?xml version="1.0" encoding="UTF-8" standalone="no" ?>\n'
        b'<NIXML><TraktorSettings><Entry Name="Audio.Latency" Type="1" Value="256"/>'
        b'<Entry Name="DeviceIO.Config.Controller" Type="3" Value="AAAA"/></TraktorSettings></NIXML>'
    )
    mf = _sample_file()
    doc = write(mf, template=template)
    assert b'Name="Audio.Latency"' in doc
    assert parse(doc) == mf


def test_float_fields_are_single_precision():
    m = MappingEntry(set_to_value=0.1)
    assert m.set_to_value != 0.1
    assert m.set_to_value == struct.unpack(">f", struct.pack(">f", 0.1))[0]


def test_note_and_cc_are_exclusive():
    with pytest.raises(ValueError):
        MappingEntry(midi_note=1, midi_cc=1)


def test_empty_blob_is_empty_file():
    assert parse_blob(b"") == MappingFile()


def test_no_root_frame():
    with pytest.raises(UnsupportedFrameGrammar):
        parse_blob(_frame(b"ABCD", b""))


def test_hand_built_blob():
    blob = _blob([
        _cmai(0, 0, 100, _cmad(controller_type=0, mode=1, deck=1, comment="hi")),
        _cmai(1, 1, 2688, _cmad(mode=8, led_midi=(5, 120))),
    ], bindings=((0, "Ch01.CC.008"), (1, "Ch02.Note.C4")))
    mf = parse_blob(blob)

    assert mf.version == 1
    (device,) = mf.devices
    assert device.name == "Generic MIDI"
    assert device.comment == "desk"
    assert (device.in_port, device.out_port) == ("In", "Out")
    assert device.target is DeviceTarget.DECK_B

    play, meter = device.mappings
    assert play.command_name == "Play/Pause"
    assert play.io_type is MappingType.IN
    assert play.interaction_mode is InteractionMode.TOGGLE
    assert play.assignment is TargetAssignment.DECK_A
    assert (play.midi_channel, play.midi_cc, play.midi_note) == (1, 8, None)
    assert play.comment == "hi"
    assert play.mapped_to_display == "Ch01 CC 008"

    assert meter.command_name == "Deck A Pre-Fader Level (L)"
    assert meter.is_output
    assert meter.interaction_mode is InteractionMode.OUTPUT
    assert (meter.midi_channel, meter.midi_note) == (2, 60)
    assert (meter.led_min_midi, meter.led_max_midi) == (5, 120)
    assert meter.resolution is MappingResolution.DEFAULT
    assert meter.mapped_to_display == "Ch02 Note C4"

    assert mf.all_mappings == [play, meter]


def test_raw_codes_survive_unedited_save():
    blob = _blob([_cmai(0, 0, 2393, _cmad(controller_type=65535, mode=5, deck=12))])
    m = parse_blob(blob).all_mappings[0]
    assert m.command_name == "Loop Out"
    assert m.controller_type is ControllerType.BUTTON
    assert m.interaction_mode is InteractionMode.HOLD
    assert m.assignment is TargetAssignment.GLOBAL

    again = parse_blob(write_blob(parse_blob(blob))).all_mappings[0]
    assert again.command_id_raw == 2393
    assert again.controller_type_raw == 65535
    assert again.interaction_mode_raw == 5
    assert again.assignment_raw == 12


def test_edited_fields_use_canonical_codes():
    mf = parse_blob(_blob([_cmai(0, 0, 2393, _cmad(controller_type=2, mode=5, deck=12))]))
    m = mf.all_mappings[0]
    m.command_name = "Play/Pause"
    m.interaction_mode = InteractionMode.TOGGLE
    m.assignment = TargetAssignment.DECK_C
    m.controller_type = ControllerType.BUTTON

    again = parse_blob(write_blob(mf)).all_mappings[0]
    assert again.command_id_raw == 100
    assert again.interaction_mode_raw == 1
    assert again.assignment_raw == 3
    assert again.controller_type_raw == 0


def test_modifier_ids_on_disk():
    blob = _blob([_cmai(0, 0, 100, _cmad(mod1=(2549, 3), mod2=(4, 1)))])
    m = parse_blob(blob).all_mappings[0]
    assert m.modifier1_condition == ModifierCondition(2, 3)
    assert m.modifier2_condition == ModifierCondition(4, 1)
    assert m.modifier1_condition.display_string == "M2 = 3"


def test_unknown_frames_are_skipped_or_kept():
    blob = _blob(
        [_cmai(0, 0, 100, _cmad()), _frame(b"ZZZZ", b"\x00")],
        ddat_extra=_frame(b"XTRA", b"\x01\x02"),
        diom_extra=_frame(b"NEWS", b"\x09"),
    )
    mf = parse_blob(blob)
    (device,) = mf.devices
    assert len(device.mappings) == 1
    assert device.unknown_frames == [Frame("XTRA", b"\x01\x02")]

    again = parse_blob(write_blob(mf))
    assert again.devices[0].unknown_frames == [Frame("XTRA", b"\x01\x02")]


def test_count_mismatch_warns(caplog):
    blob = _blob([_cmai(0, 0, 100, _cmad())], devs_count=2)
    with caplog.at_level(logging.WARNING):
        mf = parse_blob(blob)
    assert len(mf.devices) == 1
    assert "DEVS declares 2 items, found 1" in caplog.text


def test_count_mismatch_strict():
    blob = _blob([_cmai(0, 0, 100, _cmad())], devs_count=2)
    with pytest.raises(UnsupportedFrameGrammar):
        TsiInterpreter(strict_counts=True).parse(blob)
    with pytest.raises(UnsupportedFrameGrammar):
        parse_blob(blob, strict_counts=True)


def test_truncated_settings_keep_defaults():
    cmad = _frame(b"CMAD", struct.pack(">III", 4, 1, 3))
    m = parse_blob(_blob([_cmai(0, 0, 100, cmad)])).all_mappings[0]
    assert m.controller_type is ControllerType.FADER_OR_KNOB
    assert m.interaction_mode is InteractionMode.DIRECT
    assert m.assignment is TargetAssignment.GLOBAL
    assert m.rotary_sensitivity == 1.0
    assert m.led_max_midi == 127


def test_mapping_without_settings_frame():
    cmai = _frame(b"CMAI", struct.pack(">IIi", 0, 1, 100))
    m = parse_blob(_blob([cmai])).all_mappings[0]
    assert m.interaction_mode is InteractionMode.OUTPUT


def test_insane_led_tail_is_ignored(caplog):
    blob = _blob([_cmai(0, 1, 100, _cmad(mode=8, led_midi=(0, 0xFFFF)))])
    with caplog.at_level(logging.WARNING):
        m = parse_blob(blob).all_mappings[0]
    assert (m.led_min_midi, m.led_max_midi) == (0, 127)
    assert "LED tail" in caplog.text


def test_nan_reads_as_zero():
    blob = _blob([_cmai(0, 0, 100, _cmad(sensitivity=float("nan")))])
    assert parse_blob(blob).all_mappings[0].rotary_sensitivity == 0.0


def test_unbound_mapping_reads_as_unassigned():
    blob = _blob([_cmai(NO_BINDING, 0, 100, _cmad())])
    m = parse_blob(blob).all_mappings[0]
    assert not m.has_midi_assignment
    assert m.midi_channel == 1
    assert m.midi_control_name is None
    assert m.mapped_to_display == "Ch01 --"


# ---------- writer layout ----------


def _device_data(blob: bytes):
    root = build_tree(blob, g.GRAMMAR)[0]
    return root.child(g.DEVICES).children[0].child(g.DEVICE_DATA)


def test_writer_layout():
    mf = MappingFile(devices=[Device(name="X", mappings=[
        MappingEntry(command_name="Play/Pause", midi_cc=8),
        MappingEntry(command_name="Cue", midi_cc=8),
        MappingEntry(command_name="Volume"),
        MappingEntry(command_name="Play/Pause", io_type=MappingType.OUT,
                     interaction_mode=InteractionMode.OUTPUT, midi_note=60),
    ])])
    ddat = _device_data(write_blob(mf))
    assert [c.id4 for c in ddat.children] == ["DDIF", "DDIC", "DDPT", "DDDC", "DDCB"]

    dddc = ddat.child(g.MIDI_DEFINITIONS)
    assert dddc.child(g.MIDI_DEFINITIONS_IN).prefix == _u32(1)
    assert dddc.child(g.MIDI_DEFINITIONS_OUT).prefix == _u32(1)

    ddcb = ddat.child(g.COMMAND_BINDINGS)
    cmas = ddcb.child(g.MAPPINGS)
    assert cmas.prefix == _u32(4)
    bindings = [struct.unpack(">I", c.prefix[:4])[0] for c in cmas.children]
    assert bindings == [0, 0, NO_BINDING, 1]
    assert [struct.unpack(">i", c.prefix[8:])[0] for c in cmas.children] == [100, 206, 102, 100]
    assert ddcb.child(g.MIDI_BINDINGS).prefix == _u32(2)


def test_writer_version_override():
    blob = TsiWriter(version=9).write(MappingFile(version=3))
    assert parse_blob(blob).version == 9
    assert parse_blob(TsiWriter().write(MappingFile(version=3))).version == 3


def test_written_document_has_controller_entry():
    doc = write(MappingFile())
    assert extract_controller_data(doc)
    assert doc == build_document(extract_controller_data(doc))


def test_shared_control_keeps_first_encoder_mode():
    mf = MappingFile(devices=[Device(name="X", mappings=[
        MappingEntry(command_name="Tempo Adjust", midi_cc=8,
                     encoder_mode=MidiEncoderMode.MODE_3FH_41H),
        MappingEntry(command_name="Tempo Adjust", midi_cc=8,
                     encoder_mode=MidiEncoderMode.MODE_7FH_01H,
                     modifier1_condition=ModifierCondition(1, 1)),
    ])])
    issues = validate_mapping_file(mf)
    assert [sev for sev, _ in issues] == ["warn"]
    assert "7Fh/01h will be saved as 3Fh/41h" in issues[0][1]

    again = parse_blob(write_blob(mf)).all_mappings
    assert [m.encoder_mode for m in again] == [MidiEncoderMode.MODE_3FH_41H] * 2


def test_shared_control_per_direction_is_independent():
    mf = MappingFile(devices=[Device(name="X", mappings=[
        MappingEntry(command_name="Play/Pause", midi_cc=8,
                     encoder_mode=MidiEncoderMode.MODE_3FH_41H),
        MappingEntry(command_name="Play/Pause", io_type=MappingType.OUT,
                     interaction_mode=InteractionMode.OUTPUT, midi_cc=8),
    ])])
    assert validate_mapping_file(mf) == []
    assert parse_blob(write_blob(mf)) == mf


def test_control_name_without_number_is_unassigned():
    dcdt = _frame(b"DCDT", _wstr("Ch05.Note.X5") + struct.pack(">IIfIi", 0, 0, 0.0, 0, -1))
    dddc = _frame(b"DDDC", _frame(b"DDCI", _u32(1) + dcdt) + _frame(b"DDCO", _u32(0)))
    blob = _blob([_cmai(0, 0, 100, _cmad())], bindings=((0, "Ch05.Note.X5"),), ddat_extra=dddc)
    mf = parse_blob(blob)
    m = mf.all_mappings[0]
    assert m.midi_channel == 1
    assert not m.has_midi_assignment
    assert m.encoder_mode is MidiEncoderMode.MODE_7FH_01H
    assert parse_blob(write_blob(mf)) == mf


def test_empty_command_name_reads_back_as_command_zero():
    mf = MappingFile(devices=[Device(mappings=[MappingEntry(midi_note=5)])])
    assert parse_blob(write_blob(mf)).all_mappings[0].command_name == "Command #0"
    assert [sev for sev, _ in validate_mapping_file(mf)] == ["warn"]
