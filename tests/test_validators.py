from tsi_mapping.enums import InteractionMode, MappingType
from tsi_mapping.models import Device, MappingEntry, MappingFile, ModifierCondition
from tsi_mapping.validators import validate_mapping_file


def _issues(*mappings):
    return validate_mapping_file(MappingFile(devices=[Device(name="X", mappings=list(mappings))]))


def test_clean_file_has_no_issues():
    assert _issues(
        MappingEntry(command_name="Play/Pause", midi_channel=16, midi_note=127),
        MappingEntry(command_name="Slot 1 Volume", midi_cc=0,
                     modifier1_condition=ModifierCondition(8, 7)),
        MappingEntry(command_name="Volume", interaction_mode=InteractionMode.DIRECT, set_to_value=0.5),
    ) == []


def test_range_errors():
    issues = _issues(
        MappingEntry(command_name="Play/Pause", midi_channel=17, midi_cc=128),
        MappingEntry(command_name="Play/Pause", modifier2_condition=ModifierCondition(9, 8)),
    )
    errors = [msg for sev, msg in issues if sev == "error"]
    assert len(errors) == 4
    assert any("MIDI channel out of range: 17" in m for m in errors)
    assert any("CC number out of range: 128" in m for m in errors)
    assert any("modifier out of range: M9" in m for m in errors)
    assert any("modifier value out of range: 8" in m for m in errors)


def test_both_note_and_cc_after_edit():
    m = MappingEntry(command_name="Play/Pause", midi_note=1)
    m.midi_cc = 2
    assert ("error" in [sev for sev, _ in _issues(m)])


def test_unknown_command_warns():
    issues = _issues(MappingEntry(command_name="Command #4242"))
    assert [sev for sev, _ in issues] == ["warn"]


def test_info_issues():
    issues = _issues(
        MappingEntry(command_name="Play/Pause", set_to_value=1.0),
        MappingEntry(command_name="Play/Pause", io_type=MappingType.IN, led_min_midi=20),
    )
    assert [sev for sev, _ in issues] == ["info", "info"]
    assert "not DIRECT" in issues[0][1]
    assert "LED" in issues[1][1]


def test_empty_command_name_warns():
    issues = _issues(MappingEntry(io_type=MappingType.OUT, midi_note=5))
    assert len(issues) == 1
    assert issues[0][0] == "warn"
    assert "no command assigned" in issues[0][1]
