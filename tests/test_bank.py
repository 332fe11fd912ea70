"""Tests for the SoundFont bank loader."""

import pytest

from firesynth.bank.soundfont import GEN_SAMPLE_ID, Generator, load_bank
from firesynth.errors import ResourceError, ResourceKind

# ---------------------------------------------------------------------------
# Valid banks
# ---------------------------------------------------------------------------


class TestLoadBank:
    def test_reads_info(self, soundfont_path):
        bank = load_bank(soundfont_path)
        assert bank.path == soundfont_path
        assert bank.version == (2, 1)
        assert bank.name == "Test Bank"
        assert bank.sound_engine == "EMU8000"
        assert not bank.is_compressed

    def test_reads_presets(self, soundfont_path):
        bank = load_bank(soundfont_path)
        assert len(bank.presets) == 1
        preset = bank.presets[0]
        assert preset.name == "Test Sine"
        assert (preset.bank, preset.program) == (0, 0)
        assert preset.instrument_ids() == [0]
        assert bank.find_preset(0, 0) is preset
        assert bank.find_preset(128, 0) is None

    def test_reads_instrument_zones(self, soundfont_path):
        bank = load_bank(soundfont_path)
        assert len(bank.instruments) == 1
        inst = bank.instruments[0]
        assert inst.name == "Sine"
        assert len(inst.zones) == 2

        global_zone, zone = inst.zones
        assert global_zone.is_global
        assert global_zone.parameters() == {"attackVolEnv": -1200}
        assert not zone.is_global
        assert zone.key_range == (0, 127)
        assert zone.vel_range == (0, 127)
        assert zone.get(GEN_SAMPLE_ID).amount == 0
        assert inst.sample_ids() == [0]

    def test_reads_sample_headers(self, soundfont_path):
        bank = load_bank(soundfont_path)
        assert len(bank.samples) == 1
        sample = bank.samples[0]
        assert sample.name == "sine"
        assert (sample.start, sample.end) == (0, 256)
        assert sample.sample_rate == 44100
        assert sample.original_pitch == 69
        assert not sample.is_rom
        assert bank.sample_data_bytes == (256 + 46) * 2

    def test_accepts_sf3_version(self, make_soundfont):
        bank = load_bank(make_soundfont(version=(3, 1)))
        assert bank.is_compressed

    def test_bank_is_immutable(self, soundfont_path):
        bank = load_bank(soundfont_path)
        with pytest.raises(AttributeError):
            bank.name = "changed"


class TestGenerator:
    def test_signed_value(self):
        assert Generator(34, (-1200) & 0xFFFF).value == -1200
        assert Generator(48, 100).value == 100

    def test_range(self):
        assert Generator(43, 36 | (72 << 8)).range == (36, 72)

    def test_unknown_operator_name(self):
        assert Generator(99, 0).name == "gen99"


# ---------------------------------------------------------------------------
# Invalid banks
# ---------------------------------------------------------------------------


class TestInvalidBank:
    def _assert_bank_error(self, path, fragment: str):
        with pytest.raises(ResourceError) as info:
            load_bank(path)
        assert info.value.kind == ResourceKind.BANK
        assert fragment in info.value.reason
        return info.value

    def test_missing_file(self, tmp_path):
        err = self._assert_bank_error(tmp_path / "nope.sf2", "not found")
        assert "bank" in str(err)

    def test_not_riff(self, tmp_path):
        path = tmp_path / "text.sf2"
        path.write_bytes(b"this is not a soundfont at all")
        self._assert_bank_error(path, "not a RIFF file")

    def test_wrong_form_type(self, tmp_path):
        path = tmp_path / "wave.sf2"
        path.write_bytes(b"RIFF" + (4).to_bytes(4, "little") + b"WAVE")
        self._assert_bank_error(path, "not sfbk")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.sf2"
        path.write_bytes(b"")
        self._assert_bank_error(path, "unexpected end of file")

    def test_truncated_file(self, tmp_path, soundfont_path):
        data = soundfont_path.read_bytes()
        path = tmp_path / "truncated.sf2"
        path.write_bytes(data[: len(data) // 2])
        self._assert_bank_error(path, "truncated")

    def test_unsupported_version(self, make_soundfont):
        self._assert_bank_error(make_soundfont(version=(1, 0)), "unsupported SoundFont version")

    def test_missing_hydra_chunk(self, make_soundfont):
        self._assert_bank_error(make_soundfont(omit=(b"shdr",)), "missing shdr chunk")

    def test_no_presets(self, make_soundfont):
        self._assert_bank_error(make_soundfont(with_preset=False), "no presets")

    def test_dangling_instrument_reference(self, make_soundfont):
        self._assert_bank_error(make_soundfont(instrument_ref=5), "missing instrument 5")

    def test_sample_outside_data(self, make_soundfont):
        self._assert_bank_error(make_soundfont(sample_end=100000), "outside the sample data")
