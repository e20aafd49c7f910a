"""
Tests for configuration validation and presets.
"""

import pytest

from audio_master.core.config import (
    DitherMode,
    MasteringConfig,
    OUTPUT_PRESETS,
    validate_bit_depth,
    validate_ceiling_db,
    validate_target_lufs,
)
from audio_master.core.errors import AudioMasterError, InvalidConfiguration


class TestMasteringConfig:
    """Tests for MasteringConfig."""

    def test_defaults(self):
        """Streaming defaults."""
        config = MasteringConfig()

        assert config.target_lufs == -14.0
        assert config.ceiling_db == -1.0
        assert config.sample_rate == 44100
        assert config.bit_depth == 16
        assert config.dither is DitherMode.TPDF
        assert config.ceiling_linear == pytest.approx(0.8913, abs=1e-4)

    def test_dither_string_coerced(self):
        """Dither can be given by name."""
        assert MasteringConfig(dither="noise-shaped").dither is DitherMode.NOISE_SHAPED
        assert MasteringConfig(dither="NONE").dither is DitherMode.NONE

    @pytest.mark.parametrize("kwargs", [
        {"ceiling_db": 0.5},
        {"ceiling_db": -6.5},
        {"ceiling_db": float("nan")},
        {"target_lufs": 1.0},
        {"target_lufs": -61.0},
        {"sample_rate": 96000},
        {"bit_depth": 32},
        {"dither": "triangular"},
        {"release_ms": 0.0},
        {"lookahead_ms": -1.0},
        {"chunk_size": 512},
    ])
    def test_invalid_values(self, kwargs):
        """Out-of-range settings are rejected."""
        with pytest.raises(InvalidConfiguration):
            MasteringConfig(**kwargs)

    def test_range_edges_allowed(self):
        """Range limits themselves are valid."""
        MasteringConfig(ceiling_db=-6.0, target_lufs=-60.0)
        MasteringConfig(ceiling_db=0.0, target_lufs=0.0, chunk_size=1024)

    def test_error_hierarchy(self):
        """Configuration errors are ValueErrors and AudioMasterErrors."""
        with pytest.raises(ValueError):
            MasteringConfig(bit_depth=8)
        assert issubclass(InvalidConfiguration, AudioMasterError)

    def test_immutable(self):
        """Configurations cannot be changed after construction."""
        config = MasteringConfig()

        with pytest.raises(AttributeError):
            config.ceiling_db = -2.0

    def test_with_overrides(self):
        """Overrides are validated like a new configuration."""
        config = MasteringConfig().with_overrides(ceiling_db=-2.0)

        assert config.ceiling_db == -2.0
        with pytest.raises(InvalidConfiguration):
            config.with_overrides(ceiling_db=2.0)


class TestPresets:
    """Tests for output presets."""

    def test_studio(self):
        """studio is 48 kHz / 24-bit."""
        config = MasteringConfig.from_preset("studio")

        assert (config.sample_rate, config.bit_depth) == (48000, 24)

    def test_streaming(self):
        """streaming is 44.1 kHz / 16-bit."""
        config = MasteringConfig.from_preset("streaming", target_lufs=-9.0)

        assert (config.sample_rate, config.bit_depth) == (44100, 16)
        assert config.target_lufs == -9.0

    def test_override_preset_format(self):
        """Explicit values beat the preset."""
        config = MasteringConfig.from_preset("studio", bit_depth=16)

        assert config.bit_depth == 16

    def test_unknown_preset(self):
        """Unknown names raise."""
        with pytest.raises(InvalidConfiguration):
            MasteringConfig.from_preset("vinyl")

    def test_presets_listed(self):
        """Both presets are registered."""
        assert set(OUTPUT_PRESETS) == {"streaming", "studio"}


def test_validate_bit_depth():
    """Supported depths pass through."""
    assert validate_bit_depth(24) == 24
    with pytest.raises(InvalidConfiguration):
        validate_bit_depth(20)


def test_validate_levels():
    """Shared range checks for target and ceiling."""
    assert validate_target_lufs(-23.0) == -23.0
    assert validate_ceiling_db(-1.0) == -1.0
    with pytest.raises(InvalidConfiguration):
        validate_target_lufs(float("nan"))
    with pytest.raises(InvalidConfiguration):
        validate_ceiling_db(float("-inf"))
