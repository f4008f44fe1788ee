"""Tests for the configuration system."""

import json
from dataclasses import FrozenInstanceError

import pytest

from xbl.shared.config import (
    CodecConfig,
    ConfigError,
    ConfigValidationError,
    DecoderConfig,
    EncoderConfig,
    GlobalConfig,
    ValueEncoding,
)


class TestDecoderConfig:
    """Test suite for DecoderConfig."""

    def test_default_configuration(self) -> None:
        """Test default decoder configuration values."""
        config = DecoderConfig()

        assert config.value_encoding is ValueEncoding.TEXT
        assert config.string_encoding == "utf-8"
        assert config.max_depth is None
        assert config.max_input_size_bytes is None

    def test_validation_failures(self) -> None:
        """Test decoder configuration validation failures."""
        with pytest.raises(ValueError, match="max_depth must be > 0"):
            DecoderConfig(max_depth=0)

        with pytest.raises(ValueError, match="max_input_size_bytes must be > 0"):
            DecoderConfig(max_input_size_bytes=-1)

        with pytest.raises(ValueError, match="Unknown string encoding"):
            DecoderConfig(string_encoding="no-such-codec")

        with pytest.raises(ValueError, match="value_encoding must be"):
            DecoderConfig(value_encoding="TEXT")

    @pytest.mark.parametrize("field_name, value", [
        ("max_depth", "5"),
        ("max_depth", 2.5),
        ("max_input_size_bytes", True),
        ("string_encoding", 5),
    ])
    def test_wrong_field_types(self, field_name, value) -> None:
        """Test wrong-typed fields raise ValueError rather than TypeError."""
        with pytest.raises(ValueError, match=field_name):
            DecoderConfig(**{field_name: value})

    @pytest.mark.parametrize("codec", ["base64", "hex", "rot13"])
    def test_rejects_bytes_codecs(self, codec) -> None:
        with pytest.raises(ValueError, match="Not a text encoding"):
            DecoderConfig(string_encoding=codec)


class TestEncoderConfig:
    """Test suite for EncoderConfig."""

    def test_default_configuration(self) -> None:
        """Test default encoder configuration values."""
        config = EncoderConfig()

        assert config.value_encoding is ValueEncoding.BINARY
        assert config.string_encoding == "utf-8"

    def test_validation_failures(self) -> None:
        """Test encoder configuration validation failures."""
        with pytest.raises(ValueError, match="Unknown string encoding"):
            EncoderConfig(string_encoding="bogus")


class TestGlobalConfig:
    """Test suite for GlobalConfig."""

    def test_default_configuration(self) -> None:
        config = GlobalConfig()

        assert config.logging_level == "INFO"
        assert config.enable_correlation_tracking is True
        assert config.enable_metrics is True

    def test_invalid_logging_level(self) -> None:
        with pytest.raises(ValueError, match="logging_level must be one of"):
            GlobalConfig(logging_level="LOUD")


class TestCodecConfig:
    """Test suite for the complete CodecConfig."""

    def test_default_configuration(self) -> None:
        """Test defaults use one BINARY encoding for both directions."""
        config = CodecConfig()

        assert config.value_encoding is ValueEncoding.BINARY
        assert config.decoder_config().value_encoding is ValueEncoding.BINARY
        assert config.encoder_config().value_encoding is ValueEncoding.BINARY
        assert config.name is None

    def test_frozen(self) -> None:
        """Test that configuration is immutable."""
        config = CodecConfig()

        with pytest.raises(FrozenInstanceError):
            config.max_depth = 3

    def test_validation_wrapped(self) -> None:
        """Test component validation errors surface as ConfigValidationError."""
        with pytest.raises(ConfigValidationError, match="max_depth"):
            CodecConfig(max_depth=-5)

        with pytest.raises(ConfigError):
            CodecConfig(string_encoding="bogus")

    def test_derived_component_configs(self) -> None:
        """Test decoder/encoder configs carry the shared settings."""
        config = CodecConfig(
            value_encoding=ValueEncoding.TEXT,
            string_encoding="latin-1",
            max_depth=8,
            max_input_size_bytes=1024,
        )

        decoder = config.decoder_config()
        encoder = config.encoder_config()

        assert decoder.value_encoding is ValueEncoding.TEXT
        assert decoder.string_encoding == "latin-1"
        assert decoder.max_depth == 8
        assert decoder.max_input_size_bytes == 1024
        assert encoder.value_encoding is ValueEncoding.TEXT
        assert encoder.string_encoding == "latin-1"

    def test_override(self) -> None:
        """Test configuration overrides, including nested global fields."""
        base = CodecConfig()
        config = base.override(max_depth=32, global___logging_level="DEBUG")

        assert config.max_depth == 32
        assert config.global_.logging_level == "DEBUG"
        assert base.max_depth is None
        assert base.global_.logging_level == "INFO"

    def test_override_unknown_field(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            CodecConfig().override(max_width=3)

        assert exc_info.value.field_name == "max_width"
        assert "max_depth" in exc_info.value.suggestions

    def test_override_invalid_global(self) -> None:
        with pytest.raises(ConfigValidationError):
            CodecConfig().override(global___logging_level="LOUD")

    def test_presets(self) -> None:
        """Test preset factory methods."""
        binary = CodecConfig.binary()
        text = CodecConfig.text()
        hardened = CodecConfig.hardened()

        assert binary.value_encoding is ValueEncoding.BINARY
        assert binary.name == "binary"
        assert text.value_encoding is ValueEncoding.TEXT
        assert text.name == "text"
        assert hardened.max_depth == 256
        assert hardened.max_input_size_bytes == 16 * 1024 * 1024

    def test_json_round_trip(self) -> None:
        """Test serialization to and from JSON."""
        config = CodecConfig.hardened().override(global___enable_metrics=False)

        data = json.loads(config.to_json())
        assert data["value_encoding"] == "BINARY"
        assert data["global_"]["enable_metrics"] is False

        restored = CodecConfig.from_json(config.to_json())
        assert restored == config

    def test_from_dict_case_insensitive_encoding(self) -> None:
        config = CodecConfig.from_dict({"value_encoding": "text"})

        assert config.value_encoding is ValueEncoding.TEXT

    def test_from_dict_failures(self) -> None:
        """Test invalid dictionaries are rejected."""
        with pytest.raises(ConfigValidationError, match="Unknown value encoding"):
            CodecConfig.from_dict({"value_encoding": "hex"})

        with pytest.raises(ConfigValidationError, match="Unknown configuration field"):
            CodecConfig.from_dict({"colour": "blue"})

        with pytest.raises(ConfigValidationError):
            CodecConfig.from_dict({"global_": {"logging_level": "LOUD"}})

    @pytest.mark.parametrize("data", [
        {"max_depth": "5"},
        {"max_input_size_bytes": [1]},
        {"string_encoding": 5},
        {"string_encoding": "base64"},
        {"value_encoding": 3},
        {"global_": "verbose"},
    ])
    def test_from_dict_wrong_types(self, data) -> None:
        """Test wrong-typed values surface as ConfigValidationError."""
        with pytest.raises(ConfigValidationError):
            CodecConfig.from_dict(data)

    def test_from_json_failures(self) -> None:
        with pytest.raises(ConfigValidationError, match="Invalid configuration JSON"):
            CodecConfig.from_json("{not json")

        with pytest.raises(ConfigValidationError, match="must be an object"):
            CodecConfig.from_json("[1, 2]")
