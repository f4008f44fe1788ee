"""Configuration classes for XBL encoding and decoding.

This module provides configuration objects for the decoder, the encoder and
process-wide settings, enabling control over value encoding, input limits
and logging behaviour.
"""

import codecs
import json
from dataclasses import dataclass, field, fields, replace
from enum import Enum, auto
from typing import Any, Dict, List, Optional

MAX_WIRE_LENGTH = 255  # One length byte on the wire


class ValueEncoding(Enum):
    """Wire representation of attribute value payloads."""

    TEXT = auto()      # Decimal/ISO text parsed into the tagged type
    BINARY = auto()    # Fixed-width little-endian payloads


@dataclass
class DecoderConfig:
    """Configuration for the byte-stream decoder."""

    value_encoding: ValueEncoding = ValueEncoding.TEXT
    string_encoding: str = "utf-8"
    max_depth: Optional[int] = None
    max_input_size_bytes: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate decoder configuration."""
        if not isinstance(self.value_encoding, ValueEncoding):
            raise ValueError("value_encoding must be a ValueEncoding member")
        _check_codec(self.string_encoding)
        _check_limit("max_depth", self.max_depth)
        _check_limit("max_input_size_bytes", self.max_input_size_bytes)


@dataclass
class EncoderConfig:
    """Configuration for the tree encoder."""

    value_encoding: ValueEncoding = ValueEncoding.BINARY
    string_encoding: str = "utf-8"

    def __post_init__(self) -> None:
        """Validate encoder configuration."""
        if not isinstance(self.value_encoding, ValueEncoding):
            raise ValueError("value_encoding must be a ValueEncoding member")
        _check_codec(self.string_encoding)


@dataclass
class GlobalConfig:
    """Global configuration settings that apply across all components."""

    logging_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    enable_correlation_tracking: bool = True
    enable_metrics: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging_level not in valid_levels:
            raise ValueError(f"logging_level must be one of {valid_levels}")


def _check_codec(name: str) -> None:
    if not isinstance(name, str):
        raise ValueError(f"string_encoding must be a codec name, got {name!r}")
    try:
        codecs.lookup(name)
    except LookupError as e:
        raise ValueError(f"Unknown string encoding: {name}") from e
    try:
        # bytes-to-bytes codecs (base64, hex, rot13) refuse str/bytes conversion
        "".encode(name)
        b"".decode(name)
    except LookupError as e:
        raise ValueError(f"Not a text encoding: {name}") from e


def _check_limit(name: str, value: Optional[int]) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int or None, got {value!r}")
    if value <= 0:
        raise ValueError(f"{name} must be > 0 or None")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class CodecConfig:
    """Complete configuration for a ``DocumentCodec``.

    One ``value_encoding`` governs both directions so a configured codec always
    reads what it writes. Thread-safe due to frozen dataclass implementation.
    """

    value_encoding: ValueEncoding = ValueEncoding.BINARY
    string_encoding: str = "utf-8"
    max_depth: Optional[int] = None
    max_input_size_bytes: Optional[int] = None
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    # Metadata
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete codec configuration."""
        try:
            self.decoder_config()
            self.encoder_config()
            if not isinstance(self.global_, GlobalConfig):
                raise ValueError("global_ must be a GlobalConfig")
            self.global_.__post_init__()
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    def decoder_config(self) -> DecoderConfig:
        """Derive the decoder configuration."""
        return DecoderConfig(
            value_encoding=self.value_encoding,
            string_encoding=self.string_encoding,
            max_depth=self.max_depth,
            max_input_size_bytes=self.max_input_size_bytes,
        )

    def encoder_config(self) -> EncoderConfig:
        """Derive the encoder configuration."""
        return EncoderConfig(
            value_encoding=self.value_encoding,
            string_encoding=self.string_encoding,
        )

    def override(self, **kwargs: Any) -> "CodecConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Field overrides; ``global___<field>`` targets GlobalConfig

        Returns:
            New CodecConfig instance with overrides applied

        Example:
            >>> config = CodecConfig().override(
            ...     max_depth=32,
            ...     global___logging_level="DEBUG"
            ... )
        """
        global_overrides: Dict[str, Any] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if key.startswith("global___"):
                global_overrides[key[len("global___"):]] = value
            else:
                top_level[key] = value

        valid = {f.name for f in fields(self)}
        unknown = set(top_level) - valid
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration field(s): {sorted(unknown)}",
                field_name=sorted(unknown)[0],
                suggestions=sorted(valid),
            )

        if global_overrides:
            try:
                top_level["global_"] = replace(self.global_, **global_overrides)
            except (TypeError, ValueError) as e:
                raise ConfigValidationError(str(e), field_name="global_") from e

        return replace(self, **top_level)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a JSON-compatible dictionary."""
        return {
            "value_encoding": self.value_encoding.name,
            "string_encoding": self.string_encoding,
            "max_depth": self.max_depth,
            "max_input_size_bytes": self.max_input_size_bytes,
            "global_": {
                "logging_level": self.global_.logging_level,
                "enable_correlation_tracking": self.global_.enable_correlation_tracking,
                "enable_metrics": self.global_.enable_metrics,
            },
            "name": self.name,
            "description": self.description,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string.

        Args:
            indent: JSON indentation level

        Returns:
            JSON string representation
        """
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CodecConfig":
        """Create configuration from dictionary.

        Args:
            data: Dictionary containing configuration data

        Returns:
            CodecConfig instance created from dictionary
        """
        values = dict(data)
        encoding = values.get("value_encoding")
        if isinstance(encoding, str):
            try:
                values["value_encoding"] = ValueEncoding[encoding.upper()]
            except KeyError as e:
                raise ConfigValidationError(
                    f"Unknown value encoding: {encoding}",
                    field_name="value_encoding",
                    suggestions=[member.name for member in ValueEncoding],
                ) from e

        if isinstance(values.get("global_"), dict):
            try:
                values["global_"] = GlobalConfig(**values["global_"])
            except (TypeError, ValueError) as e:
                raise ConfigValidationError(str(e), field_name="global_") from e

        valid = {f.name for f in fields(cls)}
        unknown = set(values) - valid
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration field(s): {sorted(unknown)}",
                field_name=sorted(unknown)[0],
            )
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "CodecConfig":
        """Create configuration from JSON string.

        Args:
            json_str: JSON string containing configuration data

        Returns:
            CodecConfig instance created from JSON
        """
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def binary(cls) -> "CodecConfig":
        """Create configuration preset using fixed-width binary payloads."""
        return cls(
            value_encoding=ValueEncoding.BINARY,
            name="binary",
            description="Fixed-width little-endian attribute value payloads",
        )

    @classmethod
    def text(cls) -> "CodecConfig":
        """Create configuration preset using textual attribute payloads."""
        return cls(
            value_encoding=ValueEncoding.TEXT,
            name="text",
            description="Decimal and ISO text attribute value payloads",
        )

    @classmethod
    def hardened(cls) -> "CodecConfig":
        """Create configuration preset for decoding untrusted input."""
        return cls(
            value_encoding=ValueEncoding.BINARY,
            max_depth=256,
            max_input_size_bytes=16 * 1024 * 1024,
            name="hardened",
            description="Binary payloads with nesting and input size limits",
        )
