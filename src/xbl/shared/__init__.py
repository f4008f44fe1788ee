"""Shared utilities for XBL encoding and decoding.

This module provides the error taxonomy, configuration objects, operation
metrics and logging helpers used across the model, codec and API layers.
"""

from .config import (
    CodecConfig,
    ConfigError,
    ConfigValidationError,
    DecoderConfig,
    EncoderConfig,
    GlobalConfig,
    ValueEncoding,
)
from .errors import (
    ErrorKind,
    FileAccessError,
    InputTooLargeError,
    NameTooLongError,
    NestingTooDeepError,
    NotFoundError,
    TooManyAttributesError,
    TypeMismatchError,
    UnbalancedEndError,
    UnexpectedEofError,
    UnknownValueTypeError,
    UnrecognizedMarkerError,
    UnterminatedElementError,
    ValueOutOfRangeError,
    ValueParseError,
    XBLError,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
    new_correlation_id,
)
from .result import CodecMetrics

__all__ = [
    "CodecConfig",
    "ConfigError",
    "ConfigValidationError",
    "DecoderConfig",
    "EncoderConfig",
    "GlobalConfig",
    "ValueEncoding",
    "ErrorKind",
    "FileAccessError",
    "InputTooLargeError",
    "NameTooLongError",
    "NestingTooDeepError",
    "NotFoundError",
    "TooManyAttributesError",
    "TypeMismatchError",
    "UnbalancedEndError",
    "UnexpectedEofError",
    "UnknownValueTypeError",
    "UnrecognizedMarkerError",
    "UnterminatedElementError",
    "ValueOutOfRangeError",
    "ValueParseError",
    "XBLError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "new_correlation_id",
    "CodecMetrics",
]
