"""Attribute value payload conversion in both wire encodings.

TEXT payloads carry the value as text (decimal integers, decimal floats,
``YYYY-MM-DDTHH:MM:SS`` dates) that is parsed into the tagged type. BINARY
payloads carry fixed-width little-endian bit patterns. Each encoding is a
table keyed by ``ValueType``; a tag missing from a table is rejected with
``UnknownValueTypeError``.
"""

import math
import re
import struct
from typing import Callable, Dict, Optional

from xbl.codec.wire import decode_string, encode_string
from xbl.model.values import INTEGER_RANGES, DateTime, Value, ValueType, to_float32
from xbl.shared.config import ValueEncoding
from xbl.shared.errors import (
    UnknownValueTypeError,
    ValueOutOfRangeError,
    ValueParseError,
)

_INTEGER_LITERAL = re.compile(r"[+-]?[0-9]+")
_FLOAT_LITERAL = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    r"|[+-]?(?:inf|infinity|nan)",
    re.IGNORECASE,
)

# struct formats for fixed-width binary payloads
BINARY_FORMATS: Dict[ValueType, struct.Struct] = {
    ValueType.INT32: struct.Struct("<i"),
    ValueType.UINT32: struct.Struct("<I"),
    ValueType.INT64: struct.Struct("<q"),
    ValueType.UINT64: struct.Struct("<Q"),
    ValueType.FLOAT32: struct.Struct("<f"),
    ValueType.FLOAT64: struct.Struct("<d"),
    ValueType.BYTE: struct.Struct("<B"),
    ValueType.DATETIME: struct.Struct("<HBBBBB"),
}


# TEXT decoding

def _parse_integer(value_type: ValueType, text: str) -> Value:
    if not _INTEGER_LITERAL.fullmatch(text):
        raise ValueParseError(
            f"Invalid {value_type.display_name} literal: {text!r}"
        )
    number = int(text)
    low, high = INTEGER_RANGES[value_type]
    if not (low <= number <= high):
        raise ValueOutOfRangeError(f"{value_type.display_name} out of range: {text}")
    return Value(value_type, number)


def _parse_float(value_type: ValueType, text: str) -> Value:
    if not _FLOAT_LITERAL.fullmatch(text):
        raise ValueParseError(
            f"Invalid {value_type.display_name} literal: {text!r}"
        )
    number = float(text)
    if math.isinf(number) and "inf" not in text.lower():
        raise ValueOutOfRangeError(f"{value_type.display_name} out of range: {text}")
    if value_type is ValueType.FLOAT32:
        number = to_float32(number)
    return Value(value_type, number)


_TEXT_PARSERS: Dict[ValueType, Callable[[ValueType, str], Value]] = {
    ValueType.STRING: lambda value_type, text: Value(value_type, text),
    ValueType.INT32: _parse_integer,
    ValueType.UINT32: _parse_integer,
    ValueType.INT64: _parse_integer,
    ValueType.UINT64: _parse_integer,
    ValueType.FLOAT32: _parse_float,
    ValueType.FLOAT64: _parse_float,
    ValueType.BYTE: _parse_integer,
    ValueType.DATETIME: lambda value_type, text: Value(value_type, DateTime.parse(text)),
}


# BINARY decoding

def _unpack_binary(value_type: ValueType, raw: bytes, encoding: str) -> Value:
    if value_type is ValueType.STRING:
        return Value(value_type, decode_string(raw, encoding))
    layout = BINARY_FORMATS[value_type]
    if len(raw) != layout.size:
        raise ValueParseError(
            f"{value_type.display_name} payload must be {layout.size} byte(s), "
            f"got {len(raw)}"
        )
    fields = layout.unpack(raw)
    if value_type is ValueType.DATETIME:
        return Value(value_type, DateTime(*fields))
    return Value(value_type, fields[0])


def decode_payload(
    tag: int,
    raw: bytes,
    value_encoding: ValueEncoding,
    string_encoding: str = "utf-8",
    offset: Optional[int] = None,
) -> Value:
    """Convert a raw attribute payload into a typed ``Value``.

    Args:
        tag: Value type tag byte read from the wire
        raw: Payload bytes following the length byte
        value_encoding: Whether the payload is TEXT or BINARY
        string_encoding: Codec used for strings and textual payloads
        offset: Byte offset of the tag, used in error messages

    Returns:
        Value holding the decoded payload

    Raises:
        UnknownValueTypeError: If ``tag`` is not a defined type
        ValueParseError: If the payload cannot be converted
        ValueOutOfRangeError: If a number does not fit the tagged type
    """
    value_type = ValueType.from_tag(tag, offset)
    try:
        if value_encoding is ValueEncoding.BINARY:
            return _unpack_binary(value_type, raw, string_encoding)
        text = decode_string(raw, string_encoding)
        return _TEXT_PARSERS[value_type](value_type, text)
    except (ValueParseError, ValueOutOfRangeError) as e:
        if offset is None or e.offset is not None:
            raise
        raise type(e)(str(e), offset) from None


# Encoding

def _format_float(value: Value) -> str:
    return repr(value.data)


_TEXT_FORMATTERS: Dict[ValueType, Callable[[Value], str]] = {
    ValueType.STRING: lambda value: value.data,
    ValueType.INT32: lambda value: str(value.data),
    ValueType.UINT32: lambda value: str(value.data),
    ValueType.INT64: lambda value: str(value.data),
    ValueType.UINT64: lambda value: str(value.data),
    ValueType.FLOAT32: _format_float,
    ValueType.FLOAT64: _format_float,
    ValueType.BYTE: lambda value: str(value.data),
    ValueType.DATETIME: lambda value: value.data.isoformat(),
}


def _pack_binary(value: Value, encoding: str) -> bytes:
    if value.type is ValueType.STRING:
        return encode_string(value.data, encoding, "String value")
    layout = BINARY_FORMATS[value.type]
    if value.type is ValueType.DATETIME:
        moment = value.data
        return layout.pack(moment.year, moment.month, moment.day,
                           moment.hour, moment.minute, moment.second)
    try:
        return layout.pack(value.data)
    except (struct.error, OverflowError) as e:
        raise ValueOutOfRangeError(
            f"{value.type.display_name} value {value.data!r} cannot be packed: {e}"
        ) from e


def encode_payload(
    value: Value,
    value_encoding: ValueEncoding,
    string_encoding: str = "utf-8",
) -> bytes:
    """Serialize a ``Value`` as ``Tag(1B) Length(1B) Bytes[Length]``.

    Raises:
        UnknownValueTypeError: If the value carries an undefined tag
        NameTooLongError: If the payload exceeds 255 bytes
    """
    value_type = value.type
    if not isinstance(value_type, ValueType) or value_type not in _TEXT_FORMATTERS:
        raise UnknownValueTypeError(value_type)

    if value_encoding is ValueEncoding.BINARY:
        payload = _pack_binary(value, string_encoding)
    else:
        payload = encode_string(
            _TEXT_FORMATTERS[value_type](value), string_encoding,
            f"{value_type.display_name} value",
        )
    return bytes((int(value_type), len(payload))) + payload
