"""Typed attribute values for XBL documents.

Key Components:
    ValueType: Closed set of value type tags as they appear on the wire
    DateTime: Calendar-only date and time (no timezone, no fractional seconds)
    Value: Immutable tagged union holding exactly one payload
    Attribute: Named value attached to an element
"""

import datetime as _dt
import re
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple, Type, Union

from xbl.shared.errors import (
    TypeMismatchError,
    UnknownValueTypeError,
    ValueOutOfRangeError,
    ValueParseError,
)

# Fixed positions of each field inside "YYYY-MM-DDTHH:MM:SS"
_DATETIME_SLICES = {
    "year": (0, 4),
    "month": (5, 7),
    "day": (8, 10),
    "hour": (11, 13),
    "minute": (14, 16),
    "second": (17, 19),
}
_DATETIME_TEXT_LENGTH = 19
_DIGITS = re.compile(r"[0-9]+")


class ValueType(IntEnum):
    """Value type tags; the integer value is the tag byte on the wire."""

    STRING = 0x00
    INT32 = 0x01
    UINT32 = 0x02
    INT64 = 0x03
    UINT64 = 0x04
    FLOAT32 = 0x05
    FLOAT64 = 0x06
    BYTE = 0x07
    DATETIME = 0x08

    @classmethod
    def from_tag(cls, tag: int, offset: Optional[int] = None) -> "ValueType":
        """Resolve a tag byte, raising ``UnknownValueTypeError`` if undefined."""
        try:
            return cls(tag)
        except ValueError:
            raise UnknownValueTypeError(tag, offset) from None

    @property
    def display_name(self) -> str:
        """Human-readable type name (e.g. ``Int32``)."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    ValueType.STRING: "String",
    ValueType.INT32: "Int32",
    ValueType.UINT32: "UInt32",
    ValueType.INT64: "Int64",
    ValueType.UINT64: "UInt64",
    ValueType.FLOAT32: "Float32",
    ValueType.FLOAT64: "Float64",
    ValueType.BYTE: "Byte",
    ValueType.DATETIME: "DateTime",
}

# Inclusive bounds for the integer variants
INTEGER_RANGES: Dict[ValueType, Tuple[int, int]] = {
    ValueType.INT32: (-(2 ** 31), 2 ** 31 - 1),
    ValueType.UINT32: (0, 2 ** 32 - 1),
    ValueType.INT64: (-(2 ** 63), 2 ** 63 - 1),
    ValueType.UINT64: (0, 2 ** 64 - 1),
    ValueType.BYTE: (0, 255),
}


def to_float32(value: float) -> float:
    """Round a float to the nearest IEEE-754 single precision value.

    Raises:
        ValueOutOfRangeError: If a finite value overflows single precision
    """
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        raise ValueOutOfRangeError(f"Float32 out of range: {value!r}") from None


@dataclass(frozen=True)
class DateTime:
    """Calendar date and time with one-second resolution.

    Fields are range-checked against their storage width only; no calendar
    validation is performed (month 13 is representable).
    """

    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0

    def __post_init__(self) -> None:
        """Validate field widths."""
        for name in _DATETIME_SLICES:
            field_value = getattr(self, name)
            if isinstance(field_value, bool) or not isinstance(field_value, int):
                raise TypeMismatchError(f"DateTime.{name} must be an int")
        if not (0 <= self.year <= 0xFFFF):
            raise ValueOutOfRangeError(f"DateTime year out of range: {self.year}")
        for name in ("month", "day", "hour", "minute", "second"):
            if not (0 <= getattr(self, name) <= 0xFF):
                raise ValueOutOfRangeError(
                    f"DateTime {name} out of range: {getattr(self, name)}"
                )

    @classmethod
    def parse(cls, text: str) -> "DateTime":
        """Parse the fixed-position form ``YYYY-MM-DDTHH:MM:SS``.

        Separator characters are not inspected; anything after position 19
        (fractional seconds, offsets) is ignored.

        Raises:
            ValueParseError: If the text is too short or a field is not numeric
        """
        if len(text) < _DATETIME_TEXT_LENGTH:
            raise ValueParseError(f"DateTime text too short: {text!r}")
        parts: Dict[str, int] = {}
        for name, (start, end) in _DATETIME_SLICES.items():
            piece = text[start:end]
            if not _DIGITS.fullmatch(piece):
                raise ValueParseError(f"Invalid DateTime {name} {piece!r} in {text!r}")
            parts[name] = int(piece)
        return cls(**parts)

    @classmethod
    def from_datetime(cls, value: Union[_dt.datetime, _dt.date]) -> "DateTime":
        """Convert a standard library date or datetime, dropping sub-second parts."""
        if isinstance(value, _dt.datetime):
            return cls(value.year, value.month, value.day,
                       value.hour, value.minute, value.second)
        return cls(value.year, value.month, value.day)

    def isoformat(self) -> str:
        """Render as ``YYYY-MM-DDTHH:MM:SS``, the inverse of ``parse``."""
        return (
            f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
            f"T{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
        )

    def __str__(self) -> str:
        return self.isoformat()


_PAYLOAD_TYPES: Dict[ValueType, Tuple[Type[Any], ...]] = {
    ValueType.STRING: (str,),
    ValueType.INT32: (int,),
    ValueType.UINT32: (int,),
    ValueType.INT64: (int,),
    ValueType.UINT64: (int,),
    ValueType.FLOAT32: (float, int),
    ValueType.FLOAT64: (float, int),
    ValueType.BYTE: (int,),
    ValueType.DATETIME: (DateTime,),
}


@dataclass(frozen=True)
class Value:
    """Tagged union over the XBL primitive types.

    The payload is checked against the tag on construction: a payload of the
    wrong Python type raises ``TypeMismatchError`` and an integer outside the
    variant's range raises ``ValueOutOfRangeError``. Float32 payloads are
    stored rounded to single precision.

    Examples:
        >>> Value.int32(5).as_int32()
        5
        >>> Value(ValueType.BYTE, 300)
        Traceback (most recent call last):
        ...
        xbl.shared.errors.ValueOutOfRangeError: Byte out of range: 300
    """

    type: ValueType
    data: Any

    def __post_init__(self) -> None:
        """Validate the payload against the type tag."""
        if not isinstance(self.type, ValueType):
            if isinstance(self.type, int) and not isinstance(self.type, bool):
                object.__setattr__(self, "type", ValueType.from_tag(self.type))
            else:
                raise UnknownValueTypeError(self.type)

        value_type = self.type
        data = self.data
        if isinstance(data, bool) or not isinstance(data, _PAYLOAD_TYPES[value_type]):
            raise TypeMismatchError(
                f"{value_type.display_name} value cannot hold "
                f"{type(data).__name__} payload {data!r}"
            )

        if value_type in INTEGER_RANGES:
            low, high = INTEGER_RANGES[value_type]
            if not (low <= data <= high):
                raise ValueOutOfRangeError(
                    f"{value_type.display_name} out of range: {data}"
                )
        elif value_type is ValueType.FLOAT32:
            object.__setattr__(self, "data", to_float32(float(data)))
        elif value_type is ValueType.FLOAT64:
            object.__setattr__(self, "data", float(data))

    # Typed constructors
    @classmethod
    def string(cls, data: str) -> "Value":
        return cls(ValueType.STRING, data)

    @classmethod
    def int32(cls, data: int) -> "Value":
        return cls(ValueType.INT32, data)

    @classmethod
    def uint32(cls, data: int) -> "Value":
        return cls(ValueType.UINT32, data)

    @classmethod
    def int64(cls, data: int) -> "Value":
        return cls(ValueType.INT64, data)

    @classmethod
    def uint64(cls, data: int) -> "Value":
        return cls(ValueType.UINT64, data)

    @classmethod
    def float32(cls, data: float) -> "Value":
        return cls(ValueType.FLOAT32, data)

    @classmethod
    def float64(cls, data: float) -> "Value":
        return cls(ValueType.FLOAT64, data)

    @classmethod
    def byte(cls, data: int) -> "Value":
        return cls(ValueType.BYTE, data)

    @classmethod
    def datetime(cls, data: DateTime) -> "Value":
        return cls(ValueType.DATETIME, data)

    def get(self, expected: ValueType) -> Any:
        """Return the payload, checking that it holds the expected variant.

        Raises:
            TypeMismatchError: If the stored tag differs from ``expected``
        """
        if self.type != expected:
            raise TypeMismatchError(
                f"Value holds {self.type.display_name}, "
                f"requested {ValueType(expected).display_name}"
            )
        return self.data

    # Typed accessors
    def as_string(self) -> str:
        return self.get(ValueType.STRING)

    def as_int32(self) -> int:
        return self.get(ValueType.INT32)

    def as_uint32(self) -> int:
        return self.get(ValueType.UINT32)

    def as_int64(self) -> int:
        return self.get(ValueType.INT64)

    def as_uint64(self) -> int:
        return self.get(ValueType.UINT64)

    def as_float32(self) -> float:
        return self.get(ValueType.FLOAT32)

    def as_float64(self) -> float:
        return self.get(ValueType.FLOAT64)

    def as_byte(self) -> int:
        return self.get(ValueType.BYTE)

    def as_datetime(self) -> DateTime:
        return self.get(ValueType.DATETIME)

    def to_python(self) -> Union[str, int, float]:
        """Return a JSON-compatible form of the payload."""
        if self.type is ValueType.DATETIME:
            return self.data.isoformat()
        return self.data

    def __str__(self) -> str:
        return f"{self.type.display_name}({self.to_python()!r})"


@dataclass
class Attribute:
    """Name/value pair attached to an element.

    Name length is not checked here; the encoder enforces the 255-byte limit.
    """

    name: str
    value: Value

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise TypeMismatchError("Attribute name must be a string")
        if not isinstance(self.value, Value):
            raise TypeMismatchError("Attribute value must be a Value instance")

    @property
    def type(self) -> ValueType:
        """Type tag of the attribute's value."""
        return self.value.type

    def get_value(self, expected: ValueType) -> Any:
        """Return the payload as ``expected``; see ``Value.get``."""
        return self.value.get(expected)

    def to_dict(self) -> Dict[str, Any]:
        """Convert attribute to dictionary representation."""
        return {
            "name": self.name,
            "type": self.value.type.display_name,
            "value": self.value.to_python(),
        }
