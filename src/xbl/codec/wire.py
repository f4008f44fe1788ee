"""Wire-level primitives shared by the decoder and encoder.

Layout of one element on the wire::

    Element    := 0x0A NameStr AttrCount(1B) Attribute* Element* 0x0B
    NameStr    := Length(1B) Bytes[Length]
    Attribute  := NameStr Tag(1B) Length(1B) Bytes[Length]
"""

from typing import Union

from xbl.shared.config import MAX_WIRE_LENGTH
from xbl.shared.errors import NameTooLongError, UnexpectedEofError

ELEMENT_START = 0x0A
ELEMENT_END = 0x0B

# Strings keep undecodable bytes as lone surrogates so they survive re-encoding
STRING_ERRORS = "surrogateescape"

BytesLike = Union[bytes, bytearray, memoryview]


class ByteReader:
    """Forward-only cursor over an in-memory byte buffer.

    Every read that would run past the end of the buffer raises
    ``UnexpectedEofError`` naming the field being read and its offset.
    """

    def __init__(self, data: BytesLike) -> None:
        self._data = bytes(data)
        self._position = 0

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        return len(self._data) - self._position

    @property
    def at_end(self) -> bool:
        return self._position >= len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def read_byte(self, what: str) -> int:
        """Consume and return one byte."""
        if self._position >= len(self._data):
            raise UnexpectedEofError(
                f"Unexpected EOF while reading {what}", self._position
            )
        value = self._data[self._position]
        self._position += 1
        return value

    def read_bytes(self, count: int, what: str) -> bytes:
        """Consume and return exactly ``count`` bytes."""
        end = self._position + count
        if end > len(self._data):
            raise UnexpectedEofError(
                f"Unexpected EOF while reading {what}: need {count} byte(s), "
                f"{self.remaining} remaining",
                self._position,
            )
        chunk = self._data[self._position:end]
        self._position = end
        return chunk

    def read_length_prefixed(self, what: str) -> bytes:
        """Consume a one-byte length followed by that many bytes."""
        length = self.read_byte(f"{what} length")
        return self.read_bytes(length, what)


def decode_string(raw: bytes, encoding: str) -> str:
    """Decode wire bytes to ``str`` without loss."""
    return raw.decode(encoding, STRING_ERRORS)


def encode_string(text: str, encoding: str, what: str) -> bytes:
    """Encode ``text`` and enforce the one-byte length limit.

    Raises:
        NameTooLongError: If the encoded form exceeds 255 bytes
    """
    raw = text.encode(encoding, STRING_ERRORS)
    if len(raw) > MAX_WIRE_LENGTH:
        raise NameTooLongError(what, len(raw))
    return raw


def length_prefixed(raw: bytes) -> bytes:
    """Prefix ``raw`` (already length-checked) with its one-byte length."""
    return bytes((len(raw),)) + raw
