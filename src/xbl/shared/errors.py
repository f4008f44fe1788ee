"""Error taxonomy for XBL encoding and decoding.

Every failure surfaced by the value model, tree model, decoder and encoder is
an ``XBLError`` subclass carrying an ``ErrorKind`` so callers can branch on the
kind of failure instead of parsing message text.
"""

from enum import Enum, auto
from typing import Optional


class ErrorKind(Enum):
    """Kinds of failure raised by the codec and tree model."""

    UNEXPECTED_EOF = auto()          # Buffer exhausted mid-field
    UNRECOGNIZED_MARKER = auto()     # Byte outside {START, END} where a marker was expected
    UNTERMINATED_ELEMENT = auto()    # Open elements remain at end of input
    UNBALANCED_END = auto()          # END marker with no open element
    UNKNOWN_VALUE_TYPE = auto()      # Tag byte outside the defined set
    VALUE_PARSE_FAILURE = auto()     # Payload could not be converted to the tagged type
    VALUE_OUT_OF_RANGE = auto()      # Numeric value outside the target type's range
    NAME_TOO_LONG = auto()           # Name or string payload longer than 255 bytes
    TOO_MANY_ATTRIBUTES = auto()     # More than 255 attributes on one element
    NESTING_TOO_DEEP = auto()        # Decoder nesting limit exceeded
    INPUT_TOO_LARGE = auto()         # Decoder input size limit exceeded
    NOT_FOUND = auto()               # Lookup miss
    TYPE_MISMATCH = auto()           # Value read as the wrong variant
    FILE_ACCESS = auto()             # File could not be opened, read or written


class XBLError(Exception):
    """Base exception for all XBL failures."""

    kind: ErrorKind = ErrorKind.VALUE_PARSE_FAILURE

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        if offset is not None:
            message = f"{message} (at byte offset {offset})"
        super().__init__(message)
        self.offset = offset


class UnexpectedEofError(XBLError):
    """Raised when the input ends in the middle of a field."""

    kind = ErrorKind.UNEXPECTED_EOF


class UnrecognizedMarkerError(XBLError):
    """Raised when a byte other than START/END appears where a marker belongs."""

    kind = ErrorKind.UNRECOGNIZED_MARKER

    def __init__(self, marker: int, offset: Optional[int] = None) -> None:
        super().__init__(f"Unrecognized marker byte: 0x{marker:02X}", offset)
        self.marker = marker


class UnterminatedElementError(XBLError):
    """Raised when elements are still open at the end of input."""

    kind = ErrorKind.UNTERMINATED_ELEMENT

    def __init__(self, open_elements: int, offset: Optional[int] = None) -> None:
        super().__init__(
            f"Incomplete elements present: {open_elements} element(s) not closed",
            offset,
        )
        self.open_elements = open_elements


class UnbalancedEndError(XBLError):
    """Raised when an END marker arrives with no element open."""

    kind = ErrorKind.UNBALANCED_END


class UnknownValueTypeError(XBLError):
    """Raised for a value type tag outside the defined set."""

    kind = ErrorKind.UNKNOWN_VALUE_TYPE

    def __init__(self, tag: object, offset: Optional[int] = None) -> None:
        shown = f"0x{tag:02X}" if isinstance(tag, int) else repr(tag)
        super().__init__(f"Invalid data type: {shown}", offset)
        self.tag = tag


class ValueParseError(XBLError):
    """Raised when a payload cannot be converted to its tagged type."""

    kind = ErrorKind.VALUE_PARSE_FAILURE


class ValueOutOfRangeError(XBLError):
    """Raised when a numeric value does not fit its target type."""

    kind = ErrorKind.VALUE_OUT_OF_RANGE


class NameTooLongError(XBLError):
    """Raised by the encoder for names or strings longer than 255 bytes."""

    kind = ErrorKind.NAME_TOO_LONG

    def __init__(self, what: str, length: int) -> None:
        super().__init__(f"{what} too long with size: {length} (maximum 255 bytes)")
        self.length = length


class TooManyAttributesError(XBLError):
    """Raised by the encoder for elements carrying more than 255 attributes."""

    kind = ErrorKind.TOO_MANY_ATTRIBUTES

    def __init__(self, element_name: str, count: int) -> None:
        super().__init__(
            f"Too many attributes on element {element_name!r}: {count} (maximum 255)"
        )
        self.count = count


class NestingTooDeepError(XBLError):
    """Raised when the decoder exceeds its configured nesting limit."""

    kind = ErrorKind.NESTING_TOO_DEEP


class InputTooLargeError(XBLError):
    """Raised when decoder input exceeds the configured size limit."""

    kind = ErrorKind.INPUT_TOO_LARGE


class NotFoundError(XBLError, LookupError):
    """Raised when an attribute, child or root element lookup misses."""

    kind = ErrorKind.NOT_FOUND


class TypeMismatchError(XBLError, TypeError):
    """Raised when a value is constructed or read as the wrong variant."""

    kind = ErrorKind.TYPE_MISMATCH


class FileAccessError(XBLError):
    """Raised when a file cannot be opened, read or written."""

    kind = ErrorKind.FILE_ACCESS

    def __init__(self, message: str, path: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path
