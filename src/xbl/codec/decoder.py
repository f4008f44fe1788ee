"""Byte-stream decoder for XBL documents.

The decoder makes a single forward pass over the buffer, keeping an explicit
stack of open elements instead of recursing, so nesting depth is bounded by
configuration rather than by the interpreter's recursion limit. Any
malformed byte aborts the whole decode; no partial document is returned.
"""

import time
from typing import List, Optional

from xbl.codec.payload import decode_payload
from xbl.codec.wire import ELEMENT_END, ELEMENT_START, ByteReader, BytesLike, decode_string
from xbl.model.tree import Document, Element
from xbl.model.values import Attribute
from xbl.shared.config import DecoderConfig
from xbl.shared.errors import (
    InputTooLargeError,
    NestingTooDeepError,
    TypeMismatchError,
    UnbalancedEndError,
    UnrecognizedMarkerError,
    UnterminatedElementError,
)
from xbl.shared.logging import get_logger


class XBLDecoder:
    """Decoder turning XBL bytes into a ``Document``.

    Examples:
        >>> doc = XBLDecoder().decode(b"\\x0a\\x04Root\\x00\\x0b")
        >>> doc.elements[0].name
        'Root'
    """

    def __init__(
        self,
        config: Optional[DecoderConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize decoder.

        Args:
            config: Decoder configuration (TEXT value payloads by default)
            correlation_id: Optional correlation ID for log records
        """
        self.config = config or DecoderConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "decoder")

    def decode(self, data: BytesLike) -> Document:
        """Decode a complete buffer into a document.

        Args:
            data: Encoded document bytes

        Returns:
            Document holding every root element found in ``data``

        Raises:
            XBLError: Subclass describing the first malformed field
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeMismatchError(
                f"decode expects bytes-like input, got {type(data).__name__}"
            )

        limit = self.config.max_input_size_bytes
        if limit is not None and len(data) > limit:
            raise InputTooLargeError(
                f"Input of {len(data)} bytes exceeds limit of {limit} bytes"
            )

        start_time = time.perf_counter()
        reader = ByteReader(data)
        document = Document()
        stack: List[Element] = []

        while not reader.at_end:
            marker_offset = reader.position
            marker = reader.read_byte("marker")

            if marker == ELEMENT_START:
                element = self._read_element(reader, document, stack, marker_offset)
                stack.append(element)
            elif marker == ELEMENT_END:
                if not stack:
                    raise UnbalancedEndError(
                        "Element end marker with no open element", marker_offset
                    )
                stack.pop()
            else:
                raise UnrecognizedMarkerError(marker, marker_offset)

        if stack:
            raise UnterminatedElementError(len(stack), reader.position)

        self.logger.debug(
            "Decoded document",
            extra={
                "bytes": len(reader),
                "elements": document.element_count,
                "attributes": document.attribute_count,
                "processing_time_ms": (time.perf_counter() - start_time) * 1000,
            }
        )
        return document

    def _read_element(
        self,
        reader: ByteReader,
        document: Document,
        stack: List[Element],
        marker_offset: int
    ) -> Element:
        """Read one element header and attach it to the innermost open element."""
        max_depth = self.config.max_depth
        if max_depth is not None and len(stack) >= max_depth:
            raise NestingTooDeepError(
                f"Element nesting exceeds limit of {max_depth}", marker_offset
            )

        name = decode_string(
            reader.read_length_prefixed("element name"), self.config.string_encoding
        )
        attribute_count = reader.read_byte("attribute count")
        attributes = [self._read_attribute(reader) for _ in range(attribute_count)]

        if stack:
            element = stack[-1].create_child(name)
        else:
            element = document.create_element(name)
        element.add_attributes(attributes)
        return element

    def _read_attribute(self, reader: ByteReader) -> Attribute:
        """Read ``NameStr Tag Length Bytes`` and convert the payload by tag."""
        name = decode_string(
            reader.read_length_prefixed("attribute name"), self.config.string_encoding
        )
        tag_offset = reader.position
        tag = reader.read_byte("attribute value type")
        raw = reader.read_length_prefixed("attribute value")
        value = decode_payload(
            tag,
            raw,
            self.config.value_encoding,
            self.config.string_encoding,
            offset=tag_offset,
        )
        return Attribute(name, value)
