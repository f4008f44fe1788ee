"""Tree encoder for XBL documents.

Elements are written in pre-order: start marker, name, attribute count,
attributes, children in order, end marker. Root elements are concatenated in
document order. The walk uses an explicit stack so any tree the decoder can
build can also be encoded.
"""

import time
from typing import List, Optional, Tuple

from xbl.codec.payload import encode_payload
from xbl.codec.wire import ELEMENT_END, ELEMENT_START, encode_string, length_prefixed
from xbl.model.tree import Document, Element
from xbl.model.values import Attribute
from xbl.shared.config import MAX_WIRE_LENGTH, EncoderConfig
from xbl.shared.errors import TooManyAttributesError, TypeMismatchError
from xbl.shared.logging import get_logger

_END = bytes((ELEMENT_END,))


class XBLEncoder:
    """Encoder turning a ``Document`` into XBL bytes.

    Encoding is deterministic: the same tree always yields the same bytes.
    """

    def __init__(
        self,
        config: Optional[EncoderConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize encoder.

        Args:
            config: Encoder configuration (BINARY value payloads by default)
            correlation_id: Optional correlation ID for log records
        """
        self.config = config or EncoderConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "encoder")

    def encode(self, document: Document) -> bytes:
        """Encode every root element of ``document``.

        Raises:
            NameTooLongError: If a name or string payload exceeds 255 bytes
            TooManyAttributesError: If an element has more than 255 attributes
            UnknownValueTypeError: If a value carries an undefined tag
        """
        if not isinstance(document, Document):
            raise TypeMismatchError(
                f"encode expects a Document, got {type(document).__name__}"
            )

        start_time = time.perf_counter()
        out = bytearray()
        for root in document.elements:
            self._encode_subtree(root, out)

        self.logger.debug(
            "Encoded document",
            extra={
                "bytes": len(out),
                "elements": document.element_count,
                "processing_time_ms": (time.perf_counter() - start_time) * 1000,
            }
        )
        return bytes(out)

    def encode_element(self, element: Element) -> bytes:
        """Encode a single element and its subtree."""
        out = bytearray()
        self._encode_subtree(element, out)
        return bytes(out)

    def _encode_subtree(self, root: Element, out: bytearray) -> None:
        # (element, closing) pairs; closing entries emit the end marker
        stack: List[Tuple[Element, bool]] = [(root, False)]
        while stack:
            element, closing = stack.pop()
            if closing:
                out += _END
                continue
            out += self._encode_header(element)
            stack.append((element, True))
            stack.extend((child, False) for child in reversed(element.children))

    def _encode_header(self, element: Element) -> bytes:
        """Encode start marker, name, attribute count and attributes."""
        name = encode_string(element.name, self.config.string_encoding, "Element name")
        attributes = element.attributes
        if len(attributes) > MAX_WIRE_LENGTH:
            raise TooManyAttributesError(element.name, len(attributes))

        parts = [bytes((ELEMENT_START,)), length_prefixed(name), bytes((len(attributes),))]
        parts.extend(self.encode_attribute(attribute) for attribute in attributes)
        return b"".join(parts)

    def encode_attribute(self, attribute: Attribute) -> bytes:
        """Encode ``NameStr`` followed by the typed value."""
        name = encode_string(
            attribute.name, self.config.string_encoding, "Attribute name"
        )
        value = encode_payload(
            attribute.value, self.config.value_encoding, self.config.string_encoding
        )
        return length_prefixed(name) + value
