"""Codec API for XBL documents.

Two levels of use:

- Module-level functions ``decode``, ``encode``, ``load`` and ``dump``. As
  plain functions, ``decode`` reads TEXT value payloads and ``encode`` writes
  BINARY value payloads, the wire forms existing XBL producers and consumers
  use. Pass ``value_encoding`` to choose explicitly.
- ``DocumentCodec``, configured by one ``CodecConfig`` whose
  ``value_encoding`` applies to both directions, so a codec instance always
  reads what it writes. It also records per-operation metrics.
"""

import time
from typing import Any, Dict, Optional

from xbl.api.files import PathLike, read_binary, write_binary
from xbl.codec import XBLDecoder, XBLEncoder
from xbl.codec.wire import BytesLike
from xbl.model.tree import Document
from xbl.shared.config import CodecConfig, DecoderConfig, EncoderConfig, ValueEncoding
from xbl.shared.errors import XBLError
from xbl.shared.logging import get_logger, new_correlation_id
from xbl.shared.result import CodecMetrics

MS_PER_SECOND = 1000


def decode(
    data: BytesLike,
    value_encoding: ValueEncoding = ValueEncoding.TEXT,
    correlation_id: Optional[str] = None
) -> Document:
    """Decode XBL bytes into a document.

    Args:
        data: Encoded document
        value_encoding: Representation of attribute value payloads
        correlation_id: Optional correlation ID for log records

    Returns:
        Decoded Document

    Examples:
        >>> doc = decode(bytes([0x0A, 0x04]) + b"Root" + bytes([0x00, 0x0B]))
        >>> doc["Root"].name
        'Root'
    """
    decoder = XBLDecoder(DecoderConfig(value_encoding=value_encoding), correlation_id)
    return decoder.decode(data)


def encode(
    document: Document,
    value_encoding: ValueEncoding = ValueEncoding.BINARY,
    correlation_id: Optional[str] = None
) -> bytes:
    """Encode a document into XBL bytes.

    Args:
        document: Document to encode
        value_encoding: Representation of attribute value payloads
        correlation_id: Optional correlation ID for log records

    Returns:
        Encoded bytes
    """
    encoder = XBLEncoder(EncoderConfig(value_encoding=value_encoding), correlation_id)
    return encoder.encode(document)


def load(
    path: PathLike,
    value_encoding: ValueEncoding = ValueEncoding.TEXT,
    correlation_id: Optional[str] = None
) -> Document:
    """Read and decode an XBL file."""
    return decode(read_binary(path), value_encoding, correlation_id)


def dump(
    document: Document,
    path: PathLike,
    value_encoding: ValueEncoding = ValueEncoding.BINARY,
    correlation_id: Optional[str] = None
) -> None:
    """Encode a document and write it to ``path``.

    Nothing is written if encoding fails.
    """
    write_binary(path, encode(document, value_encoding, correlation_id))


class DocumentCodec:
    """Configured decoder/encoder pair sharing one value encoding.

    Attributes:
        config: Codec configuration in effect
        correlation_id: Correlation ID attached to log records
        last_metrics: Metrics of the most recent successful operation

    Examples:
        >>> codec = DocumentCodec(CodecConfig.binary())
        >>> doc = Document()
        >>> _ = doc.create_element("Root")
        >>> codec.decode(codec.encode(doc))["Root"].name
        'Root'
    """

    def __init__(
        self,
        config: Optional[CodecConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or CodecConfig()
        if correlation_id is None and self.config.global_.enable_correlation_tracking:
            correlation_id = new_correlation_id()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "document_codec")
        self.last_metrics: Optional[CodecMetrics] = None

        self._build_components()

        self._operation_count = 0
        self._failed_operations = 0
        self._total_processing_time = 0.0

        self.logger.info(
            "DocumentCodec initialized",
            extra={
                "value_encoding": self.config.value_encoding.name,
                "preset": self.config.name,
            }
        )

    def _build_components(self) -> None:
        self._decoder = XBLDecoder(self.config.decoder_config(), self.correlation_id)
        self._encoder = XBLEncoder(self.config.encoder_config(), self.correlation_id)

    def decode(self, data: BytesLike) -> Document:
        """Decode bytes using the configured value encoding.

        Raises:
            XBLError: If ``data`` is malformed; the failure is logged first
        """
        start_time = time.perf_counter()
        try:
            document = self._decoder.decode(data)
        except XBLError as e:
            self._record_failure("decode", e, start_time)
            raise

        self._record_success("decode", start_time, len(data), document)
        return document

    def encode(self, document: Document) -> bytes:
        """Encode a document using the configured value encoding.

        Raises:
            XBLError: If the tree violates a wire limit; the failure is logged first
        """
        start_time = time.perf_counter()
        try:
            data = self._encoder.encode(document)
        except XBLError as e:
            self._record_failure("encode", e, start_time)
            raise

        self._record_success("encode", start_time, len(data), document)
        return data

    def load(self, path: PathLike) -> Document:
        """Read and decode an XBL file."""
        return self.decode(read_binary(path))

    def dump(self, document: Document, path: PathLike) -> None:
        """Encode ``document`` and write it to ``path``."""
        write_binary(path, self.encode(document))

    def reconfigure(self, config: CodecConfig) -> None:
        """Replace the configuration and rebuild decoder and encoder."""
        self.config = config
        self._build_components()
        self.logger.info(
            "DocumentCodec reconfigured",
            extra={"value_encoding": config.value_encoding.name}
        )

    def _record_success(
        self,
        operation: str,
        start_time: float,
        byte_count: int,
        document: Document
    ) -> None:
        processing_time = (time.perf_counter() - start_time) * MS_PER_SECOND
        self._operation_count += 1
        self._total_processing_time += processing_time

        if self.config.global_.enable_metrics:
            self.last_metrics = CodecMetrics(
                operation=operation,
                processing_time_ms=processing_time,
                bytes_processed=byte_count,
                elements_processed=document.element_count,
                attributes_processed=document.attribute_count,
                correlation_id=self.correlation_id,
            )

        self.logger.info(
            f"{operation.capitalize()} completed",
            extra={
                "bytes": byte_count,
                "elements": document.element_count,
                "processing_time_ms": processing_time,
            }
        )

    def _record_failure(self, operation: str, error: XBLError, start_time: float) -> None:
        processing_time = (time.perf_counter() - start_time) * MS_PER_SECOND
        self._operation_count += 1
        self._failed_operations += 1
        self._total_processing_time += processing_time

        self.logger.error(
            f"{operation.capitalize()} failed: {error}",
            extra={
                "error_kind": error.kind.name,
                "offset": error.offset,
                "processing_time_ms": processing_time,
            }
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get codec usage statistics."""
        return {
            "total_operations": self._operation_count,
            "failed_operations": self._failed_operations,
            "success_rate": (
                (self._operation_count - self._failed_operations) / self._operation_count
                if self._operation_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset codec usage statistics."""
        self._operation_count = 0
        self._failed_operations = 0
        self._total_processing_time = 0.0
        self.last_metrics = None
