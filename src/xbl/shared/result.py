"""Operation metrics for XBL encoding and decoding."""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class CodecMetrics:
    """Performance metrics for a single decode or encode operation."""

    operation: str
    processing_time_ms: float = 0.0
    bytes_processed: int = 0
    elements_processed: int = 0
    attributes_processed: int = 0
    correlation_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        """Validate metrics."""
        if self.operation not in ("decode", "encode"):
            raise ValueError("operation must be 'decode' or 'encode'")
        if self.processing_time_ms < 0:
            raise ValueError("processing_time_ms must be >= 0")

    @property
    def bytes_per_second(self) -> float:
        """Calculate throughput in bytes per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.bytes_processed * 1000.0) / self.processing_time_ms

    @property
    def elements_per_second(self) -> float:
        """Calculate elements handled per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.elements_processed * 1000.0) / self.processing_time_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary representation."""
        return {
            "operation": self.operation,
            "processing_time_ms": round(self.processing_time_ms, 3),
            "bytes_processed": self.bytes_processed,
            "elements_processed": self.elements_processed,
            "attributes_processed": self.attributes_processed,
            "correlation_id": self.correlation_id,
        }
