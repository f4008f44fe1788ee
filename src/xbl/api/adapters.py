"""Integration adapters converting XBL documents to and from other libraries.

Markup adapters (ElementTree, lxml) map a document onto a lossless XML view::

    <document>
      <element name="Root">
        <attribute name="x" type="Int32">5</attribute>
        <element name="Kid"/>
      </element>
    </document>

Names live in ``name`` attributes, so any XBL name (including duplicates and
names that are not valid XML) survives. Values use their TEXT wire form.

The pandas adapter flattens a document into one row per attribute (elements
without attributes get a single row with empty attribute columns); the
``element_index``/``parent_index`` columns make the frame convertible back.
"""

import numbers
import re
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Type

from xbl.codec.payload import decode_payload
from xbl.codec.wire import STRING_ERRORS
from xbl.model.tree import Document, Element
from xbl.model.values import DateTime, Value, ValueType
from xbl.shared.config import ValueEncoding
from xbl.shared.errors import ValueParseError, XBLError
from xbl.shared.logging import get_logger

DOCUMENT_TAG = "document"
ELEMENT_TAG = "element"
ATTRIBUTE_TAG = "attribute"

FRAME_COLUMNS = [
    "element_index",
    "parent_index",
    "element",
    "path",
    "depth",
    "attribute",
    "type",
    "value",
]

_TYPES_BY_NAME = {value_type.display_name: value_type for value_type in ValueType}

# Complement of the XML 1.0 Char production
_XML_ILLEGAL = re.compile(r"[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


class AdapterType(Enum):
    """Types of integration adapters."""

    XML_LIBRARY = auto()     # Markup trees (ElementTree, lxml)
    DATA_FRAME = auto()      # Tabular views (pandas)


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    adapter_type: AdapterType
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters.

    Conversions never raise for bad input; failures are reported through a
    ``ConversionResult`` with ``success=False`` and logged.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)
        self._conversion_times: List[float] = []

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def to_target(self, document: Document) -> ConversionResult:
        """Convert a document to the target representation."""

    @abstractmethod
    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert the target representation back to a document."""

    def get_performance_stats(self) -> Dict[str, float]:
        """Get conversion timing statistics for this adapter."""
        times = self._conversion_times
        if not times:
            return {}
        return {
            "count": len(times),
            "average_ms": sum(times) / len(times),
            "min_ms": min(times),
            "max_ms": max(times),
            "total_ms": sum(times),
        }

    def _success(
        self,
        converted: Any,
        original: Any,
        start_time: float,
        metadata: Optional[Dict[str, Any]] = None
    ) -> ConversionResult:
        processing_time = (time.perf_counter() - start_time) * 1000
        self._conversion_times.append(processing_time)
        return ConversionResult(
            success=True,
            converted_data=converted,
            original_data=original,
            conversion_time_ms=processing_time,
            metadata=metadata or {},
        )

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        start_time: float
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.warning(
            error_message, extra={"adapter": self.metadata.name}
        )
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=(time.perf_counter() - start_time) * 1000,
            errors=[error_message],
        )


class _MarkupAdapter(IntegrationAdapter):
    """Shared conversion logic for ElementTree-compatible libraries."""

    @abstractmethod
    def _etree(self) -> Any:
        """Import and return the ElementTree-compatible module."""

    def is_available(self) -> bool:
        try:
            self._etree()
        except ImportError:
            return False
        return True

    def to_target(self, document: Document) -> ConversionResult:
        """Convert a document to a ``<document>`` element tree."""
        start_time = time.perf_counter()
        if not isinstance(document, Document):
            return self._create_error_result(
                "Source is not an XBL Document", document, start_time
            )

        etree = self._etree()
        try:
            root = etree.Element(DOCUMENT_TAG)
            # (xbl element, parent markup node) pairs in document order
            pending = [(element, root) for element in reversed(document.elements)]
            while pending:
                element, parent = pending.pop()
                node = etree.SubElement(
                    parent, ELEMENT_TAG, name=_xml_safe(element.name, "Element name")
                )
                for attribute in element.attributes:
                    child = etree.SubElement(
                        node, ATTRIBUTE_TAG,
                        name=_xml_safe(attribute.name, "Attribute name"),
                        type=attribute.type.display_name,
                    )
                    child.text = _xml_safe(_text_form(attribute.value), "Attribute value")
                pending.extend((kid, node) for kid in reversed(element.children))
        except ValueError as e:
            return self._create_error_result(
                f"Failed to convert to {self.metadata.target_library}: {e}",
                document, start_time,
            )

        return self._success(
            root, document, start_time,
            {"element_count": document.element_count},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Rebuild a document from a ``<document>`` element tree."""
        start_time = time.perf_counter()
        if getattr(target_data, "tag", None) != DOCUMENT_TAG:
            return self._create_error_result(
                f"Target data is not a <{DOCUMENT_TAG}> element", target_data, start_time
            )

        document = Document()
        try:
            pending = [(node, None) for node in reversed(list(target_data))]
            while pending:
                node, parent = pending.pop()
                element = self._element_from_node(node, document, parent)
                children = [child for child in node if child.tag == ELEMENT_TAG]
                pending.extend((child, element) for child in reversed(children))
        except XBLError as e:
            return self._create_error_result(
                f"Failed to convert from {self.metadata.target_library}: {e}",
                target_data, start_time,
            )

        return self._success(
            document, target_data, start_time,
            {"element_count": document.element_count},
        )

    def _element_from_node(
        self,
        node: Any,
        document: Document,
        parent: Optional[Element]
    ) -> Element:
        if node.tag != ELEMENT_TAG:
            raise ValueParseError(f"Unexpected <{node.tag}> outside an element")
        name = _required(node, "name")
        element = document.create_element(name) if parent is None else parent.create_child(name)
        for child in node:
            if child.tag == ATTRIBUTE_TAG:
                value = _value_from_text(_required(child, "type"), child.text or "")
                element.add_attribute(_required(child, "name"), value)
            elif child.tag != ELEMENT_TAG:
                raise ValueParseError(f"Unexpected <{child.tag}> inside <{ELEMENT_TAG}>")
        return element


class ElementTreeAdapter(_MarkupAdapter):
    """Adapter for xml.etree.ElementTree."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="elementtree",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="xml.etree.ElementTree",
            description="Markup view of XBL documents using ElementTree",
        )

    def _etree(self) -> Any:
        import xml.etree.ElementTree as ET
        return ET


class LxmlAdapter(_MarkupAdapter):
    """Adapter for lxml.etree."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            description="Markup view of XBL documents using lxml.etree",
        )

    def _etree(self) -> Any:
        import lxml.etree
        return lxml.etree


class PandasAdapter(IntegrationAdapter):
    """Adapter for pandas DataFrame."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="pandas",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            description="Flat attribute table of XBL documents",
        )

    def is_available(self) -> bool:
        try:
            import pandas  # noqa: F401
        except ImportError:
            return False
        return True

    def to_target(self, document: Document) -> ConversionResult:
        """Flatten a document into a DataFrame with ``FRAME_COLUMNS``."""
        import pandas as pd

        start_time = time.perf_counter()
        if not isinstance(document, Document):
            return self._create_error_result(
                "Source is not an XBL Document", document, start_time
            )

        rows = []
        for element in document.iter_elements():
            parent = element.parent
            base = {
                "element_index": element.index,
                "parent_index": None if parent is None else parent.index,
                "element": element.name,
                "path": element.path,
                "depth": element.depth,
            }
            attributes = element.attributes
            if not attributes:
                rows.append(dict(base, attribute=None, type=None, value=None))
            for attribute in attributes:
                rows.append(dict(
                    base,
                    attribute=attribute.name,
                    type=attribute.type.display_name,
                    value=attribute.value.to_python(),
                ))

        # object dtype keeps Python ints exact (UInt64 exceeds int64)
        frame = pd.DataFrame(rows, columns=FRAME_COLUMNS, dtype=object)
        return self._success(
            frame, document, start_time,
            {"row_count": len(frame), "columns": list(frame.columns)},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Rebuild a document from a frame produced by ``to_target``."""
        import pandas as pd

        start_time = time.perf_counter()
        if not isinstance(target_data, pd.DataFrame):
            return self._create_error_result(
                "Target data is not a pandas DataFrame", target_data, start_time
            )
        missing = [column for column in FRAME_COLUMNS if column not in target_data.columns]
        if missing:
            return self._create_error_result(
                f"DataFrame is missing columns: {missing}", target_data, start_time
            )

        document = Document()
        elements: Dict[Any, Element] = {}
        try:
            for row in target_data.itertuples(index=False):
                element = elements.get(row.element_index)
                if element is None:
                    if pd.isna(row.parent_index):
                        element = document.create_element(row.element)
                    elif row.parent_index in elements:
                        element = elements[row.parent_index].create_child(row.element)
                    else:
                        raise ValueParseError(
                            f"Row for element {row.element_index} precedes its parent"
                        )
                    elements[row.element_index] = element
                if not pd.isna(row.attribute):
                    element.add_attribute(row.attribute, _value_from_python(row.type, row.value))
        except XBLError as e:
            return self._create_error_result(
                f"Failed to convert from pandas DataFrame: {e}", target_data, start_time
            )

        return self._success(
            document, target_data, start_time,
            {"element_count": document.element_count},
        )


def _xml_safe(text: str, what: str) -> str:
    """Return ``text`` unchanged, or raise ValueError if XML 1.0 cannot hold it.

    ElementTree serializes control characters and lone surrogates without
    complaint, producing markup no parser accepts.
    """
    match = _XML_ILLEGAL.search(text)
    if match is not None:
        raise ValueError(
            f"{what} {text!r} holds character {match.group()!r} not allowed in XML"
        )
    return text


def _text_form(value: Value) -> str:
    if value.type is ValueType.DATETIME:
        return value.data.isoformat()
    if value.type in (ValueType.FLOAT32, ValueType.FLOAT64):
        return repr(value.data)
    return str(value.data)


def _required(node: Any, key: str) -> str:
    result = node.get(key)
    if result is None:
        raise ValueParseError(f"<{node.tag}> is missing the {key!r} attribute")
    return result


def _value_type(type_name: str) -> ValueType:
    try:
        return _TYPES_BY_NAME[type_name]
    except KeyError:
        raise ValueParseError(f"Unknown value type name: {type_name!r}") from None


def _value_from_text(type_name: str, text: str) -> Value:
    value_type = _value_type(type_name)
    try:
        raw = text.encode("utf-8", STRING_ERRORS)
    except UnicodeEncodeError as e:
        raise ValueParseError(f"Unencodable {type_name} text {text!r}: {e.reason}") from None
    return decode_payload(int(value_type), raw, ValueEncoding.TEXT)


def _value_from_python(type_name: str, data: Any) -> Value:
    value_type = _value_type(type_name)
    if value_type is ValueType.DATETIME:
        return Value(value_type, DateTime.parse(str(data)))
    if value_type is ValueType.STRING:
        return Value(value_type, str(data))
    try:
        if value_type in (ValueType.FLOAT32, ValueType.FLOAT64):
            return Value(value_type, float(data))
        if isinstance(data, numbers.Real) and not isinstance(data, numbers.Integral):
            # Frames store integers as floats once a column holds NaN
            if not float(data).is_integer():
                raise ValueError("not an integral number")
        return Value(value_type, int(data))
    except XBLError:
        raise
    except (TypeError, ValueError) as e:
        raise ValueParseError(f"Invalid {type_name} value {data!r}: {e}") from e


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        """Register an adapter class under its metadata name."""
        with self._lock:
            self._adapters[adapter_class().metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None
    ) -> Optional[IntegrationAdapter]:
        """Get an adapter instance, or None if unknown or its library is missing."""
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        instance = adapter_class(correlation_id)
        return instance if instance.is_available() else None

    def list_available_adapters(self) -> List[AdapterMetadata]:
        """List metadata of adapters whose library can be imported."""
        with self._lock:
            classes = list(self._adapters.values())
        instances = [adapter_class() for adapter_class in classes]
        return [instance.metadata for instance in instances if instance.is_available()]

    def get_adapters_by_type(self, adapter_type: AdapterType) -> List[str]:
        """Get names of available adapters of the given type."""
        return [
            metadata.name
            for metadata in self.list_available_adapters()
            if metadata.adapter_type is adapter_type
        ]


# Global adapter registry instance
_adapter_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally."""
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance.

    Args:
        adapter_name: Name of the adapter (``elementtree``, ``lxml``, ``pandas``)
        correlation_id: Optional correlation ID

    Returns:
        Adapter instance if available, None otherwise
    """
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List all available integration adapters."""
    return _adapter_registry.list_available_adapters()


def get_adapters_by_type(adapter_type: AdapterType) -> List[str]:
    """Get available adapter names by type."""
    return _adapter_registry.get_adapters_by_type(adapter_type)


for _adapter_class in (ElementTreeAdapter, LxmlAdapter, PandasAdapter):
    register_adapter(_adapter_class)
