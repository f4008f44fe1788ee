"""In-memory data model for XBL documents.

Key Components:
    ValueType, DateTime, Value, Attribute: typed attribute values
    Document: arena-backed owner of an ordered forest of elements
    Element: handle onto a single element node
"""

from .tree import Document, Element, ElementNode
from .values import Attribute, DateTime, Value, ValueType

__all__ = [
    "Attribute",
    "DateTime",
    "Document",
    "Element",
    "ElementNode",
    "Value",
    "ValueType",
]
