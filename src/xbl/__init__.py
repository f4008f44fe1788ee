"""XBL: a compact binary tree-document format.

Nested named elements carrying typed attributes, encoded as a tagged byte
stream (a binary analogue of XML), with a stack-based decoder and a pre-order
encoder.

Progressive API Disclosure:
- Level 1: Simple functions - decode(), encode(), load(), dump()
- Level 2: Configured codec - DocumentCodec with CodecConfig
- Level 3: Components - XBLDecoder / XBLEncoder with their own configs
"""

__version__ = "0.1.0"
__author__ = "XBL Team"

from .api import DocumentCodec, decode, dump, encode, load, read_binary, write_binary
from .codec import XBLDecoder, XBLEncoder
from .model import Attribute, DateTime, Document, Element, Value, ValueType
from .shared.config import CodecConfig, ValueEncoding
from .shared.errors import ErrorKind, XBLError

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "decode",
    "encode",
    "load",
    "dump",
    "read_binary",
    "write_binary",

    # Level 2: Configured codec
    "DocumentCodec",
    "CodecConfig",
    "ValueEncoding",

    # Level 3: Components
    "XBLDecoder",
    "XBLEncoder",

    # Data model
    "Attribute",
    "DateTime",
    "Document",
    "Element",
    "Value",
    "ValueType",

    # Errors
    "ErrorKind",
    "XBLError",
]
