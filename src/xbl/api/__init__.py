"""Public codec API for XBL documents."""

from .adapters import (
    AdapterType,
    ConversionResult,
    get_adapter,
    list_available_adapters,
)
from .codec import DocumentCodec, decode, dump, encode, load
from .files import read_binary, write_binary

__all__ = [
    "AdapterType",
    "ConversionResult",
    "DocumentCodec",
    "decode",
    "dump",
    "encode",
    "get_adapter",
    "list_available_adapters",
    "load",
    "read_binary",
    "write_binary",
]
