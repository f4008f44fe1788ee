"""Binary codec for XBL documents.

Key Components:
    XBLDecoder: stack-based single-pass decoder (bytes -> Document)
    XBLEncoder: pre-order encoder (Document -> bytes)
    ByteReader: bounds-checked cursor used by the decoder
"""

from .decoder import XBLDecoder
from .encoder import XBLEncoder
from .payload import decode_payload, encode_payload
from .wire import ELEMENT_END, ELEMENT_START, ByteReader

__all__ = [
    "ELEMENT_END",
    "ELEMENT_START",
    "ByteReader",
    "XBLDecoder",
    "XBLEncoder",
    "decode_payload",
    "encode_payload",
]
