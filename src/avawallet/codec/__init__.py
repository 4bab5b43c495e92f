"""
avawallet/codec/

Linear codec shared by the P-Chain, X-Chain and C-Chain transaction formats.
"""

from .packer import CodecError, Packer, Unpacker
from .linear import (
    BOOL,
    BYTES,
    STR,
    U8,
    U16,
    U32,
    U64,
    Fixed,
    Interface,
    Kind,
    LinearCodec,
    Serializable,
    Slice,
    Struct,
    require_exhaustive,
    skip,
    wire,
)

__all__ = [
    "CodecError",
    "Packer",
    "Unpacker",
    "BOOL",
    "BYTES",
    "STR",
    "U8",
    "U16",
    "U32",
    "U64",
    "Fixed",
    "Interface",
    "Kind",
    "LinearCodec",
    "Serializable",
    "Slice",
    "Struct",
    "require_exhaustive",
    "skip",
    "wire",
]
