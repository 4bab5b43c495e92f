"""
avawallet/codec/packer.py

Big-endian primitive packing for the linear codec.
"""

import struct
from typing import TYPE_CHECKING, Optional

from ..config import MAX_SLICE_LEN

if TYPE_CHECKING:
    from .linear import LinearCodec


class CodecError(Exception):
    """Raised when bytes cannot be packed or unpacked."""
    pass


_U8 = struct.Struct(">B")
_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")


class Packer:
    """Append-only big-endian writer."""

    def __init__(self, codec: Optional["LinearCodec"] = None):
        self.codec = codec
        self._buf = bytearray()

    def _pack(self, fmt: struct.Struct, value: int) -> None:
        try:
            self._buf += fmt.pack(value)
        except struct.error as e:
            raise CodecError(f"cannot pack {value!r}: {e}") from e

    def pack_u8(self, value: int) -> None:
        self._pack(_U8, value)

    def pack_u16(self, value: int) -> None:
        self._pack(_U16, value)

    def pack_u32(self, value: int) -> None:
        self._pack(_U32, value)

    def pack_u64(self, value: int) -> None:
        self._pack(_U64, value)

    def pack_bool(self, value: bool) -> None:
        self.pack_u8(1 if value else 0)

    def pack_fixed(self, value: bytes, size: int) -> None:
        if len(value) != size:
            raise CodecError(f"expected {size} bytes, got {len(value)}")
        self._buf += value

    def pack_bytes(self, value: bytes) -> None:
        self.pack_len(len(value))
        self._buf += value

    def pack_str(self, value: str) -> None:
        raw = value.encode("utf-8")
        self._pack(_U16, len(raw))
        self._buf += raw

    def pack_len(self, length: int) -> None:
        if length > MAX_SLICE_LEN:
            raise CodecError(f"slice length {length} exceeds {MAX_SLICE_LEN}")
        self.pack_u32(length)

    def getvalue(self) -> bytes:
        return bytes(self._buf)


class Unpacker:
    """Bounds-checked big-endian reader."""

    def __init__(self, data: bytes, codec: Optional["LinearCodec"] = None):
        self.codec = codec
        self._data = bytes(data)
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def _take(self, size: int) -> bytes:
        if size > self.remaining:
            raise CodecError(
                f"insufficient length: need {size} bytes at offset {self._offset}, "
                f"have {self.remaining}"
            )
        chunk = self._data[self._offset:self._offset + size]
        self._offset += size
        return chunk

    def _unpack(self, fmt: struct.Struct) -> int:
        return fmt.unpack(self._take(fmt.size))[0]

    def unpack_u8(self) -> int:
        return self._unpack(_U8)

    def unpack_u16(self) -> int:
        return self._unpack(_U16)

    def unpack_u32(self) -> int:
        return self._unpack(_U32)

    def unpack_u64(self) -> int:
        return self._unpack(_U64)

    def unpack_bool(self) -> bool:
        value = self.unpack_u8()
        if value > 1:
            raise CodecError(f"invalid bool byte {value}")
        return value == 1

    def unpack_fixed(self, size: int) -> bytes:
        return self._take(size)

    def unpack_bytes(self) -> bytes:
        return self._take(self.unpack_len())

    def unpack_str(self) -> str:
        raw = self._take(self.unpack_u16())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CodecError(f"string is not utf-8: {e}") from e

    def unpack_len(self) -> int:
        length = self.unpack_u32()
        # Every element takes at least one byte, so a longer slice cannot fit.
        if length > MAX_SLICE_LEN or length > self.remaining:
            raise CodecError(f"slice length {length} exceeds remaining {self.remaining} bytes")
        return length

    def expect_end(self) -> None:
        if self.remaining:
            raise CodecError(f"{self.remaining} trailing bytes after offset {self._offset}")
