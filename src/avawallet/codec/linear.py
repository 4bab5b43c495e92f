"""
avawallet/codec/linear.py

Linear codec: declarative wire layout for dataclasses plus a type-id registry.

Layout rules:
- Every top level value starts with a uint16 codec version
- Integers are big-endian, fixed width
- Slices and byte strings are prefixed with a uint32 length
- Strings are prefixed with a uint16 length
- Interface fields are prefixed with the uint32 type id of the concrete value
- Struct fields are written inline, in declaration order

A registry assigns type ids by registration order. Skipped slots keep ids
stable across chains that share fx types but differ in what comes before.
"""

from dataclasses import field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional, Sequence, Type

from ..config import CODEC_VERSION
from .packer import CodecError, Packer, Unpacker


class Kind(Enum):
    """Interfaces an interface field can require of its concrete value."""
    UNSIGNED_TX = "unsigned_tx"
    INPUT = "input"
    OUTPUT = "output"
    OWNER = "owner"
    CREDENTIAL = "credential"
    OPERATION = "operation"
    AUTH = "auth"
    SIGNER = "signer"
    STATE = "state"


# ============================================================================
# WIRE FIELD TYPES
# ============================================================================

class Wire:
    """How one field is laid out on the wire."""

    def pack(self, p: Packer, value: Any) -> None:
        raise NotImplementedError

    def unpack(self, u: Unpacker) -> Any:
        raise NotImplementedError


class _Int(Wire):
    def __init__(self, width: int):
        self.width = width

    def pack(self, p: Packer, value: int) -> None:
        getattr(p, f"pack_u{self.width}")(value)

    def unpack(self, u: Unpacker) -> int:
        return getattr(u, f"unpack_u{self.width}")()


class _Bool(Wire):
    def pack(self, p: Packer, value: bool) -> None:
        p.pack_bool(value)

    def unpack(self, u: Unpacker) -> bool:
        return u.unpack_bool()


class Fixed(Wire):
    """Fixed-size byte array, written raw."""

    def __init__(self, size: int):
        self.size = size

    def pack(self, p: Packer, value: bytes) -> None:
        p.pack_fixed(value, self.size)

    def unpack(self, u: Unpacker) -> bytes:
        return u.unpack_fixed(self.size)


class _VarBytes(Wire):
    def pack(self, p: Packer, value: bytes) -> None:
        p.pack_bytes(value)

    def unpack(self, u: Unpacker) -> bytes:
        return u.unpack_bytes()


class _Str(Wire):
    def pack(self, p: Packer, value: str) -> None:
        p.pack_str(value)

    def unpack(self, u: Unpacker) -> str:
        return u.unpack_str()


class Slice(Wire):
    """Length-prefixed sequence of `elem`."""

    def __init__(self, elem: Wire):
        self.elem = elem

    def pack(self, p: Packer, value: Sequence[Any]) -> None:
        p.pack_len(len(value))
        for item in value:
            self.elem.pack(p, item)

    def unpack(self, u: Unpacker) -> List[Any]:
        return [self.elem.unpack(u) for _ in range(u.unpack_len())]


class Struct(Wire):
    """A nested Serializable written inline."""

    def __init__(self, cls: Type["Serializable"]):
        self.cls = cls

    def pack(self, p: Packer, value: "Serializable") -> None:
        if not isinstance(value, self.cls):
            raise CodecError(f"expected {self.cls.__name__}, got {type(value).__name__}")
        value.pack_fields(p)

    def unpack(self, u: Unpacker) -> "Serializable":
        return self.cls.unpack_fields(u)


class Interface(Wire):
    """A value of any registered type implementing `kind`, prefixed by its type id."""

    def __init__(self, kind: Kind):
        self.kind = kind

    def pack(self, p: Packer, value: "Serializable") -> None:
        if p.codec is None:
            raise CodecError("interface field packed without a codec")
        p.codec.pack_interface(p, value, self.kind)

    def unpack(self, u: Unpacker) -> "Serializable":
        if u.codec is None:
            raise CodecError("interface field unpacked without a codec")
        return u.codec.unpack_interface(u, self.kind)


U8 = _Int(8)
U16 = _Int(16)
U32 = _Int(32)
U64 = _Int(64)
BOOL = _Bool()
BYTES = _VarBytes()
STR = _Str()


def wire(layout: Wire, **kwargs) -> Any:
    """Declare a dataclass field with its wire layout."""
    metadata = dict(kwargs.pop("metadata", {}))
    metadata["wire"] = layout
    return field(metadata=metadata, **kwargs)


# ============================================================================
# SERIALIZABLE BASE
# ============================================================================

class Serializable:
    """
    Base for dataclasses laid out by the linear codec.

    Subclasses are dataclasses whose fields are all declared with wire();
    KINDS lists the interfaces the type may stand in for.
    """
    KINDS: ClassVar[FrozenSet[Kind]] = frozenset()

    def pack_fields(self, p: Packer) -> None:
        for f in fields(self):
            f.metadata["wire"].pack(p, getattr(self, f.name))

    @classmethod
    def unpack_fields(cls, u: Unpacker) -> "Serializable":
        values = {f.name: f.metadata["wire"].unpack(u) for f in fields(cls)}
        return cls(**values)


# ============================================================================
# CODEC
# ============================================================================

def skip(count: int) -> List[None]:
    """Placeholder registrations that reserve `count` type ids."""
    return [None] * count


def require_exhaustive(
    codec: "LinearCodec",
    kind: Kind,
    table: Dict[Type[Serializable], Any],
    site: str,
) -> None:
    """
    Fail at import time when a dispatch table misses a registered type.

    Called next to every per-variant lookup table so that registering a new
    transaction kind breaks loading until each lookup handles it.

    Raises:
        TypeError: Listing the registered types missing from `table`
    """
    missing = [cls.__name__ for cls in codec.types(kind) if cls not in table]
    if missing:
        raise TypeError(f"{site} has no entry for {codec.name} types: {', '.join(missing)}")


class LinearCodec:
    """
    Type-id registry for one chain.

    Example:
        codec = LinearCodec("P", [*skip(5), TransferInput, ...])
        raw = codec.marshal(tx, Kind.UNSIGNED_TX)
        tx = codec.unmarshal(raw, Kind.UNSIGNED_TX)
    """

    def __init__(self, name: str, registrations: Sequence[Optional[Type[Serializable]]]):
        self.name = name
        self._by_id: Dict[int, Type[Serializable]] = {}
        self._ids: Dict[Type[Serializable], int] = {}
        for type_id, cls in enumerate(registrations):
            if cls is None:
                continue
            if cls in self._ids:
                raise ValueError(f"{cls.__name__} registered twice in {name} codec")
            self._by_id[type_id] = cls
            self._ids[cls] = type_id

    def __repr__(self) -> str:
        return f"LinearCodec({self.name!r}, {len(self._ids)} types)"

    def type_id(self, cls: Type[Serializable]) -> int:
        try:
            return self._ids[cls]
        except KeyError:
            raise CodecError(f"{cls.__name__} is not registered in {self.name} codec") from None

    def types(self, kind: Optional[Kind] = None) -> List[Type[Serializable]]:
        """Registered types in id order, optionally only those implementing `kind`."""
        return [
            cls for _, cls in sorted(self._by_id.items())
            if kind is None or kind in cls.KINDS
        ]

    def pack_interface(self, p: Packer, value: Serializable, kind: Kind) -> None:
        cls = type(value)
        type_id = self.type_id(cls)
        if kind not in cls.KINDS:
            raise CodecError(f"{cls.__name__} does not implement {kind.value}")
        p.pack_u32(type_id)
        value.pack_fields(p)

    def unpack_interface(self, u: Unpacker, kind: Kind) -> Serializable:
        type_id = u.unpack_u32()
        cls = self._by_id.get(type_id)
        if cls is None:
            raise CodecError(f"unknown type id {type_id} in {self.name} codec")
        if kind not in cls.KINDS:
            raise CodecError(
                f"type id {type_id} ({cls.__name__}) does not implement {kind.value}"
            )
        return cls.unpack_fields(u)

    def _packer(self) -> Packer:
        p = Packer(self)
        p.pack_u16(CODEC_VERSION)
        return p

    def _unpacker(self, data: bytes) -> Unpacker:
        u = Unpacker(data, self)
        version = u.unpack_u16()
        if version != CODEC_VERSION:
            raise CodecError(f"unknown codec version {version}")
        return u

    def marshal(self, value: Serializable, kind: Kind) -> bytes:
        """Marshal `value` as an interface of `kind`."""
        p = self._packer()
        self.pack_interface(p, value, kind)
        return p.getvalue()

    def unmarshal(self, data: bytes, kind: Kind) -> Serializable:
        """Unmarshal an interface of `kind`; every byte must be consumed."""
        u = self._unpacker(data)
        value = self.unpack_interface(u, kind)
        u.expect_end()
        return value

    def marshal_struct(self, value: Serializable) -> bytes:
        p = self._packer()
        value.pack_fields(p)
        return p.getvalue()

    def unmarshal_struct(self, data: bytes, cls: Type[Serializable]) -> Serializable:
        u = self._unpacker(data)
        value = cls.unpack_fields(u)
        u.expect_end()
        return value
