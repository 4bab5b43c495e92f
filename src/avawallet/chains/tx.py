"""
avawallet/chains/tx.py

Signed transaction container shared by all three chains.

Signed bytes are the unsigned transaction followed by its credentials:

    u16 codec version | u32 type id | unsigned fields |
    u32 credential count | (u32 type id | credential fields)*

The transaction id is sha256 of the signed bytes; every signature slot signs
sha256 of the unsigned bytes (version prefix included).
"""

import hashlib
from typing import List, Optional

from ..codec import CodecError, Kind, LinearCodec, Packer, Serializable, Unpacker
from ..config import CODEC_VERSION
from ..ids import id_to_string


class SignedTx:
    """
    An unsigned transaction plus its credentials.

    The unsigned part is immutable. Credentials are filled in place as
    signers add signatures, so the id changes until the last slot is filled.
    """

    def __init__(
        self,
        codec: LinearCodec,
        unsigned: Serializable,
        creds: Optional[List[Serializable]] = None,
    ):
        self.codec = codec
        self.unsigned = unsigned
        self.creds: List[Serializable] = list(creds or [])

    def __repr__(self) -> str:
        return (
            f"SignedTx({self.codec.name}, {type(self.unsigned).__name__}, "
            f"{len(self.creds)} creds)"
        )

    def unsigned_bytes(self) -> bytes:
        return self.codec.marshal(self.unsigned, Kind.UNSIGNED_TX)

    def signing_hash(self) -> bytes:
        """Message every signature slot of this transaction signs."""
        return hashlib.sha256(self.unsigned_bytes()).digest()

    def to_bytes(self) -> bytes:
        p = Packer(self.codec)
        p.pack_u16(CODEC_VERSION)
        self.codec.pack_interface(p, self.unsigned, Kind.UNSIGNED_TX)
        p.pack_len(len(self.creds))
        for cred in self.creds:
            self.codec.pack_interface(p, cred, Kind.CREDENTIAL)
        return p.getvalue()

    @classmethod
    def from_bytes(cls, codec: LinearCodec, data: bytes) -> "SignedTx":
        """
        Unmarshal signed transaction bytes under `codec`.

        Raises:
            CodecError: If the bytes are not a signed transaction of this chain
        """
        u = Unpacker(data, codec)
        version = u.unpack_u16()
        if version != CODEC_VERSION:
            raise CodecError(f"unknown codec version {version}")
        unsigned = codec.unpack_interface(u, Kind.UNSIGNED_TX)
        creds = [codec.unpack_interface(u, Kind.CREDENTIAL) for _ in range(u.unpack_len())]
        u.expect_end()
        return cls(codec, unsigned, creds)

    def id(self) -> bytes:
        return hashlib.sha256(self.to_bytes()).digest()

    def id_string(self) -> str:
        return id_to_string(self.id())
