"""
avawallet/codec/nftfx.py

NFT feature extension types (X-Chain ids 10-14).
"""

from dataclasses import dataclass
from typing import List

from .linear import BYTES, Kind, Serializable, Slice, Struct, U32, wire
from .secp256k1fx import SIGNATURE, Input, OutputOwners


@dataclass(frozen=True)
class NFTMintOutput(Serializable):
    KINDS = frozenset({Kind.OUTPUT, Kind.STATE})

    group_id: int = wire(U32, default=0)
    owners: OutputOwners = wire(Struct(OutputOwners), default_factory=OutputOwners)


@dataclass(frozen=True)
class NFTTransferOutput(Serializable):
    KINDS = frozenset({Kind.OUTPUT, Kind.STATE})

    group_id: int = wire(U32, default=0)
    payload: bytes = wire(BYTES, default=b"")
    owners: OutputOwners = wire(Struct(OutputOwners), default_factory=OutputOwners)


@dataclass(frozen=True)
class NFTMintOperation(Serializable):
    KINDS = frozenset({Kind.OPERATION})

    mint_input: Input = wire(Struct(Input), default_factory=Input)
    group_id: int = wire(U32, default=0)
    payload: bytes = wire(BYTES, default=b"")
    outputs: List[OutputOwners] = wire(Slice(Struct(OutputOwners)), default_factory=list)


@dataclass(frozen=True)
class NFTTransferOperation(Serializable):
    KINDS = frozenset({Kind.OPERATION})

    input: Input = wire(Struct(Input), default_factory=Input)
    output: NFTTransferOutput = wire(Struct(NFTTransferOutput), default_factory=NFTTransferOutput)


@dataclass
class NFTCredential(Serializable):
    KINDS = frozenset({Kind.CREDENTIAL})

    sigs: List[bytes] = wire(Slice(SIGNATURE), default_factory=list)


REGISTRATIONS = [
    NFTMintOutput,
    NFTTransferOutput,
    NFTMintOperation,
    NFTTransferOperation,
    NFTCredential,
]
