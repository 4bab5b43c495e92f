"""
avawallet/codec/secp256k1fx.py

secp256k1 feature extension types shared by all three chains.

Registered by every chain in this order (ids 5-11 on P and C, 5-9 on X):
TransferInput, MintOutput, TransferOutput, MintOperation, Credential,
Input, OutputOwners.
"""

from dataclasses import dataclass
from typing import List

from ..config import SHORT_ID_LEN, SIGNATURE_LEN
from .linear import Fixed, Kind, Serializable, Slice, Struct, U32, U64, wire

SHORT_ID = Fixed(SHORT_ID_LEN)
SIGNATURE = Fixed(SIGNATURE_LEN)

EMPTY_SIGNATURE = bytes(SIGNATURE_LEN)


def is_empty_signature(sig: bytes) -> bool:
    """An all-zero slot has not been signed yet."""
    return sig == EMPTY_SIGNATURE


@dataclass(frozen=True)
class OutputOwners(Serializable):
    """Addresses allowed to spend, with the number of signatures required."""
    KINDS = frozenset({Kind.OWNER})

    locktime: int = wire(U64, default=0)
    threshold: int = wire(U32, default=0)
    addrs: List[bytes] = wire(Slice(SHORT_ID), default_factory=list)


@dataclass(frozen=True)
class Input(Serializable):
    """Indices into an owner's address list naming who must sign."""
    KINDS = frozenset({Kind.AUTH})

    sig_indices: List[int] = wire(Slice(U32), default_factory=list)


@dataclass(frozen=True)
class TransferInput(Serializable):
    KINDS = frozenset({Kind.INPUT})

    amount: int = wire(U64, default=0)
    input: Input = wire(Struct(Input), default_factory=Input)


@dataclass(frozen=True)
class TransferOutput(Serializable):
    KINDS = frozenset({Kind.OUTPUT, Kind.STATE})

    amount: int = wire(U64, default=0)
    owners: OutputOwners = wire(Struct(OutputOwners), default_factory=OutputOwners)


@dataclass(frozen=True)
class MintOutput(Serializable):
    KINDS = frozenset({Kind.OUTPUT, Kind.STATE})

    owners: OutputOwners = wire(Struct(OutputOwners), default_factory=OutputOwners)


@dataclass(frozen=True)
class MintOperation(Serializable):
    KINDS = frozenset({Kind.OPERATION})

    mint_input: Input = wire(Struct(Input), default_factory=Input)
    mint_output: MintOutput = wire(Struct(MintOutput), default_factory=MintOutput)
    transfer_output: TransferOutput = wire(Struct(TransferOutput), default_factory=TransferOutput)


@dataclass
class Credential(Serializable):
    """
    Signature slots for one input, filled in place as signers sign.

    Slot i answers sig_indices[i] of the matching input.
    """
    KINDS = frozenset({Kind.CREDENTIAL})

    sigs: List[bytes] = wire(Slice(SIGNATURE), default_factory=list)

    @classmethod
    def empty(cls, num_slots: int) -> "Credential":
        return cls(sigs=[EMPTY_SIGNATURE] * num_slots)

    def is_filled(self) -> bool:
        return all(not is_empty_signature(sig) for sig in self.sigs)

    def empty_slots(self) -> List[int]:
        return [i for i, sig in enumerate(self.sigs) if is_empty_signature(sig)]


# Registration order shared by every chain
REGISTRATIONS = [
    TransferInput,
    MintOutput,
    TransferOutput,
    MintOperation,
    Credential,
    Input,
    OutputOwners,
]
