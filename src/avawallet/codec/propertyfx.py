"""
avawallet/codec/propertyfx.py

Property feature extension types (X-Chain ids 15-19).
"""

from dataclasses import dataclass
from typing import List

from .linear import Kind, Serializable, Slice, Struct, wire
from .secp256k1fx import SIGNATURE, Input, OutputOwners


@dataclass(frozen=True)
class PropertyMintOutput(Serializable):
    KINDS = frozenset({Kind.OUTPUT, Kind.STATE})

    owners: OutputOwners = wire(Struct(OutputOwners), default_factory=OutputOwners)


@dataclass(frozen=True)
class PropertyOwnedOutput(Serializable):
    KINDS = frozenset({Kind.OUTPUT, Kind.STATE})

    owners: OutputOwners = wire(Struct(OutputOwners), default_factory=OutputOwners)


@dataclass(frozen=True)
class PropertyMintOperation(Serializable):
    KINDS = frozenset({Kind.OPERATION})

    mint_input: Input = wire(Struct(Input), default_factory=Input)
    mint_output: PropertyMintOutput = wire(
        Struct(PropertyMintOutput), default_factory=PropertyMintOutput
    )
    owned_output: PropertyOwnedOutput = wire(
        Struct(PropertyOwnedOutput), default_factory=PropertyOwnedOutput
    )


@dataclass(frozen=True)
class PropertyBurnOperation(Serializable):
    KINDS = frozenset({Kind.OPERATION})

    input: Input = wire(Struct(Input), default_factory=Input)


@dataclass
class PropertyCredential(Serializable):
    KINDS = frozenset({Kind.CREDENTIAL})

    sigs: List[bytes] = wire(Slice(SIGNATURE), default_factory=list)


REGISTRATIONS = [
    PropertyMintOutput,
    PropertyOwnedOutput,
    PropertyMintOperation,
    PropertyBurnOperation,
    PropertyCredential,
]
