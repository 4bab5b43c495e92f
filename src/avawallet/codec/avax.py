"""
avawallet/codec/avax.py

Components embedded by P-Chain and X-Chain transactions: transferable
inputs and outputs, UTXO references and the common base transaction.
"""

from dataclasses import dataclass
from typing import List

from ..config import ID_LEN
from ..ids import EMPTY_ID
from .linear import BYTES, Fixed, Interface, Kind, Serializable, Slice, Struct, U32, wire

ID = Fixed(ID_LEN)


@dataclass(frozen=True)
class UTXOID(Serializable):
    tx_id: bytes = wire(ID, default=EMPTY_ID)
    output_index: int = wire(U32, default=0)


@dataclass(frozen=True)
class TransferableOutput(Serializable):
    asset_id: bytes = wire(ID, default=EMPTY_ID)
    out: Serializable = wire(Interface(Kind.OUTPUT), default=None)


@dataclass(frozen=True)
class TransferableInput(Serializable):
    utxo_id: UTXOID = wire(Struct(UTXOID), default_factory=UTXOID)
    asset_id: bytes = wire(ID, default=EMPTY_ID)
    input: Serializable = wire(Interface(Kind.INPUT), default=None)


@dataclass(frozen=True)
class BaseTx(Serializable):
    """Fields every P-Chain and X-Chain transaction starts with."""
    network_id: int = wire(U32, default=0)
    blockchain_id: bytes = wire(ID, default=EMPTY_ID)
    outs: List[TransferableOutput] = wire(Slice(Struct(TransferableOutput)), default_factory=list)
    ins: List[TransferableInput] = wire(Slice(Struct(TransferableInput)), default_factory=list)
    memo: bytes = wire(BYTES, default=b"")
