"""
avawallet/chains/cchain.py

C-Chain atomic transactions: the import/export pair that moves funds between
the EVM and the other chains. Unlike P and X transactions these carry the
network id directly instead of through an embedded base transaction.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Type

from ..codec import U32, U64, CodecError, Kind, LinearCodec, Serializable, Slice, Struct, require_exhaustive, skip, wire
from ..codec import secp256k1fx
from ..codec.avax import ID, TransferableInput, TransferableOutput
from ..codec.secp256k1fx import SHORT_ID
from ..ids import EMPTY_ID, EMPTY_SHORT_ID

logger = logging.getLogger("avawallet.chains.cchain")

CHAIN_ALIAS = "C"


@dataclass(frozen=True)
class EVMOutput(Serializable):
    address: bytes = wire(SHORT_ID, default=EMPTY_SHORT_ID)
    amount: int = wire(U64, default=0)
    asset_id: bytes = wire(ID, default=EMPTY_ID)


@dataclass(frozen=True)
class EVMInput(Serializable):
    address: bytes = wire(SHORT_ID, default=EMPTY_SHORT_ID)
    amount: int = wire(U64, default=0)
    asset_id: bytes = wire(ID, default=EMPTY_ID)
    nonce: int = wire(U64, default=0)


@dataclass(frozen=True)
class ImportTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    network_id: int = wire(U32, default=0)
    blockchain_id: bytes = wire(ID, default=EMPTY_ID)
    source_chain: bytes = wire(ID, default=EMPTY_ID)
    imported_inputs: List[TransferableInput] = wire(
        Slice(Struct(TransferableInput)), default_factory=list
    )
    outs: List[EVMOutput] = wire(Slice(Struct(EVMOutput)), default_factory=list)


@dataclass(frozen=True)
class ExportTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    network_id: int = wire(U32, default=0)
    blockchain_id: bytes = wire(ID, default=EMPTY_ID)
    destination_chain: bytes = wire(ID, default=EMPTY_ID)
    ins: List[EVMInput] = wire(Slice(Struct(EVMInput)), default_factory=list)
    exported_outputs: List[TransferableOutput] = wire(
        Slice(Struct(TransferableOutput)), default_factory=list
    )


CODEC = LinearCodec(CHAIN_ALIAS, [
    ImportTx,                           # 0
    ExportTx,                           # 1
    *skip(3),
    *secp256k1fx.REGISTRATIONS,         # 5-11
])


def tx_from_bytes(data: bytes) -> Optional[Serializable]:
    """Unmarshal C-Chain atomic transaction bytes, or None."""
    if not data:
        return None
    try:
        return CODEC.unmarshal(data, Kind.UNSIGNED_TX)
    except CodecError as e:
        logger.debug(f"Not a C-Chain tx: {e}")
        return None


def is_tx(data: bytes) -> bool:
    return tx_from_bytes(data) is not None


NETWORK_ID: Dict[Type[Serializable], Callable[[Serializable], int]] = {
    ImportTx: lambda tx: tx.network_id,
    ExportTx: lambda tx: tx.network_id,
}
require_exhaustive(CODEC, Kind.UNSIGNED_TX, NETWORK_ID, "cchain.NETWORK_ID")


def network_id(tx: Serializable) -> int:
    return NETWORK_ID[type(tx)](tx)
