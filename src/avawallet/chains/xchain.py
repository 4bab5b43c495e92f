"""
avawallet/chains/xchain.py

X-Chain (exchange chain) transaction types and codec.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Type

from ..codec import STR, U8, U32, CodecError, Interface, Kind, LinearCodec, Serializable, Slice, Struct, require_exhaustive, wire
from ..codec import nftfx, propertyfx, secp256k1fx
from ..codec.avax import ID, UTXOID, BaseTx as AvaxBaseTx, TransferableInput, TransferableOutput
from ..ids import EMPTY_ID

logger = logging.getLogger("avawallet.chains.xchain")

CHAIN_ALIAS = "X"

_BASE = Struct(AvaxBaseTx)


@dataclass(frozen=True)
class InitialState(Serializable):
    fx_index: int = wire(U32, default=0)
    outs: List[Serializable] = wire(Slice(Interface(Kind.STATE)), default_factory=list)


@dataclass(frozen=True)
class Operation(Serializable):
    asset_id: bytes = wire(ID, default=EMPTY_ID)
    utxo_ids: List[UTXOID] = wire(Slice(Struct(UTXOID)), default_factory=list)
    op: Serializable = wire(Interface(Kind.OPERATION), default=None)


@dataclass(frozen=True)
class BaseTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)


@dataclass(frozen=True)
class CreateAssetTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    name: str = wire(STR, default="")
    symbol: str = wire(STR, default="")
    denomination: int = wire(U8, default=0)
    states: List[InitialState] = wire(Slice(Struct(InitialState)), default_factory=list)


@dataclass(frozen=True)
class OperationTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    ops: List[Operation] = wire(Slice(Struct(Operation)), default_factory=list)


@dataclass(frozen=True)
class ImportTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    source_chain: bytes = wire(ID, default=EMPTY_ID)
    imported_ins: List[TransferableInput] = wire(
        Slice(Struct(TransferableInput)), default_factory=list
    )


@dataclass(frozen=True)
class ExportTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    destination_chain: bytes = wire(ID, default=EMPTY_ID)
    exported_outs: List[TransferableOutput] = wire(
        Slice(Struct(TransferableOutput)), default_factory=list
    )


# The X-Chain registers only the first five secp256k1fx types; ids 10-19
# go to the nft and property extensions.
CODEC = LinearCodec(CHAIN_ALIAS, [
    BaseTx,                             # 0
    CreateAssetTx,
    OperationTx,
    ImportTx,
    ExportTx,                           # 4
    *secp256k1fx.REGISTRATIONS[:5],     # 5-9
    *nftfx.REGISTRATIONS,               # 10-14
    *propertyfx.REGISTRATIONS,          # 15-19
])


def tx_from_bytes(data: bytes) -> Optional[Serializable]:
    """Unmarshal X-Chain unsigned transaction bytes, or None."""
    if not data:
        return None
    try:
        return CODEC.unmarshal(data, Kind.UNSIGNED_TX)
    except CodecError as e:
        logger.debug(f"Not an X-Chain tx: {e}")
        return None


def is_tx(data: bytes) -> bool:
    return tx_from_bytes(data) is not None


NETWORK_ID: Dict[Type[Serializable], Callable[[Serializable], int]] = {
    BaseTx: lambda tx: tx.base.network_id,
    CreateAssetTx: lambda tx: tx.base.network_id,
    OperationTx: lambda tx: tx.base.network_id,
    ImportTx: lambda tx: tx.base.network_id,
    ExportTx: lambda tx: tx.base.network_id,
}
require_exhaustive(CODEC, Kind.UNSIGNED_TX, NETWORK_ID, "xchain.NETWORK_ID")


def network_id(tx: Serializable) -> int:
    return NETWORK_ID[type(tx)](tx)
