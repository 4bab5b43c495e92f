"""
avawallet/chains/detect.py

Classify opaque transaction bytes by chain.

A remote signer receiving raw bytes does not know which chain built them.
Every chain codec is tried on every blob; bytes that decode under more than
one codec (a codec collision) are left unclassified rather than guessed,
since a wrong guess would route the signing request to the wrong key
derivation path.

Nothing here raises: unclassifiable input is ChainAlias.UNDEFINED and an
unknown network id is 0.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Optional

from ..codec import CodecError, LinearCodec, Serializable
from ..network import Network, hrp_from_network_id, network_from_network_id
from . import cchain, pchain, xchain
from .tx import SignedTx

logger = logging.getLogger("avawallet.chains.detect")

UNKNOWN_NETWORK_ID = 0


class ChainAlias(Enum):
    """Chain a transaction belongs to."""
    P = "P"
    X = "X"
    C = "C"
    UNDEFINED = ""


_CHAINS = {
    ChainAlias.P: pchain,
    ChainAlias.X: xchain,
    ChainAlias.C: cchain,
}

_NETWORK_ID: Dict[ChainAlias, Callable[[Serializable], int]] = {
    ChainAlias.P: pchain.network_id,
    ChainAlias.X: xchain.network_id,
    ChainAlias.C: cchain.network_id,
}


def chain_codec(chain: ChainAlias) -> LinearCodec:
    """Codec of a concrete chain; KeyError for ChainAlias.UNDEFINED."""
    return _CHAINS[chain].CODEC


def _decode(alias: ChainAlias, data: bytes, signed: bool) -> Optional[Serializable]:
    module = _CHAINS[alias]
    if not signed:
        return module.tx_from_bytes(data)
    if not data:
        return None
    try:
        return SignedTx.from_bytes(module.CODEC, data).unsigned
    except CodecError as e:
        logger.debug(f"Not a signed {alias.value}-Chain tx: {e}")
        return None


def _classify(data: bytes, signed: bool):
    decoded = {}
    # Always try every codec; an early success could hide a collision
    for alias in _CHAINS:
        tx = _decode(alias, data, signed)
        if tx is not None:
            decoded[alias] = tx

    if len(decoded) == 1:
        return next(iter(decoded.items()))
    if len(decoded) > 1:
        names = ", ".join(alias.value for alias in decoded)
        logger.debug(f"Codec collision: {len(data)} bytes decode as {names}")
    return ChainAlias.UNDEFINED, None


def detect_chain(data: bytes, signed: bool = False) -> ChainAlias:
    """
    Detect which chain's transaction format `data` is.

    Args:
        data: Transaction bytes
        signed: True if `data` is a signed transaction (with credentials)

    Returns:
        The only chain whose codec decodes `data`, or ChainAlias.UNDEFINED
        when none or several do
    """
    alias, _ = _classify(data, signed)
    return alias


def extract_network_id(data: bytes, signed: bool = False) -> int:
    """
    Read the network id embedded in transaction bytes.

    Returns:
        The network id, or 0 when the bytes cannot be classified
    """
    alias, tx = _classify(data, signed)
    if tx is None:
        return UNKNOWN_NETWORK_ID
    return _NETWORK_ID[alias](tx)


def tx_network_id(chain: ChainAlias, tx: Serializable) -> int:
    """Network id of an already decoded transaction of `chain`."""
    return _NETWORK_ID[chain](tx)


def chain_network(data: bytes, signed: bool = False) -> Network:
    """Known network the transaction targets; UNDEFINED_NETWORK when unknown."""
    return network_from_network_id(extract_network_id(data, signed))


def extract_hrp(data: bytes, signed: bool = False) -> str:
    """
    Address prefix for the network the transaction targets.

    Known ids without a public endpoint (unit test, cascade, ...) still get
    their own prefix; unclassifiable bytes get the fallback prefix.
    """
    return hrp_from_network_id(extract_network_id(data, signed))


def tx_kind(tx: Serializable) -> str:
    """Name of a decoded transaction's variant, e.g. "CreateChainTx"."""
    return type(tx).__name__
