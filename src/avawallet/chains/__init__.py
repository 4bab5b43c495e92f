"""
avawallet/chains/

Per-chain transaction registries and chain detection.
"""

from . import cchain, pchain, xchain
from .detect import (
    UNKNOWN_NETWORK_ID,
    ChainAlias,
    chain_codec,
    chain_network,
    detect_chain,
    extract_hrp,
    extract_network_id,
    tx_kind,
    tx_network_id,
)
from .tx import SignedTx

__all__ = [
    "cchain",
    "pchain",
    "xchain",
    "UNKNOWN_NETWORK_ID",
    "ChainAlias",
    "chain_codec",
    "chain_network",
    "detect_chain",
    "extract_hrp",
    "extract_network_id",
    "tx_kind",
    "tx_network_id",
    "SignedTx",
]
