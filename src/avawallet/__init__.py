"""
avawallet - Software-key wallet toolkit for P-Chain, X-Chain and C-Chain transactions

Provides:
- Linear codec with the three chain transaction registries
- Chain detection and network id extraction for opaque tx bytes
- Multisig coordination of subnet governance transactions
- Offline exchange of partially signed transactions (bytes, hex files, merge)
- In-memory secp256k1 keychain

Usage:
    from avawallet import Multisig, OwnershipCache, SoftKey, SoftKeychain

    keychain = SoftKeychain([SoftKey.from_hex(secret_hex)])
    ms = Multisig.from_file("tx.hex", OwnershipCache(resolver))

    result = await ms.sign(keychain, commit_if_ready=True, submitter=submitter)
    if not result.ready:
        ms.to_file("tx.hex")

Detection Usage:
    from avawallet import detect_chain, extract_network_id

    chain = detect_chain(unsigned_bytes)       # ChainAlias.P / X / C / UNDEFINED
    network_id = extract_network_id(unsigned_bytes)   # 0 when unknown
"""

from .chains import (
    UNKNOWN_NETWORK_ID,
    ChainAlias,
    SignedTx,
    chain_network,
    detect_chain,
    extract_hrp,
    extract_network_id,
    tx_kind,
)
from .codec import CodecError
from .config import RetryPolicy
from .keychain import SoftKey, SoftKeychain
from .multisig import (
    CorruptTransactionError,
    MalformedTransactionError,
    MergeConflictError,
    Multisig,
    MultisigError,
    MultisigPhase,
    NoAuthSignerError,
    NotReadyToCommitError,
    Ownership,
    OwnershipCache,
    OwnershipNotFoundError,
    OwnershipQueryError,
    SignResult,
    SubmissionError,
)
from .network import Network, NetworkKind, network_from_network_id

__version__ = "0.1.0"
__all__ = [
    # Chains
    "UNKNOWN_NETWORK_ID",
    "ChainAlias",
    "SignedTx",
    "chain_network",
    "detect_chain",
    "extract_hrp",
    "extract_network_id",
    "tx_kind",
    "CodecError",
    # Multisig
    "Multisig",
    "MultisigPhase",
    "SignResult",
    "Ownership",
    "OwnershipCache",
    "RetryPolicy",
    "MultisigError",
    "MalformedTransactionError",
    "CorruptTransactionError",
    "NoAuthSignerError",
    "NotReadyToCommitError",
    "MergeConflictError",
    "OwnershipNotFoundError",
    "OwnershipQueryError",
    "SubmissionError",
    # Keys
    "SoftKey",
    "SoftKeychain",
    # Networks
    "Network",
    "NetworkKind",
    "network_from_network_id",
]
