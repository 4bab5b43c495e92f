"""
avawallet/multisig/

Multi-party signing of subnet governance transactions.

Usage:
    from avawallet.multisig import Multisig, OwnershipCache

    ms = Multisig.from_file("tx.hex", OwnershipCache(resolver))
    result = await ms.sign(keychain)
    if not result.ready:
        ms.to_file("tx.hex")      # pass on to the next signer
    else:
        tx_id = await ms.commit(submitter)
"""

from .coordinator import Multisig, MultisigPhase, SignResult
from .errors import (
    CorruptTransactionError,
    MalformedTransactionError,
    MergeConflictError,
    MultisigError,
    NoAuthSignerError,
    NotReadyToCommitError,
    OwnershipNotFoundError,
    OwnershipQueryError,
    SubmissionError,
)
from .exchange import decode_signed_tx, merge_signed_txs, read_hex_file, write_hex_file
from .ownership import (
    Ownership,
    OwnershipCache,
    OwnershipResolver,
    SigningCapability,
    SubmissionCapability,
)

__all__ = [
    "Multisig",
    "MultisigPhase",
    "SignResult",
    "CorruptTransactionError",
    "MalformedTransactionError",
    "MergeConflictError",
    "MultisigError",
    "NoAuthSignerError",
    "NotReadyToCommitError",
    "OwnershipNotFoundError",
    "OwnershipQueryError",
    "SubmissionError",
    "decode_signed_tx",
    "merge_signed_txs",
    "read_hex_file",
    "write_hex_file",
    "Ownership",
    "OwnershipCache",
    "OwnershipResolver",
    "SigningCapability",
    "SubmissionCapability",
]
