"""
avawallet/multisig/errors.py

Exceptions raised by the multisig coordinator.

"Needs more signers" is not an error: it shows up as a non-empty missing
signer list and a SignResult with ready=False.
"""

from typing import Optional


class MultisigError(Exception):
    """Base class for multisig failures."""
    pass


class MalformedTransactionError(MultisigError):
    """The transaction is not a usable multisig in progress."""
    pass


class CorruptTransactionError(MalformedTransactionError):
    """
    The authorization data disagrees with the subnet's ownership.

    Usually the transaction was built against different control keys than
    the ones currently on chain.
    """
    pass


class NoAuthSignerError(MultisigError):
    """The keychain holds none of the signers still missing."""
    pass


class NotReadyToCommitError(MultisigError):
    """Commit was called before every authorization slot was signed."""
    pass


class MergeConflictError(MultisigError):
    """Two copies hold different signatures for the same slot."""
    pass


class OwnershipNotFoundError(MultisigError):
    """The subnet does not exist or has no owner."""
    pass


class OwnershipQueryError(MultisigError):
    """The ownership lookup itself failed."""
    pass


class SubmissionError(MultisigError):
    """
    Every submission attempt failed.

    Attributes:
        tx_id: cb58 id of the transaction, so callers can poll for late acceptance
        timed_out: True if the last attempt hit its deadline rather than being rejected
        cause: Exception raised by the last attempt, if any
    """

    def __init__(self, tx_id: str, timed_out: bool, cause: Optional[BaseException] = None):
        self.tx_id = tx_id
        self.timed_out = timed_out
        self.cause = cause
        if timed_out:
            reason = "timed out"
        elif cause is not None:
            reason = f"rejected: {cause}"
        else:
            reason = "rejected"
        super().__init__(f"submission of tx {tx_id} failed ({reason})")
