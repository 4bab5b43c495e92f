"""
avawallet/multisig/coordinator.py

Multisig coordinator for subnet governance transactions.

A governance transaction (AddSubnetValidatorTx, CreateChainTx, ...) carries
a subnet auth input whose sig_indices pick, in order, which of the subnet's
control keys must sign. Its signed form has one credential per funding
input followed by one trailing credential with a slot per sig index.

Flow:
1. The builder funds and signs the transaction, leaving the trailing slots empty
2. Each control key holder loads the transaction and calls sign()
3. Copies travel between signers with to_bytes()/to_file() and merge()
4. Once every trailing slot is filled, commit() issues it with retries

Phases:
- UNSIGNED: no trailing slot filled
- PARTIALLY_SIGNED: some trailing slots filled
- READY_TO_COMMIT: every trailing slot filled (derived, never stored)
- COMMITTED: the network accepted the transaction
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

import trio

from ..chains import pchain
from ..chains.detect import ChainAlias, tx_kind, tx_network_id
from ..chains.tx import SignedTx
from ..codec.secp256k1fx import is_empty_signature
from ..config import RetryPolicy
from ..ids import id_to_string
from ..network import Network, network_from_network_id
from .errors import (
    CorruptTransactionError,
    MalformedTransactionError,
    NoAuthSignerError,
    NotReadyToCommitError,
    SubmissionError,
)
from .exchange import decode_signed_tx, merge_signed_txs, read_hex_file, write_hex_file
from .ownership import Ownership, OwnershipResolver, SigningCapability, SubmissionCapability

logger = logging.getLogger("avawallet.multisig.coordinator")


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class MultisigPhase(Enum):
    """Phases of a multisig transaction."""
    UNSIGNED = "unsigned"
    PARTIALLY_SIGNED = "partially_signed"
    READY_TO_COMMIT = "ready_to_commit"
    COMMITTED = "committed"


@dataclass
class SignResult:
    """Outcome of Multisig.sign()."""
    ready: bool
    committed: bool = False
    tx_id: str = ""               # Set once the transaction is fully signed

    def to_dict(self) -> dict:
        return asdict(self)


# ============================================================================
# COORDINATOR
# ============================================================================

class Multisig:
    """
    One in-progress governance transaction.

    Ownership is fetched from `owners` on first use and kept for the life of
    the instance. Pass an OwnershipCache as `owners` to share lookups across
    instances; build a new Multisig if ownership changes on chain.

    Not safe for concurrent use; run one instance per task.
    """

    def __init__(
        self,
        tx: SignedTx,
        owners: OwnershipResolver,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self._tx = tx
        self._owners = owners
        self._ownership: Optional[Ownership] = None
        self._committed_id: Optional[str] = None
        self.retry_policy = retry_policy or RetryPolicy()
        self.chain = ChainAlias(tx.codec.name)

    def __repr__(self) -> str:
        return f"Multisig({self.tx_kind}, {self.chain.value}-Chain)"

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def tx(self) -> SignedTx:
        return self._tx

    @property
    def tx_kind(self) -> str:
        return tx_kind(self._tx.unsigned)

    @property
    def subnet_id(self) -> Optional[bytes]:
        """Subnet the transaction governs, None if it names none."""
        if self.chain != ChainAlias.P:
            return None
        return pchain.subnet_id(self._tx.unsigned)

    @property
    def network_id(self) -> int:
        return tx_network_id(self.chain, self._tx.unsigned)

    @property
    def network(self) -> Network:
        return network_from_network_id(self.network_id)

    @property
    def blockchain_id(self) -> bytes:
        unsigned = self._tx.unsigned
        # C-Chain atomic txs carry the field directly
        return getattr(unsigned, "base", unsigned).blockchain_id

    @property
    def tx_id(self) -> str:
        """cb58 id of the current signed bytes; changes as slots are filled."""
        return self._tx.id_string()

    @property
    def phase(self) -> MultisigPhase:
        """
        Current phase.

        Raises:
            MalformedTransactionError: If the signature state is inconsistent
        """
        if self._committed_id is not None:
            return MultisigPhase.COMMITTED
        if self.is_ready_to_commit():
            return MultisigPhase.READY_TO_COMMIT
        if not self._needs_subnet_auth():
            if any(not is_empty_signature(sig) for cred in self._tx.creds for sig in cred.sigs):
                return MultisigPhase.PARTIALLY_SIGNED
            return MultisigPhase.UNSIGNED
        required, missing = self.get_remaining_auth_signers()
        if len(missing) < len(required):
            return MultisigPhase.PARTIALLY_SIGNED
        return MultisigPhase.UNSIGNED

    # ------------------------------------------------------------------
    # Signers
    # ------------------------------------------------------------------

    def _needs_subnet_auth(self) -> bool:
        # Subnet creation is authorized by its funding keys alone
        return not isinstance(self._tx.unsigned, pchain.CreateSubnetTx)

    def _subnet_auth(self):
        auth = pchain.subnet_auth(self._tx.unsigned) if self.chain == ChainAlias.P else None
        if auth is None:
            raise MalformedTransactionError(
                f"{self.tx_kind} on the {self.chain.value}-Chain is not a subnet governance tx"
            )
        return auth

    def get_subnet_owners(self) -> Ownership:
        """
        Ownership of the governed subnet, fetched once.

        Raises:
            MalformedTransactionError: If the transaction names no subnet
            OwnershipNotFoundError, OwnershipQueryError: From the resolver
        """
        if self._ownership is None:
            subnet_id = self.subnet_id
            if subnet_id is None:
                raise MalformedTransactionError(f"{self.tx_kind} does not name a subnet")
            self._ownership = self._owners.resolve(subnet_id)
            logger.debug(
                f"Subnet {id_to_string(subnet_id)} has {len(self._ownership.control_keys)} "
                f"control keys, threshold {self._ownership.threshold}"
            )
        return self._ownership

    def get_auth_signers(self) -> List[bytes]:
        """
        Addresses that must sign, in trailing credential slot order.

        Raises:
            CorruptTransactionError: If a sig index is out of range of the control keys
        """
        auth = self._subnet_auth()
        control_keys = self.get_subnet_owners().control_keys
        signers = []
        for index in auth.sig_indices:
            if index >= len(control_keys):
                raise CorruptTransactionError(
                    f"subnet auth index {index} out of range: subnet has "
                    f"{len(control_keys)} control keys"
                )
            signers.append(control_keys[index])
        return signers

    def get_remaining_auth_signers(self) -> Tuple[List[bytes], List[bytes]]:
        """
        Split the auth signers into required and still missing.

        Returns:
            (required, missing): every auth signer, and those whose slot is
            still empty, both in slot order

        Raises:
            MalformedTransactionError: If funding credentials are not fully signed
            CorruptTransactionError: If the trailing slot count does not match
        """
        creds = self._tx.creds
        if len(creds) < 2:
            raise MalformedTransactionError(
                f"expected funding and subnet auth credentials, found {len(creds)}"
            )
        for i, cred in enumerate(creds[:-1]):
            if any(is_empty_signature(sig) for sig in cred.sigs):
                raise MalformedTransactionError(f"funding credential {i} is not fully signed")

        required = self.get_auth_signers()
        slots = creds[-1].sigs
        if len(slots) != len(required):
            raise CorruptTransactionError(
                f"subnet auth credential has {len(slots)} slots, expected {len(required)}"
            )
        missing = [signer for signer, sig in zip(required, slots) if is_empty_signature(sig)]
        return required, missing

    def get_missing_fee_signatures(self) -> List[Tuple[int, int]]:
        """
        Funding signatures still empty, as (credential index, slot) pairs.

        Funding credentials are every credential except the trailing subnet
        auth one; subnet creation has no trailing credential, so all of its
        credentials are funding credentials.
        """
        creds = self._tx.creds
        funding = creds[:-1] if self._needs_subnet_auth() else creds
        return [
            (i, slot)
            for i, cred in enumerate(funding)
            for slot, sig in enumerate(cred.sigs)
            if is_empty_signature(sig)
        ]

    def is_ready_to_commit(self) -> bool:
        if not self._needs_subnet_auth():
            return bool(self._tx.creds) and not self.get_missing_fee_signatures()
        _, missing = self.get_remaining_auth_signers()
        return not missing

    # ------------------------------------------------------------------
    # Sign and commit
    # ------------------------------------------------------------------

    async def sign(
        self,
        keychain: SigningCapability,
        check_auth_first: bool = True,
        commit_if_ready: bool = False,
        wait_for_acceptance: bool = True,
        submitter: Optional[SubmissionCapability] = None,
    ) -> SignResult:
        """
        Fill every empty auth slot `keychain` can sign.

        Safe to call again, on this copy or another one; filled slots are
        never touched.

        Args:
            keychain: Signing capability of this identity
            check_auth_first: Fail before signing anything if the keychain
                holds none of the missing signers
            commit_if_ready: Commit when the last slot gets filled
            wait_for_acceptance: Passed to commit()
            submitter: Required with commit_if_ready

        Returns:
            SignResult with readiness, and the id once fully signed

        Raises:
            NoAuthSignerError: If check_auth_first and nothing can be signed
        """
        if self._committed_id is not None:
            return SignResult(ready=True, committed=True, tx_id=self._committed_id)
        if commit_if_ready and submitter is None:
            raise ValueError("commit_if_ready requires a submitter")

        if not self._needs_subnet_auth():
            # No auth slots to fill; only the funding signatures decide readiness
            if not self.is_ready_to_commit():
                logger.info(f"{self.tx_kind} still needs funding signatures")
                return SignResult(ready=False)
            return await self._finish_signing(commit_if_ready, wait_for_acceptance, submitter)

        required, missing = self.get_remaining_auth_signers()
        if check_auth_first and missing and not any(keychain.can_sign(a) for a in missing):
            raise NoAuthSignerError(
                f"keychain holds none of the {len(missing)} missing signer(s)"
            )

        for slot, signer in enumerate(required):
            if not is_empty_signature(self._tx.creds[-1].sigs[slot]):
                continue
            if keychain.can_sign(signer):
                keychain.sign_slot(self._tx, slot, signer)
                logger.info(f"Signed {self.tx_kind} auth slot {slot} with {signer.hex()}")

        _, missing = self.get_remaining_auth_signers()
        if missing:
            logger.info(f"{self.tx_kind} still needs {len(missing)} signature(s)")
            return SignResult(ready=False)
        return await self._finish_signing(commit_if_ready, wait_for_acceptance, submitter)

    async def _finish_signing(
        self,
        commit_if_ready: bool,
        wait_for_acceptance: bool,
        submitter: Optional[SubmissionCapability],
    ) -> SignResult:
        if commit_if_ready:
            tx_id = await self.commit(submitter, wait_for_acceptance)
            return SignResult(ready=True, committed=True, tx_id=tx_id)
        return SignResult(ready=True, tx_id=self.tx_id)

    async def commit(
        self,
        submitter: SubmissionCapability,
        wait_for_acceptance: bool = True,
    ) -> str:
        """
        Issue the fully signed transaction.

        Attempts run one after another, each under retry_policy.attempt_timeout,
        with retry_policy.backoff between them. Once committed, later calls
        return the same id without submitting again.

        Returns:
            cb58 transaction id

        Raises:
            NotReadyToCommitError: If any signature is missing (nothing is submitted)
            SubmissionError: If every attempt failed
        """
        if self._committed_id is not None:
            return self._committed_id
        if not self.is_ready_to_commit():
            raise NotReadyToCommitError(f"{self.tx_kind} is not fully signed")

        tx_bytes = self._tx.to_bytes()
        tx_id = self._tx.id_string()
        policy = self.retry_policy
        timed_out = False
        cause: Optional[BaseException] = None

        for attempt in range(1, policy.attempts + 1):
            if attempt > 1:
                await trio.sleep(policy.backoff)
            logger.info(f"Committing {self.tx_kind} {tx_id} (attempt {attempt}/{policy.attempts})")

            accepted = False
            timed_out = False
            cause = None
            with trio.move_on_after(policy.attempt_timeout) as cancel_scope:
                try:
                    accepted = await submitter.submit(
                        tx_bytes, policy.attempt_timeout, wait_for_acceptance
                    )
                except trio.TooSlowError as e:
                    timed_out = True
                    cause = e
                except Exception as e:
                    cause = e

            if cancel_scope.cancelled_caught:
                timed_out = True
            if accepted:
                self._committed_id = tx_id
                logger.info(f"Committed {self.tx_kind} {tx_id}")
                return tx_id
            if timed_out:
                logger.warning(f"Commit attempt {attempt} of {tx_id} timed out")
            else:
                logger.warning(f"Commit attempt {attempt} of {tx_id} rejected: {cause}")

        raise SubmissionError(tx_id, timed_out, cause)

    # ------------------------------------------------------------------
    # Offline exchange
    # ------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        """Signed transaction bytes, exactly as the chain codec writes them."""
        return self._tx.to_bytes()

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        owners: OwnershipResolver,
        chain: ChainAlias = ChainAlias.P,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> "Multisig":
        """
        Load a transaction written by to_bytes().

        Raises:
            MalformedTransactionError: If the bytes do not decode
        """
        return cls(decode_signed_tx(data, chain), owners, retry_policy)

    def to_file(self, path: Union[str, Path]) -> None:
        write_hex_file(path, self.to_bytes())

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        owners: OwnershipResolver,
        chain: ChainAlias = ChainAlias.P,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> "Multisig":
        return cls.from_bytes(read_hex_file(path), owners, chain, retry_policy)

    def merge(self, other: "Multisig") -> int:
        """
        Take every signature `other` has that this copy lacks.

        Returns:
            Number of slots filled

        Raises:
            MalformedTransactionError: If `other` is a different transaction
            MergeConflictError: If a slot holds different signatures
        """
        return merge_signed_txs(self._tx, other.tx)
