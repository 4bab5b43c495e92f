"""
Tests for avawallet/multisig/coordinator.py

Tests signer resolution, slot tracking, signing and committing of subnet
governance transactions.
"""

import pytest
import trio

from avawallet.chains import SignedTx, cchain, pchain
from avawallet.codec.avax import BaseTx
from avawallet.codec.secp256k1fx import EMPTY_SIGNATURE, Credential, Input
from avawallet.config import FUJI_ID, RetryPolicy
from avawallet.multisig import (
    CorruptTransactionError,
    MalformedTransactionError,
    Multisig,
    MultisigPhase,
    NoAuthSignerError,
    NotReadyToCommitError,
    Ownership,
    OwnershipCache,
    OwnershipNotFoundError,
    SubmissionError,
)
from avawallet.network import FUJI


# ============================================================================
# TEST DATA
# ============================================================================

SUBNET_ID = bytes([0x07]) * 32
KEY0 = bytes([0xA0]) * 20
KEY1 = bytes([0xA1]) * 20
KEY2 = bytes([0xA2]) * 20
FUNDING_SIG = bytes([0x0F]) * 65

NO_BACKOFF = RetryPolicy(backoff=0)


class FakeResolver:
    """OwnershipResolver returning a fixed ownership, counting lookups."""

    def __init__(self, ownership=None):
        self.ownership = ownership or Ownership(control_keys=(KEY0, KEY1, KEY2), threshold=2)
        self.calls = 0

    def resolve(self, subnet_id):
        self.calls += 1
        if subnet_id != SUBNET_ID:
            raise OwnershipNotFoundError(f"unknown subnet {subnet_id.hex()}")
        return self.ownership


class FakeKeychain:
    """SigningCapability writing a recognizable signature per address."""

    def __init__(self, *addresses):
        self.addresses = set(addresses)
        self.signed = []

    @staticmethod
    def signature_for(address):
        return b"\x01" + address + bytes(44)

    def can_sign(self, address):
        return address in self.addresses

    def sign_slot(self, tx, slot_index, address):
        self.signed.append((slot_index, address))
        tx.creds[-1].sigs[slot_index] = self.signature_for(address)


class FakeSubmitter:
    """SubmissionCapability following a script of outcomes per attempt."""

    def __init__(self, *outcomes):
        # True/False: return value; an exception instance: raised; "hang": never returns
        self.outcomes = list(outcomes)
        self.calls = []

    async def submit(self, tx_bytes, timeout, wait_for_acceptance):
        self.calls.append((tx_bytes, timeout, wait_for_acceptance))
        outcome = self.outcomes.pop(0) if self.outcomes else True
        if outcome == "hang":
            await trio.sleep_forever()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def create_governance_tx(sig_indices=(0, 2), auth_slots=None) -> SignedTx:
    """AddSubnetValidatorTx with one signed funding credential and empty auth slots."""
    tx = pchain.AddSubnetValidatorTx(
        base=BaseTx(network_id=FUJI_ID),
        subnet_validator=pchain.SubnetValidator(subnet=SUBNET_ID),
        subnet_auth=Input(sig_indices=list(sig_indices)),
    )
    slots = len(sig_indices) if auth_slots is None else auth_slots
    return SignedTx(pchain.CODEC, tx, [
        Credential(sigs=[FUNDING_SIG]),
        Credential.empty(slots),
    ])


def create_multisig(resolver=None, policy=NO_BACKOFF, **kwargs) -> Multisig:
    return Multisig(create_governance_tx(**kwargs), resolver if resolver is not None else FakeResolver(), policy)


# ============================================================================
# SIGNER RESOLUTION TESTS
# ============================================================================

class TestAuthSigners:
    """Tests for get_auth_signers() and get_remaining_auth_signers()."""

    def test_signers_follow_sig_indices(self):
        """Test mapping auth indices to control keys in order."""
        ms = create_multisig()
        assert ms.get_auth_signers() == [KEY0, KEY2]

    def test_index_order_is_kept(self):
        """Test that reversed indices give reversed signers."""
        ms = create_multisig(sig_indices=(2, 0))
        assert ms.get_auth_signers() == [KEY2, KEY0]

    def test_out_of_range_index(self):
        """Test that an index past the control keys is corrupt, not clamped."""
        ms = create_multisig(sig_indices=(0, 3))
        with pytest.raises(CorruptTransactionError):
            ms.get_auth_signers()

    def test_corrupt_is_malformed(self):
        """Test the error hierarchy."""
        assert issubclass(CorruptTransactionError, MalformedTransactionError)

    def test_ownership_fetched_once(self):
        """Test that ownership is resolved lazily and kept."""
        resolver = FakeResolver()
        ms = create_multisig(resolver)
        assert resolver.calls == 0
        ms.get_auth_signers()
        ms.get_remaining_auth_signers()
        assert resolver.calls == 1
        assert ms.get_subnet_owners().threshold == 2

    def test_unknown_subnet(self):
        """Test that resolver errors propagate."""
        resolver = FakeResolver()
        tx = create_governance_tx()
        tx.unsigned = pchain.AddSubnetValidatorTx(
            subnet_validator=pchain.SubnetValidator(subnet=bytes(32)),
            subnet_auth=Input(sig_indices=[0]),
        )
        with pytest.raises(OwnershipNotFoundError):
            Multisig(tx, resolver).get_auth_signers()

    def test_remaining_starts_full(self):
        """Test that every signer is missing before anyone signs."""
        ms = create_multisig()
        assert ms.get_remaining_auth_signers() == ([KEY0, KEY2], [KEY0, KEY2])

    def test_unfilled_funding_credential(self):
        """Test that an unsigned funding input is malformed, not in progress."""
        ms = create_multisig()
        ms.tx.creds[0].sigs[0] = EMPTY_SIGNATURE
        with pytest.raises(MalformedTransactionError) as exc_info:
            ms.get_remaining_auth_signers()
        assert not isinstance(exc_info.value, CorruptTransactionError)

    def test_slot_count_mismatch(self):
        """Test that a trailing credential of the wrong size is corrupt."""
        ms = create_multisig(auth_slots=3)
        with pytest.raises(CorruptTransactionError):
            ms.get_remaining_auth_signers()

    def test_missing_auth_credential(self):
        """Test that a tx with a single credential is malformed."""
        ms = create_multisig()
        ms.tx.creds.pop()
        with pytest.raises(MalformedTransactionError):
            ms.get_remaining_auth_signers()

    def test_not_governance_tx(self):
        """Test that a tx without subnet auth is rejected."""
        tx = SignedTx(cchain.CODEC, cchain.ImportTx(network_id=FUJI_ID), [
            Credential(sigs=[FUNDING_SIG]),
            Credential.empty(1),
        ])
        with pytest.raises(MalformedTransactionError):
            Multisig(tx, FakeResolver()).get_auth_signers()


# ============================================================================
# ACCESSOR TESTS
# ============================================================================

class TestAccessors:
    """Tests for Multisig accessors and phases."""

    def test_tx_fields(self):
        """Test reading kind, subnet and network."""
        ms = create_multisig()
        assert ms.tx_kind == "AddSubnetValidatorTx"
        assert ms.subnet_id == SUBNET_ID
        assert ms.network_id == FUJI_ID
        assert ms.network == FUJI
        assert ms.blockchain_id == bytes(32)

    def test_phases(self):
        """Test the phase as slots fill."""
        ms = create_multisig()
        assert ms.phase == MultisigPhase.UNSIGNED
        ms.tx.creds[-1].sigs[1] = FakeKeychain.signature_for(KEY2)
        assert ms.phase == MultisigPhase.PARTIALLY_SIGNED
        ms.tx.creds[-1].sigs[0] = FakeKeychain.signature_for(KEY0)
        assert ms.phase == MultisigPhase.READY_TO_COMMIT

    def test_create_subnet_is_ready(self):
        """Test that subnet creation needs no subnet auth."""
        tx = SignedTx(pchain.CODEC, pchain.CreateSubnetTx(), [Credential(sigs=[FUNDING_SIG])])
        ms = Multisig(tx, FakeResolver())
        assert ms.is_ready_to_commit()
        assert ms.subnet_id is None
        assert ms.phase == MultisigPhase.READY_TO_COMMIT

    def test_create_subnet_unsigned_funding(self):
        """Test that subnet creation with an empty funding slot is not ready."""
        tx = SignedTx(pchain.CODEC, pchain.CreateSubnetTx(), [Credential.empty(1)])
        ms = Multisig(tx, FakeResolver())
        assert not ms.is_ready_to_commit()
        assert ms.phase == MultisigPhase.UNSIGNED
        assert ms.get_missing_fee_signatures() == [(0, 0)]

    def test_missing_fee_signatures(self):
        """Test listing empty funding slots, leaving out the auth credential."""
        tx = create_governance_tx()
        tx.creds.insert(0, Credential(sigs=[FUNDING_SIG, EMPTY_SIGNATURE]))
        ms = Multisig(tx, FakeResolver())
        assert ms.get_missing_fee_signatures() == [(0, 1)]
        assert create_multisig().get_missing_fee_signatures() == []


# ============================================================================
# SIGN TESTS
# ============================================================================

class TestSign:
    """Tests for Multisig.sign()."""

    @pytest.mark.trio
    async def test_three_keys_threshold_two(self):
        """Test the two-of-three flow over indices [0, 2]."""
        ms = create_multisig()
        assert ms.get_auth_signers() == [KEY0, KEY2]

        result = await ms.sign(FakeKeychain(KEY2))
        assert not result.ready
        assert ms.get_remaining_auth_signers() == ([KEY0, KEY2], [KEY0])

        result = await ms.sign(FakeKeychain(KEY0))
        assert result.ready
        assert not result.committed
        assert result.tx_id == ms.tx_id
        assert ms.get_remaining_auth_signers() == ([KEY0, KEY2], [])
        assert ms.is_ready_to_commit()

    @pytest.mark.trio
    async def test_no_auth_signer(self):
        """Test failing before any signing when the keychain has nothing to add."""
        ms = create_multisig()
        keychain = FakeKeychain(KEY1)
        before = ms.to_bytes()
        with pytest.raises(NoAuthSignerError):
            await ms.sign(keychain)
        assert keychain.signed == []
        assert ms.to_bytes() == before

    @pytest.mark.trio
    async def test_no_auth_signer_unchecked(self):
        """Test that skipping the check just reports not ready."""
        ms = create_multisig()
        result = await ms.sign(FakeKeychain(KEY1), check_auth_first=False)
        assert not result.ready

    @pytest.mark.trio
    async def test_filled_slots_untouched(self):
        """Test that signing again never overwrites a slot."""
        ms = create_multisig()
        keychain = FakeKeychain(KEY0, KEY2)
        await ms.sign(keychain)
        assert keychain.signed == [(0, KEY0), (1, KEY2)]
        result = await ms.sign(keychain)
        assert result.ready
        assert len(keychain.signed) == 2

    @pytest.mark.trio
    async def test_sign_and_commit(self):
        """Test committing once the last slot is filled."""
        ms = create_multisig()
        submitter = FakeSubmitter(True)
        result = await ms.sign(
            FakeKeychain(KEY0, KEY2), commit_if_ready=True, submitter=submitter,
            wait_for_acceptance=False,
        )
        assert result.ready and result.committed
        assert result.tx_id == ms.tx_id
        assert submitter.calls[0][2] is False
        assert ms.phase == MultisigPhase.COMMITTED

    @pytest.mark.trio
    async def test_sign_commit_needs_submitter(self):
        """Test that commit_if_ready without a submitter is a usage error."""
        ms = create_multisig()
        with pytest.raises(ValueError):
            await ms.sign(FakeKeychain(KEY0), commit_if_ready=True)


# ============================================================================
# COMMIT TESTS
# ============================================================================

class TestCommit:
    """Tests for Multisig.commit()."""

    async def create_ready(self, policy=NO_BACKOFF) -> Multisig:
        ms = create_multisig(policy=policy)
        await ms.sign(FakeKeychain(KEY0, KEY2))
        return ms

    @pytest.mark.trio
    async def test_not_ready(self):
        """Test that an unsigned slot stops commit with no submission."""
        ms = create_multisig()
        await ms.sign(FakeKeychain(KEY2))
        submitter = FakeSubmitter()
        with pytest.raises(NotReadyToCommitError):
            await ms.commit(submitter)
        assert submitter.calls == []

    @pytest.mark.trio
    async def test_create_subnet_unsigned_funding(self):
        """Test that subnet creation with an empty funding slot is never submitted."""
        tx = SignedTx(pchain.CODEC, pchain.CreateSubnetTx(), [Credential.empty(1)])
        ms = Multisig(tx, FakeResolver(), NO_BACKOFF)
        submitter = FakeSubmitter()
        with pytest.raises(NotReadyToCommitError):
            await ms.commit(submitter)
        result = await ms.sign(FakeKeychain(KEY0), commit_if_ready=True, submitter=submitter)
        assert not result.ready
        assert submitter.calls == []

    @pytest.mark.trio
    async def test_create_subnet_sign_and_commit(self):
        """Test that a funded subnet creation commits through sign()."""
        tx = SignedTx(pchain.CODEC, pchain.CreateSubnetTx(), [Credential(sigs=[FUNDING_SIG])])
        ms = Multisig(tx, FakeResolver(), NO_BACKOFF)
        submitter = FakeSubmitter(True)
        result = await ms.sign(FakeKeychain(), commit_if_ready=True, submitter=submitter)
        assert result.ready and result.committed
        assert submitter.calls[0][0] == ms.to_bytes()

    @pytest.mark.trio
    async def test_success(self):
        """Test a first-attempt commit."""
        ms = await self.create_ready()
        expected_id = ms.tx_id
        submitter = FakeSubmitter(True)
        assert await ms.commit(submitter) == expected_id
        tx_bytes, timeout, wait = submitter.calls[0]
        assert tx_bytes == ms.to_bytes()
        assert timeout == NO_BACKOFF.attempt_timeout
        assert wait is True

    @pytest.mark.trio
    async def test_third_attempt_after_timeouts(self, autojump_clock):
        """Test two timed-out attempts, then acceptance, with two backoffs."""
        ms = await self.create_ready(policy=RetryPolicy())
        submitter = FakeSubmitter(trio.TooSlowError(), trio.TooSlowError(), True)
        start = trio.current_time()
        tx_id = await ms.commit(submitter)
        assert tx_id == ms.tx_id
        assert len(submitter.calls) == 3
        assert trio.current_time() - start == pytest.approx(4.0)

    @pytest.mark.trio
    async def test_attempt_deadline(self, autojump_clock):
        """Test that a hanging submission is cut off and annotated as a timeout."""
        policy = RetryPolicy(attempts=2, backoff=0, attempt_timeout=5)
        ms = await self.create_ready(policy=policy)
        submitter = FakeSubmitter("hang", "hang")
        start = trio.current_time()
        with pytest.raises(SubmissionError) as exc_info:
            await ms.commit(submitter)
        assert exc_info.value.timed_out
        assert exc_info.value.tx_id == ms.tx_id
        assert trio.current_time() - start == pytest.approx(10.0)

    @pytest.mark.trio
    async def test_rejections_exhaust_attempts(self):
        """Test that rejections are retried, then surfaced with the tx id."""
        ms = await self.create_ready()
        error = RuntimeError("tx already known")
        submitter = FakeSubmitter(False, False, error)
        with pytest.raises(SubmissionError) as exc_info:
            await ms.commit(submitter)
        assert len(submitter.calls) == 3
        assert not exc_info.value.timed_out
        assert exc_info.value.cause is error
        assert exc_info.value.tx_id == ms.tx_id
        assert ms.phase == MultisigPhase.READY_TO_COMMIT

    @pytest.mark.trio
    async def test_repeat_commit(self):
        """Test that a committed tx is not submitted again."""
        ms = await self.create_ready()
        submitter = FakeSubmitter(True)
        first = await ms.commit(submitter)
        assert await ms.commit(submitter) == first
        assert len(submitter.calls) == 1
        result = await ms.sign(FakeKeychain(KEY0))
        assert result.committed and result.tx_id == first


# ============================================================================
# OWNERSHIP CACHE TESTS
# ============================================================================

class TestOwnershipCache:
    """Tests for OwnershipCache."""

    def test_shared_lookup(self):
        """Test that two coordinators share one resolver call."""
        resolver = FakeResolver()
        cache = OwnershipCache(resolver)
        create_multisig(cache).get_auth_signers()
        create_multisig(cache).get_auth_signers()
        assert resolver.calls == 1
        assert SUBNET_ID in cache

    def test_invalidate(self):
        """Test that invalidation forces a new lookup."""
        resolver = FakeResolver()
        cache = OwnershipCache(resolver)
        cache.resolve(SUBNET_ID)
        cache.invalidate(SUBNET_ID)
        assert len(cache) == 0
        cache.resolve(SUBNET_ID)
        cache.invalidate()
        assert resolver.calls == 2
        assert SUBNET_ID not in cache

    def test_snapshot_survives_invalidation(self):
        """Test that a coordinator keeps the ownership it first saw."""
        resolver = FakeResolver()
        cache = OwnershipCache(resolver)
        ms = create_multisig(cache)
        ms.get_auth_signers()
        resolver.ownership = Ownership(control_keys=(KEY2, KEY1, KEY0), threshold=2)
        cache.invalidate()
        assert ms.get_auth_signers() == [KEY0, KEY2]

    def test_failures_not_cached(self):
        """Test that a failed lookup is retried next time."""
        resolver = FakeResolver()
        cache = OwnershipCache(resolver)
        with pytest.raises(OwnershipNotFoundError):
            cache.resolve(bytes(32))
        assert len(cache) == 0

    def test_ownership_dict(self):
        """Test Ownership serialization."""
        ownership = Ownership(control_keys=[KEY0, KEY1], threshold=1)
        assert ownership.control_keys == (KEY0, KEY1)
        assert Ownership.from_dict(ownership.to_dict()) == ownership

    def test_bad_control_key(self):
        """Test rejecting control keys that are not 20 bytes."""
        with pytest.raises(ValueError):
            Ownership(control_keys=(b"\x01",), threshold=1)
