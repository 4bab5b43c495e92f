"""
Tests for avawallet/multisig/exchange.py

Tests passing partially signed transactions between signers as bytes and
hex files, and merging copies advanced independently.
"""

import os
import stat

import pytest

from avawallet.chains import ChainAlias, SignedTx, pchain, xchain
from avawallet.codec.avax import BaseTx
from avawallet.codec.secp256k1fx import EMPTY_SIGNATURE, Credential, Input
from avawallet.config import FUJI_ID
from avawallet.multisig import (
    MalformedTransactionError,
    MergeConflictError,
    Multisig,
    Ownership,
    decode_signed_tx,
    merge_signed_txs,
)


# ============================================================================
# TEST DATA
# ============================================================================

SUBNET_ID = bytes([0x07]) * 32
KEYS = [bytes([0xB0 + i]) * 20 for i in range(3)]
FUNDING_SIG = bytes([0x0F]) * 65


class StaticResolver:
    def resolve(self, subnet_id):
        return Ownership(control_keys=tuple(KEYS), threshold=2)


def signature(n: int) -> bytes:
    return bytes([n]) * 65


def create_multisig(chain_name: str = "dex", sig_indices=(0, 1, 2)) -> Multisig:
    """CreateChainTx awaiting three subnet auth signatures."""
    tx = pchain.CreateChainTx(
        base=BaseTx(network_id=FUJI_ID),
        subnet_id=SUBNET_ID,
        chain_name=chain_name,
        vm_id=bytes([0x33]) * 32,
        genesis_data=b"{}",
        subnet_auth=Input(sig_indices=list(sig_indices)),
    )
    signed = SignedTx(pchain.CODEC, tx, [
        Credential(sigs=[FUNDING_SIG]),
        Credential.empty(len(sig_indices)),
    ])
    return Multisig(signed, StaticResolver())


def copy_of(ms: Multisig) -> Multisig:
    return Multisig.from_bytes(ms.to_bytes(), StaticResolver())


# ============================================================================
# BYTES AND FILE TESTS
# ============================================================================

class TestExchange:
    """Tests for to_bytes/from_bytes and to_file/from_file."""

    def test_bytes_are_chain_bytes(self):
        """Test that no wrapping is added around the signed tx."""
        ms = create_multisig()
        assert ms.to_bytes() == ms.tx.to_bytes()

    def test_partial_round_trip(self):
        """Test that slot positions survive, empty and filled alike."""
        ms = create_multisig()
        ms.tx.creds[-1].sigs[1] = signature(9)
        restored = copy_of(ms)
        assert restored.tx.creds[-1].sigs == [EMPTY_SIGNATURE, signature(9), EMPTY_SIGNATURE]
        assert restored.get_remaining_auth_signers() == ms.get_remaining_auth_signers()
        assert restored.tx_id == ms.tx_id

    def test_full_round_trip(self):
        """Test that a fully signed tx stays ready to commit."""
        ms = create_multisig()
        ms.tx.creds[-1].sigs[:] = [signature(1), signature(2), signature(3)]
        restored = copy_of(ms)
        assert restored.is_ready_to_commit()
        assert restored.to_bytes() == ms.to_bytes()

    def test_file_round_trip(self, tmp_path):
        """Test the hex file form."""
        ms = create_multisig()
        ms.tx.creds[-1].sigs[2] = signature(7)
        path = tmp_path / "tx.hex"
        ms.to_file(path)
        assert path.read_text() == ms.to_bytes().hex()
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        restored = Multisig.from_file(path, StaticResolver())
        assert restored.get_remaining_auth_signers() == ms.get_remaining_auth_signers()

    def test_file_created_owner_only(self, tmp_path, monkeypatch):
        """Test that the file is created owner-only, not chmodded afterwards."""
        modes = []
        real_open = os.open

        def recording_open(path, flags, mode=0o777, *args, **kwargs):
            modes.append(mode)
            return real_open(path, flags, mode, *args, **kwargs)

        monkeypatch.setattr(os, "open", recording_open)
        create_multisig().to_file(tmp_path / "tx.hex")
        assert modes == [0o600]

    def test_file_overwrite_tightens_mode(self, tmp_path):
        """Test that rewriting a world-readable file leaves it owner-only."""
        path = tmp_path / "tx.hex"
        path.write_text("old")
        os.chmod(path, 0o644)
        ms = create_multisig()
        ms.to_file(path)
        assert path.read_text() == ms.to_bytes().hex()
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_file_whitespace(self, tmp_path):
        """Test that a pasted file with surrounding whitespace still loads."""
        ms = create_multisig()
        path = tmp_path / "pasted.txt"
        path.write_text("\n  " + ms.to_bytes().hex() + "  \n\n")
        assert Multisig.from_file(path, StaticResolver()).to_bytes() == ms.to_bytes()

    def test_file_not_hex(self, tmp_path):
        """Test a file that is not hex."""
        path = tmp_path / "bad.txt"
        path.write_text("not a transaction")
        with pytest.raises(MalformedTransactionError):
            Multisig.from_file(path, StaticResolver())

    def test_truncated_bytes(self):
        """Test that undecodable bytes are malformed."""
        with pytest.raises(MalformedTransactionError):
            Multisig.from_bytes(create_multisig().to_bytes()[:-3], StaticResolver())

    def test_other_chain(self):
        """Test loading an X-Chain tx explicitly."""
        tx = SignedTx(xchain.CODEC, xchain.BaseTx(base=BaseTx(network_id=FUJI_ID)), [])
        decoded = decode_signed_tx(tx.to_bytes(), ChainAlias.X)
        assert decoded.unsigned == tx.unsigned
        with pytest.raises(MalformedTransactionError):
            decode_signed_tx(tx.to_bytes())


# ============================================================================
# MERGE TESTS
# ============================================================================

class TestMerge:
    """Tests for merging independently signed copies."""

    def test_disjoint_slots(self):
        """Test two signers filling different slots from one snapshot."""
        base = create_multisig()
        alice, bob = copy_of(base), copy_of(base)
        alice.tx.creds[-1].sigs[0] = signature(1)
        bob.tx.creds[-1].sigs[2] = signature(3)

        assert alice.merge(bob) == 1
        assert alice.tx.creds[-1].sigs == [signature(1), EMPTY_SIGNATURE, signature(3)]
        assert alice.get_remaining_auth_signers()[1] == [KEYS[1]]

    def test_merge_is_order_independent(self):
        """Test that merging either way gives the same bytes."""
        base = create_multisig()
        a1, b1 = copy_of(base), copy_of(base)
        a1.tx.creds[-1].sigs[0] = signature(1)
        b1.tx.creds[-1].sigs[1] = signature(2)
        a2, b2 = copy_of(a1), copy_of(b1)
        a1.merge(b1)
        b2.merge(a2)
        assert a1.to_bytes() == b2.to_bytes()

    def test_same_signature_twice(self):
        """Test that an identical signature in both copies is kept."""
        base = create_multisig()
        base.tx.creds[-1].sigs[1] = signature(2)
        other = copy_of(base)
        assert base.merge(other) == 0

    def test_conflict(self):
        """Test two different signatures for one slot."""
        base = create_multisig()
        alice, bob = copy_of(base), copy_of(base)
        alice.tx.creds[-1].sigs[0] = signature(1)
        alice.tx.creds[-1].sigs[1] = EMPTY_SIGNATURE
        bob.tx.creds[-1].sigs[0] = signature(9)
        bob.tx.creds[-1].sigs[1] = signature(2)
        before = alice.to_bytes()
        with pytest.raises(MergeConflictError):
            alice.merge(bob)
        assert alice.to_bytes() == before

    def test_different_transactions(self):
        """Test merging copies of two different txs."""
        with pytest.raises(MalformedTransactionError):
            create_multisig("dex").merge(create_multisig("amm"))

    def test_different_shapes(self):
        """Test merging copies with different credential shapes."""
        ms = create_multisig()
        other = copy_of(ms)
        other.tx.creds[-1].sigs.append(EMPTY_SIGNATURE)
        with pytest.raises(MalformedTransactionError):
            merge_signed_txs(ms.tx, other.tx)
        other.tx.creds.pop()
        with pytest.raises(MalformedTransactionError):
            merge_signed_txs(ms.tx, other.tx)
