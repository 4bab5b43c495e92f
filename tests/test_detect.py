"""
Tests for avawallet/chains/detect.py

Tests chain classification, codec collisions and network id extraction.
"""

import pytest

from avawallet.chains import (
    UNKNOWN_NETWORK_ID,
    ChainAlias,
    SignedTx,
    cchain,
    chain_network,
    detect_chain,
    extract_hrp,
    extract_network_id,
    pchain,
    tx_kind,
    xchain,
)
from avawallet.codec import Kind
from avawallet.codec.avax import BaseTx
from avawallet.codec.secp256k1fx import Credential
from avawallet.config import CASCADE_ID, FALLBACK_HRP, FUJI_ID, LOCAL_ID, UNIT_TEST_ID
from avawallet.network import FUJI, UNDEFINED_NETWORK


# ============================================================================
# TEST DATA
# ============================================================================

TEST_NETWORK_ID = LOCAL_ID

_CHAIN_MODULES = {
    ChainAlias.P: pchain,
    ChainAlias.X: xchain,
    ChainAlias.C: cchain,
}


def create_variant(chain: ChainAlias, cls, network_id: int = TEST_NETWORK_ID):
    """Create a default instance of a tx variant carrying `network_id`."""
    if chain == ChainAlias.C:
        return cls(network_id=network_id)
    return cls(base=BaseTx(network_id=network_id))


def all_variants():
    """Every (chain, tx class) pair the registries know."""
    return [
        (chain, cls)
        for chain, module in _CHAIN_MODULES.items()
        for cls in module.CODEC.types(Kind.UNSIGNED_TX)
    ]


def marshal(chain: ChainAlias, tx) -> bytes:
    return _CHAIN_MODULES[chain].CODEC.marshal(tx, Kind.UNSIGNED_TX)


def create_collision_bytes() -> bytes:
    """
    X-Chain BaseTx bytes that also decode as a C-Chain ImportTx.

    Both share type id 0. After the network and blockchain ids, the X
    layout continues with outs, ins and memo; with empty outs and ins and a
    20 byte memo followed by 8 zero bytes, those same 40 bytes read as a C
    source chain id plus empty input and output slices.
    """
    memo = bytes([0x5A]) * 20 + bytes(8)
    tx = xchain.BaseTx(base=BaseTx(network_id=FUJI_ID, memo=memo))
    return marshal(ChainAlias.X, tx)


# ============================================================================
# DETECT CHAIN TESTS
# ============================================================================

class TestDetectChain:
    """Tests for detect_chain()."""

    @pytest.mark.parametrize("chain, cls", all_variants(), ids=lambda v: getattr(v, "__name__", str(v)))
    def test_every_variant_detected(self, chain, cls):
        """Test that each variant classifies as its own chain."""
        assert detect_chain(marshal(chain, create_variant(chain, cls))) == chain

    def test_collision_is_undefined(self):
        """Test that bytes valid under two codecs are not guessed."""
        raw = create_collision_bytes()
        assert xchain.is_tx(raw)
        assert cchain.is_tx(raw)
        assert not pchain.is_tx(raw)
        assert detect_chain(raw) == ChainAlias.UNDEFINED

    def test_collision_network_id_unknown(self):
        """Test that an ambiguous blob yields no network id."""
        assert extract_network_id(create_collision_bytes()) == UNKNOWN_NETWORK_ID

    @pytest.mark.parametrize("raw", [
        b"",
        b"\x00",
        b"\x00\x00",
        b"\x00\x00\xff\xff\xff\xff",
        b"\x00\x01\x00\x00\x00\x00",
        bytes(range(200)),
    ])
    def test_garbage_is_undefined(self, raw):
        """Test that undecodable input never raises."""
        assert detect_chain(raw) == ChainAlias.UNDEFINED
        assert extract_network_id(raw) == 0

    def test_truncated_tx(self):
        """Test that a tx missing its last byte is unclassified."""
        raw = marshal(ChainAlias.P, create_variant(ChainAlias.P, pchain.CreateSubnetTx))
        assert detect_chain(raw[:-1]) == ChainAlias.UNDEFINED

    def test_signed_detection(self):
        """Test classifying a signed tx with credentials."""
        tx = create_variant(ChainAlias.P, pchain.CreateChainTx)
        signed = SignedTx(pchain.CODEC, tx, [Credential.empty(1), Credential.empty(2)])
        raw = signed.to_bytes()
        assert detect_chain(raw, signed=True) == ChainAlias.P
        assert extract_network_id(raw, signed=True) == TEST_NETWORK_ID
        # Credential bytes are trailing garbage to the unsigned decoders
        assert detect_chain(raw) == ChainAlias.UNDEFINED


# ============================================================================
# NETWORK ID TESTS
# ============================================================================

class TestExtractNetworkId:
    """Tests for extract_network_id()."""

    @pytest.mark.parametrize("chain, cls", all_variants(), ids=lambda v: getattr(v, "__name__", str(v)))
    def test_every_variant(self, chain, cls):
        """Test the exact embedded network id for every variant."""
        raw = marshal(chain, create_variant(chain, cls, network_id=TEST_NETWORK_ID))
        assert extract_network_id(raw) == TEST_NETWORK_ID

    def test_variant_count(self):
        """Test that detection covers all 25 transaction kinds."""
        assert len(all_variants()) == 18 + 5 + 2

    def test_chain_network(self):
        """Test mapping the extracted id to a known network."""
        raw = marshal(ChainAlias.C, create_variant(ChainAlias.C, cchain.ImportTx, FUJI_ID))
        assert chain_network(raw) == FUJI
        assert chain_network(b"junk") == UNDEFINED_NETWORK

    def test_extract_hrp(self):
        """Test that known ids without an endpoint keep their own prefix."""
        for network_id, hrp in ((UNIT_TEST_ID, "testing"), (CASCADE_ID, "cascade"), (FUJI_ID, "fuji")):
            raw = marshal(ChainAlias.P, create_variant(ChainAlias.P, pchain.CreateSubnetTx, network_id))
            assert extract_hrp(raw) == hrp
        raw = marshal(ChainAlias.P, create_variant(ChainAlias.P, pchain.CreateSubnetTx, UNIT_TEST_ID))
        assert chain_network(raw) == UNDEFINED_NETWORK
        assert extract_hrp(b"junk") == FALLBACK_HRP

    def test_tx_kind(self):
        """Test naming a decoded variant."""
        raw = marshal(ChainAlias.P, create_variant(ChainAlias.P, pchain.TransformSubnetTx))
        assert tx_kind(pchain.tx_from_bytes(raw)) == "TransformSubnetTx"
