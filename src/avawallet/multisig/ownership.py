"""
avawallet/multisig/ownership.py

Subnet ownership and the capabilities the coordinator consumes.

The coordinator never talks to the network or holds keys itself. It is
handed three collaborators:

- an OwnershipResolver: subnet id -> control keys and threshold
- a SigningCapability: fills signature slots for addresses it holds
- a SubmissionCapability: issues signed bytes and reports acceptance

OwnershipCache wraps a resolver so that several coordinators working on the
same subnet share one lookup, with explicit invalidation when ownership
changes on chain.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional, Protocol, Tuple

from ..codec.secp256k1fx import OutputOwners
from ..config import SHORT_ID_LEN
from ..ids import id_to_string

if TYPE_CHECKING:
    from ..chains.tx import SignedTx

logger = logging.getLogger("avawallet.multisig.ownership")


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class Ownership:
    """
    Control keys of a subnet.

    `control_keys` order is significant: authorization indices point into it.
    threshold <= len(control_keys) is guaranteed by the chain, not checked here.
    """
    control_keys: Tuple[bytes, ...] = field(default_factory=tuple)
    threshold: int = 0

    def __post_init__(self):
        object.__setattr__(self, "control_keys", tuple(self.control_keys))
        for key in self.control_keys:
            if len(key) != SHORT_ID_LEN:
                raise ValueError(f"control key must be {SHORT_ID_LEN} bytes, got {len(key)}")

    @classmethod
    def from_output_owners(cls, owners: OutputOwners) -> "Ownership":
        return cls(control_keys=tuple(owners.addrs), threshold=owners.threshold)

    def to_dict(self) -> dict:
        return {
            "control_keys": [key.hex() for key in self.control_keys],
            "threshold": self.threshold,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Ownership":
        return cls(
            control_keys=tuple(bytes.fromhex(key) for key in data["control_keys"]),
            threshold=data["threshold"],
        )


# ============================================================================
# CAPABILITIES
# ============================================================================

class OwnershipResolver(Protocol):
    def resolve(self, subnet_id: bytes) -> Ownership:
        """
        Look up the current owner of a subnet.

        Raises:
            OwnershipNotFoundError: If the subnet is unknown
            OwnershipQueryError: If the lookup failed
        """
        ...


class SigningCapability(Protocol):
    def can_sign(self, address: bytes) -> bool:
        ...

    def sign_slot(self, tx: "SignedTx", slot_index: int, address: bytes) -> None:
        """
        Write the signature of `address` into the trailing credential.

        Raises on failure; a failed slot stays empty.
        """
        ...


class SubmissionCapability(Protocol):
    async def submit(self, tx_bytes: bytes, timeout: float, wait_for_acceptance: bool) -> bool:
        """
        Issue a signed transaction.

        Returns:
            True if the network accepted it. False, or an exception, is a rejection.
        """
        ...


# ============================================================================
# CACHE
# ============================================================================

class OwnershipCache:
    """
    Memoizing OwnershipResolver.

    Failed lookups are not cached. Call invalidate() after a
    TransferSubnetOwnershipTx lands, or whenever on-chain ownership may
    have moved.
    """

    def __init__(self, resolver: OwnershipResolver):
        self._resolver = resolver
        self._entries: Dict[bytes, Ownership] = {}

    def __contains__(self, subnet_id: bytes) -> bool:
        return subnet_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self, subnet_id: bytes) -> Ownership:
        cached = self._entries.get(subnet_id)
        if cached is not None:
            return cached
        ownership = self._resolver.resolve(subnet_id)
        self._entries[subnet_id] = ownership
        logger.debug(
            f"Cached ownership of subnet {id_to_string(subnet_id)}: "
            f"{len(ownership.control_keys)} keys, threshold {ownership.threshold}"
        )
        return ownership

    def invalidate(self, subnet_id: Optional[bytes] = None) -> None:
        """Drop one subnet's entry, or every entry when `subnet_id` is None."""
        if subnet_id is None:
            self._entries.clear()
        else:
            self._entries.pop(subnet_id, None)
