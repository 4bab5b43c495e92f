"""
avawallet/network.py

Network descriptors and network id lookups.
"""

from dataclasses import dataclass
from enum import Enum

from .config import (
    FALLBACK_HRP,
    FUJI_API_ENDPOINT,
    FUJI_ID,
    LOCAL_API_ENDPOINT,
    LOCAL_ID,
    MAINNET_API_ENDPOINT,
    MAINNET_ID,
    NETWORK_HRPS,
)


class NetworkKind(Enum):
    """Known network families."""
    UNDEFINED = "undefined"
    MAINNET = "mainnet"
    FUJI = "fuji"
    LOCAL = "local"
    DEVNET = "devnet"


@dataclass(frozen=True)
class Network:
    """A network the wallet can talk to."""
    kind: NetworkKind
    network_id: int
    endpoint: str = ""

    @property
    def hrp(self) -> str:
        return hrp_from_network_id(self.network_id)

    def is_undefined(self) -> bool:
        return self.kind == NetworkKind.UNDEFINED

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "network_id": self.network_id,
            "endpoint": self.endpoint,
            "hrp": self.hrp,
        }


UNDEFINED_NETWORK = Network(NetworkKind.UNDEFINED, 0)
MAINNET = Network(NetworkKind.MAINNET, MAINNET_ID, MAINNET_API_ENDPOINT)
FUJI = Network(NetworkKind.FUJI, FUJI_ID, FUJI_API_ENDPOINT)
LOCAL = Network(NetworkKind.LOCAL, LOCAL_ID, LOCAL_API_ENDPOINT)


def devnet(network_id: int, endpoint: str) -> Network:
    """Describe a custom network reachable at `endpoint`."""
    return Network(NetworkKind.DEVNET, network_id, endpoint)


def network_from_network_id(network_id: int) -> Network:
    """
    Map a network id to a known network.

    Returns UNDEFINED_NETWORK for ids without a public endpoint, including 0.
    """
    if network_id == MAINNET_ID:
        return MAINNET
    if network_id == FUJI_ID:
        return FUJI
    if network_id == LOCAL_ID:
        return LOCAL
    return UNDEFINED_NETWORK


def hrp_from_network_id(network_id: int) -> str:
    """Address prefix for a network id, FALLBACK_HRP when unknown."""
    return NETWORK_HRPS.get(network_id, FALLBACK_HRP)
