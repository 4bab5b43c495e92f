"""
avawallet/ids.py

Text forms for ids and addresses.

Ids (transactions, subnets, chains, assets) are 32 raw bytes shown in cb58:
base58 of the id followed by the last 4 bytes of its sha256. Addresses are
20 raw bytes shown as "<chain alias>-<bech32 with network hrp>", e.g.
"P-fuji1...".
"""

import hashlib
from typing import Tuple

import bech32
from evrmore import base58

from .config import ID_LEN, SHORT_ID_LEN

CB58_CHECKSUM_LEN = 4

EMPTY_ID = bytes(ID_LEN)
EMPTY_SHORT_ID = bytes(SHORT_ID_LEN)


def cb58_encode(data: bytes) -> str:
    """Encode bytes as cb58 (base58 with a 4 byte sha256 checksum)."""
    checksum = hashlib.sha256(data).digest()[-CB58_CHECKSUM_LEN:]
    return base58.encode(data + checksum)


def cb58_decode(text: str) -> bytes:
    """
    Decode a cb58 string.

    Raises:
        ValueError: If the text is not base58 or the checksum does not match
    """
    try:
        raw = base58.decode(text)
    except base58.InvalidBase58Error as e:
        raise ValueError(f"invalid cb58 string {text!r}: {e}") from e
    if len(raw) < CB58_CHECKSUM_LEN:
        raise ValueError(f"cb58 string {text!r} too short")
    data, checksum = raw[:-CB58_CHECKSUM_LEN], raw[-CB58_CHECKSUM_LEN:]
    if hashlib.sha256(data).digest()[-CB58_CHECKSUM_LEN:] != checksum:
        raise ValueError(f"cb58 checksum mismatch for {text!r}")
    return data


def id_to_string(value: bytes) -> str:
    """Render a 32 byte id."""
    if len(value) != ID_LEN:
        raise ValueError(f"id must be {ID_LEN} bytes, got {len(value)}")
    return cb58_encode(value)


def id_from_string(text: str) -> bytes:
    """Parse a cb58 id."""
    value = cb58_decode(text)
    if len(value) != ID_LEN:
        raise ValueError(f"id must be {ID_LEN} bytes, got {len(value)}")
    return value


def format_address(chain_alias: str, hrp: str, short_id: bytes) -> str:
    """
    Format a 20 byte address.

    Args:
        chain_alias: "P", "X" or "C"
        hrp: Network human readable part (see network.hrp_from_network_id)
        short_id: Raw address bytes

    Returns:
        Address such as "P-avax1..."
    """
    if len(short_id) != SHORT_ID_LEN:
        raise ValueError(f"address must be {SHORT_ID_LEN} bytes, got {len(short_id)}")
    encoded = bech32.bech32_encode(hrp, bech32.convertbits(short_id, 8, 5))
    return f"{chain_alias}-{encoded}"


def parse_address(address: str) -> Tuple[str, str, bytes]:
    """
    Parse an address produced by format_address.

    Returns:
        (chain_alias, hrp, short_id) tuple
    """
    chain_alias, sep, encoded = address.partition("-")
    if not sep or not chain_alias:
        raise ValueError(f"address {address!r} has no chain alias")
    hrp, data = bech32.bech32_decode(encoded)
    if hrp is None or data is None:
        raise ValueError(f"address {address!r} is not valid bech32")
    decoded = bech32.convertbits(data, 5, 8, False)
    if decoded is None or len(decoded) != SHORT_ID_LEN:
        raise ValueError(f"address {address!r} does not hold {SHORT_ID_LEN} bytes")
    return chain_alias, hrp, bytes(decoded)
