"""
avawallet/keychain.py

In-memory secp256k1 keychain able to fill multisig signature slots.

Keys live only in process memory; storing them is the caller's business.
An address is Hash160 of the compressed public key, the 20 bytes the
chains use as short ids. Signatures are 65 bytes: r || s || recovery id.

Usage:
    from avawallet.keychain import SoftKey, SoftKeychain

    keychain = SoftKeychain([SoftKey.from_hex(secret_hex)])
    result = await multisig.sign(keychain)
"""

import logging
import os
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from evrmore.core.serialize import Hash160
from evrmore.wallet import CEvrmoreSecret

from .config import SIGNATURE_LEN
from .ids import format_address

if TYPE_CHECKING:
    from .chains.tx import SignedTx

logger = logging.getLogger("avawallet.keychain")

SECRET_LEN = 32


class SoftKey:
    """A secp256k1 private key held in memory."""

    def __init__(self, secret: CEvrmoreSecret):
        self._secret = secret
        self._address = Hash160(bytes(secret.pub))

    @classmethod
    def from_secret_bytes(cls, secret: bytes) -> "SoftKey":
        """
        Create a key from 32 raw secret bytes.

        Args:
            secret: Private key scalar, big-endian

        Returns:
            SoftKey with a compressed public key
        """
        if len(secret) != SECRET_LEN:
            raise ValueError(f"secret must be exactly {SECRET_LEN} bytes")
        return cls(CEvrmoreSecret.from_secret_bytes(secret, compressed=True))

    @classmethod
    def from_hex(cls, secret_hex: str) -> "SoftKey":
        return cls.from_secret_bytes(bytes.fromhex(secret_hex))

    @classmethod
    def generate(cls) -> "SoftKey":
        return cls.from_secret_bytes(os.urandom(SECRET_LEN))

    def __repr__(self) -> str:
        return f"SoftKey({self._address.hex()})"

    @property
    def public_key(self) -> bytes:
        """Compressed public key (33 bytes)."""
        return bytes(self._secret.pub)

    @property
    def address(self) -> bytes:
        return self._address

    def address_string(self, chain_alias: str, hrp: str) -> str:
        """Address text, e.g. "P-fuji1..."."""
        return format_address(chain_alias, hrp, self._address)

    def sign_hash(self, digest: bytes) -> bytes:
        """
        Sign a 32 byte digest.

        Returns:
            65 byte recoverable signature r || s || recovery id
        """
        sig, recid = self._secret.sign_compact(digest)
        signature = bytes(sig) + bytes([recid])
        if len(signature) != SIGNATURE_LEN:
            raise ValueError(f"unexpected signature length {len(signature)}")
        return signature


class SoftKeychain:
    """Keys by address; fills the trailing credential of a multisig tx."""

    def __init__(self, keys: Iterable[SoftKey] = ()):
        self._keys: Dict[bytes, SoftKey] = {}
        for key in keys:
            self.add(key)

    def __len__(self) -> int:
        return len(self._keys)

    def add(self, key: SoftKey) -> None:
        self._keys[key.address] = key

    def get(self, address: bytes) -> Optional[SoftKey]:
        return self._keys.get(address)

    def addresses(self) -> List[bytes]:
        return list(self._keys)

    def can_sign(self, address: bytes) -> bool:
        return address in self._keys

    def sign_slot(self, tx: "SignedTx", slot_index: int, address: bytes) -> None:
        """
        Sign `tx` with the key of `address` into trailing slot `slot_index`.

        Raises:
            ValueError: If the key is not held or the slot does not exist
        """
        key = self._keys.get(address)
        if key is None:
            raise ValueError(f"no key for address {address.hex()}")
        if not tx.creds:
            raise ValueError("transaction has no credentials")
        cred = tx.creds[-1]
        if not 0 <= slot_index < len(cred.sigs):
            raise ValueError(f"slot {slot_index} out of range ({len(cred.sigs)} slots)")
        cred.sigs[slot_index] = key.sign_hash(tx.signing_hash())
        logger.debug(f"Filled slot {slot_index} for {address.hex()}")
