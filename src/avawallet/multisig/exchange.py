"""
avawallet/multisig/exchange.py

Offline exchange of partially signed transactions.

Signers on different machines pass the same transaction around as the
chain's own signed-tx bytes, or as a text file holding those bytes in hex.
No header or version is added, so a fully signed artifact is exactly what
the network expects.

Two signers that both start from one snapshot can each fill different slots;
merge_signed_txs() combines their copies slot by slot.
"""

import logging
import os
from pathlib import Path
from typing import List, Union

from ..chains.detect import ChainAlias, chain_codec
from ..chains.tx import SignedTx
from ..codec import CodecError
from ..codec.secp256k1fx import is_empty_signature
from ..config import WRITE_READ_USER_ONLY_PERMS
from .errors import MalformedTransactionError, MergeConflictError

logger = logging.getLogger("avawallet.multisig.exchange")

PathLike = Union[str, Path]


def decode_signed_tx(data: bytes, chain: ChainAlias = ChainAlias.P) -> SignedTx:
    """
    Decode signed transaction bytes of `chain`.

    Raises:
        MalformedTransactionError: If the bytes do not decode
    """
    try:
        return SignedTx.from_bytes(chain_codec(chain), data)
    except CodecError as e:
        raise MalformedTransactionError(f"cannot decode {chain.value}-Chain tx: {e}") from e


def write_hex_file(path: PathLike, data: bytes) -> None:
    """Write `data` as one line of hex, readable by the owner only."""
    path = Path(path)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, WRITE_READ_USER_ONLY_PERMS)
    with os.fdopen(fd, "w") as f:
        f.write(data.hex())
    # An existing file keeps its mode through O_CREAT
    os.chmod(path, WRITE_READ_USER_ONLY_PERMS)
    logger.debug(f"Wrote {len(data)} byte tx to {path}")


def read_hex_file(path: PathLike) -> bytes:
    """
    Read bytes written by write_hex_file.

    Surrounding whitespace (a trailing newline from an editor or a paste)
    is ignored.

    Raises:
        MalformedTransactionError: If the file is not hex
    """
    text = Path(path).read_text().strip()
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise MalformedTransactionError(f"{path} does not hold hex: {e}") from e


def _merge_slots(ours: List[bytes], theirs: List[bytes], cred_index: int) -> List[bytes]:
    merged = []
    for slot, (a, b) in enumerate(zip(ours, theirs)):
        if is_empty_signature(a):
            merged.append(b)
        elif is_empty_signature(b) or a == b:
            merged.append(a)
        else:
            raise MergeConflictError(
                f"credential {cred_index} slot {slot} holds two different signatures"
            )
    return merged


def merge_signed_txs(ours: SignedTx, theirs: SignedTx) -> int:
    """
    Copy every signature `theirs` has and `ours` lacks into `ours`.

    Both copies must carry the same unsigned transaction and the same
    credential shape. A slot filled in only one copy takes that signature;
    a slot filled identically in both is kept.

    Args:
        ours: Transaction updated in place
        theirs: Transaction read from

    Returns:
        Number of slots filled from `theirs`

    Raises:
        MalformedTransactionError: If the copies are not of the same transaction
        MergeConflictError: If a slot holds different signatures in each copy
    """
    if ours.codec is not theirs.codec or ours.unsigned_bytes() != theirs.unsigned_bytes():
        raise MalformedTransactionError("cannot merge copies of different transactions")
    if len(ours.creds) != len(theirs.creds):
        raise MalformedTransactionError(
            f"credential count differs: {len(ours.creds)} vs {len(theirs.creds)}"
        )
    for i, (a, b) in enumerate(zip(ours.creds, theirs.creds)):
        if type(a) is not type(b) or len(a.sigs) != len(b.sigs):
            raise MalformedTransactionError(f"credential {i} has a different shape in each copy")

    # Check every slot before writing any, so a conflict leaves `ours` untouched
    merged = [_merge_slots(a.sigs, b.sigs, i) for i, (a, b) in enumerate(zip(ours.creds, theirs.creds))]

    filled = 0
    for cred, sigs in zip(ours.creds, merged):
        filled += sum(1 for old, new in zip(cred.sigs, sigs) if old != new)
        cred.sigs = sigs
    logger.info(f"Merged {filled} signature(s) into tx")
    return filled
