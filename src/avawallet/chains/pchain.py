"""
avawallet/chains/pchain.py

P-Chain (platform chain) transaction types and codec.

Subnet governance transactions carry a `subnet_auth` input whose
sig_indices select, in order, the subnet control keys that must sign. The
matching signatures live in the transaction's last credential.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Type

from ..codec import (
    BYTES,
    STR,
    U8,
    U32,
    U64,
    CodecError,
    Fixed,
    Interface,
    Kind,
    LinearCodec,
    Serializable,
    Slice,
    Struct,
    require_exhaustive,
    skip,
    wire,
)
from ..codec import secp256k1fx
from ..codec.avax import ID, BaseTx as AvaxBaseTx, TransferableInput, TransferableOutput
from ..codec.secp256k1fx import SHORT_ID, Input, OutputOwners
from ..config import BLS_PUBLIC_KEY_LEN, BLS_SIGNATURE_LEN
from ..ids import EMPTY_ID, EMPTY_SHORT_ID

logger = logging.getLogger("avawallet.chains.pchain")

CHAIN_ALIAS = "P"

BLS_PUBLIC_KEY = Fixed(BLS_PUBLIC_KEY_LEN)
BLS_SIGNATURE = Fixed(BLS_SIGNATURE_LEN)


# ============================================================================
# COMPONENTS
# ============================================================================

@dataclass(frozen=True)
class LockIn(Serializable):
    """Input locked until `locktime` (stakeable)."""
    KINDS = frozenset({Kind.INPUT})

    locktime: int = wire(U64, default=0)
    transferable_in: Serializable = wire(Interface(Kind.INPUT), default=None)


@dataclass(frozen=True)
class LockOut(Serializable):
    """Output locked until `locktime` (stakeable)."""
    KINDS = frozenset({Kind.OUTPUT})

    locktime: int = wire(U64, default=0)
    transferable_out: Serializable = wire(Interface(Kind.OUTPUT), default=None)


@dataclass(frozen=True)
class EmptySigner(Serializable):
    """Placeholder signer for validators without a BLS key."""
    KINDS = frozenset({Kind.SIGNER})


@dataclass(frozen=True)
class ProofOfPossession(Serializable):
    KINDS = frozenset({Kind.SIGNER})

    public_key: bytes = wire(BLS_PUBLIC_KEY, default=bytes(BLS_PUBLIC_KEY_LEN))
    proof_of_possession: bytes = wire(BLS_SIGNATURE, default=bytes(BLS_SIGNATURE_LEN))


@dataclass(frozen=True)
class Validator(Serializable):
    node_id: bytes = wire(SHORT_ID, default=EMPTY_SHORT_ID)
    start: int = wire(U64, default=0)
    end: int = wire(U64, default=0)
    weight: int = wire(U64, default=0)


@dataclass(frozen=True)
class SubnetValidator(Serializable):
    validator: Validator = wire(Struct(Validator), default_factory=Validator)
    subnet: bytes = wire(ID, default=EMPTY_ID)


@dataclass(frozen=True)
class PChainOwner(Serializable):
    threshold: int = wire(U32, default=0)
    addresses: List[bytes] = wire(Slice(SHORT_ID), default_factory=list)


@dataclass(frozen=True)
class ConvertSubnetToL1Validator(Serializable):
    node_id: bytes = wire(BYTES, default=b"")
    weight: int = wire(U64, default=0)
    balance: int = wire(U64, default=0)
    signer: ProofOfPossession = wire(Struct(ProofOfPossession), default_factory=ProofOfPossession)
    remaining_balance_owner: PChainOwner = wire(Struct(PChainOwner), default_factory=PChainOwner)
    deactivation_owner: PChainOwner = wire(Struct(PChainOwner), default_factory=PChainOwner)


_BASE = Struct(AvaxBaseTx)
_OUTS = Slice(Struct(TransferableOutput))
_INS = Slice(Struct(TransferableInput))
_AUTH = Interface(Kind.AUTH)
_OWNER = Interface(Kind.OWNER)


# ============================================================================
# TRANSACTIONS
# ============================================================================

@dataclass(frozen=True)
class AddValidatorTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    validator: Validator = wire(Struct(Validator), default_factory=Validator)
    stake_outs: List[TransferableOutput] = wire(_OUTS, default_factory=list)
    rewards_owner: Serializable = wire(_OWNER, default_factory=OutputOwners)
    delegation_shares: int = wire(U32, default=0)


@dataclass(frozen=True)
class AddSubnetValidatorTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    subnet_validator: SubnetValidator = wire(Struct(SubnetValidator), default_factory=SubnetValidator)
    subnet_auth: Input = wire(_AUTH, default_factory=Input)


@dataclass(frozen=True)
class AddDelegatorTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    validator: Validator = wire(Struct(Validator), default_factory=Validator)
    stake_outs: List[TransferableOutput] = wire(_OUTS, default_factory=list)
    delegation_rewards_owner: Serializable = wire(_OWNER, default_factory=OutputOwners)


@dataclass(frozen=True)
class CreateChainTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    subnet_id: bytes = wire(ID, default=EMPTY_ID)
    chain_name: str = wire(STR, default="")
    vm_id: bytes = wire(ID, default=EMPTY_ID)
    fx_ids: List[bytes] = wire(Slice(ID), default_factory=list)
    genesis_data: bytes = wire(BYTES, default=b"")
    subnet_auth: Input = wire(_AUTH, default_factory=Input)


@dataclass(frozen=True)
class CreateSubnetTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    owner: Serializable = wire(_OWNER, default_factory=OutputOwners)


@dataclass(frozen=True)
class ImportTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    source_chain: bytes = wire(ID, default=EMPTY_ID)
    imported_inputs: List[TransferableInput] = wire(_INS, default_factory=list)


@dataclass(frozen=True)
class ExportTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    destination_chain: bytes = wire(ID, default=EMPTY_ID)
    exported_outputs: List[TransferableOutput] = wire(_OUTS, default_factory=list)


@dataclass(frozen=True)
class RemoveSubnetValidatorTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    node_id: bytes = wire(SHORT_ID, default=EMPTY_SHORT_ID)
    subnet: bytes = wire(ID, default=EMPTY_ID)
    subnet_auth: Input = wire(_AUTH, default_factory=Input)


@dataclass(frozen=True)
class TransformSubnetTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    subnet: bytes = wire(ID, default=EMPTY_ID)
    asset_id: bytes = wire(ID, default=EMPTY_ID)
    initial_supply: int = wire(U64, default=0)
    maximum_supply: int = wire(U64, default=0)
    min_consumption_rate: int = wire(U64, default=0)
    max_consumption_rate: int = wire(U64, default=0)
    min_validator_stake: int = wire(U64, default=0)
    max_validator_stake: int = wire(U64, default=0)
    min_stake_duration: int = wire(U32, default=0)
    max_stake_duration: int = wire(U32, default=0)
    min_delegation_fee: int = wire(U32, default=0)
    min_delegator_stake: int = wire(U64, default=0)
    max_validator_weight_factor: int = wire(U8, default=0)
    uptime_requirement: int = wire(U32, default=0)
    subnet_auth: Input = wire(_AUTH, default_factory=Input)


@dataclass(frozen=True)
class AddPermissionlessValidatorTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    validator: Validator = wire(Struct(Validator), default_factory=Validator)
    subnet: bytes = wire(ID, default=EMPTY_ID)
    signer: Serializable = wire(Interface(Kind.SIGNER), default_factory=EmptySigner)
    stake_outs: List[TransferableOutput] = wire(_OUTS, default_factory=list)
    validator_rewards_owner: Serializable = wire(_OWNER, default_factory=OutputOwners)
    delegator_rewards_owner: Serializable = wire(_OWNER, default_factory=OutputOwners)
    delegation_shares: int = wire(U32, default=0)


@dataclass(frozen=True)
class AddPermissionlessDelegatorTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    validator: Validator = wire(Struct(Validator), default_factory=Validator)
    subnet: bytes = wire(ID, default=EMPTY_ID)
    stake_outs: List[TransferableOutput] = wire(_OUTS, default_factory=list)
    delegation_rewards_owner: Serializable = wire(_OWNER, default_factory=OutputOwners)


@dataclass(frozen=True)
class TransferSubnetOwnershipTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    subnet: bytes = wire(ID, default=EMPTY_ID)
    subnet_auth: Input = wire(_AUTH, default_factory=Input)
    owner: Serializable = wire(_OWNER, default_factory=OutputOwners)


@dataclass(frozen=True)
class BaseTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)


@dataclass(frozen=True)
class ConvertSubnetToL1Tx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    subnet: bytes = wire(ID, default=EMPTY_ID)
    chain_id: bytes = wire(ID, default=EMPTY_ID)
    address: bytes = wire(BYTES, default=b"")
    validators: List[ConvertSubnetToL1Validator] = wire(
        Slice(Struct(ConvertSubnetToL1Validator)), default_factory=list
    )
    subnet_auth: Input = wire(_AUTH, default_factory=Input)


@dataclass(frozen=True)
class RegisterL1ValidatorTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    balance: int = wire(U64, default=0)
    proof_of_possession: bytes = wire(BLS_SIGNATURE, default=bytes(BLS_SIGNATURE_LEN))
    message: bytes = wire(BYTES, default=b"")


@dataclass(frozen=True)
class SetL1ValidatorWeightTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    message: bytes = wire(BYTES, default=b"")


@dataclass(frozen=True)
class IncreaseL1ValidatorBalanceTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    validation_id: bytes = wire(ID, default=EMPTY_ID)
    balance: int = wire(U64, default=0)


@dataclass(frozen=True)
class DisableL1ValidatorTx(Serializable):
    KINDS = frozenset({Kind.UNSIGNED_TX})

    base: AvaxBaseTx = wire(_BASE, default_factory=AvaxBaseTx)
    validation_id: bytes = wire(ID, default=EMPTY_ID)
    disable_auth: Input = wire(_AUTH, default_factory=Input)


# ============================================================================
# CODEC
# ============================================================================

# Ids 0-4, 19-20 and 29-32 belong to blocks and internal transactions that
# never travel through a wallet.
CODEC = LinearCodec(CHAIN_ALIAS, [
    *skip(5),
    *secp256k1fx.REGISTRATIONS,         # 5-11
    AddValidatorTx,                     # 12
    AddSubnetValidatorTx,
    AddDelegatorTx,
    CreateChainTx,
    CreateSubnetTx,
    ImportTx,
    ExportTx,                           # 18
    *skip(2),
    LockIn,                             # 21
    LockOut,
    RemoveSubnetValidatorTx,            # 23
    TransformSubnetTx,
    AddPermissionlessValidatorTx,
    AddPermissionlessDelegatorTx,
    EmptySigner,                        # 27
    ProofOfPossession,
    *skip(4),
    TransferSubnetOwnershipTx,          # 33
    BaseTx,
    ConvertSubnetToL1Tx,                # 35
    RegisterL1ValidatorTx,
    SetL1ValidatorWeightTx,
    IncreaseL1ValidatorBalanceTx,
    DisableL1ValidatorTx,               # 39
])


def tx_from_bytes(data: bytes) -> Optional[Serializable]:
    """
    Unmarshal P-Chain unsigned transaction bytes.

    Returns:
        The transaction, or None if the bytes are not a P-Chain transaction
    """
    if not data:
        return None
    try:
        return CODEC.unmarshal(data, Kind.UNSIGNED_TX)
    except CodecError as e:
        logger.debug(f"Not a P-Chain tx: {e}")
        return None


def is_tx(data: bytes) -> bool:
    return tx_from_bytes(data) is not None


# ============================================================================
# PER-VARIANT LOOKUPS
# ============================================================================

def _base_network_id(tx) -> int:
    return tx.base.network_id


NETWORK_ID: Dict[Type[Serializable], Callable[[Serializable], int]] = {
    AddValidatorTx: _base_network_id,
    AddSubnetValidatorTx: _base_network_id,
    AddDelegatorTx: _base_network_id,
    CreateChainTx: _base_network_id,
    CreateSubnetTx: _base_network_id,
    ImportTx: _base_network_id,
    ExportTx: _base_network_id,
    RemoveSubnetValidatorTx: _base_network_id,
    TransformSubnetTx: _base_network_id,
    AddPermissionlessValidatorTx: _base_network_id,
    AddPermissionlessDelegatorTx: _base_network_id,
    TransferSubnetOwnershipTx: _base_network_id,
    BaseTx: _base_network_id,
    ConvertSubnetToL1Tx: _base_network_id,
    RegisterL1ValidatorTx: _base_network_id,
    SetL1ValidatorWeightTx: _base_network_id,
    IncreaseL1ValidatorBalanceTx: _base_network_id,
    DisableL1ValidatorTx: _base_network_id,
}
require_exhaustive(CODEC, Kind.UNSIGNED_TX, NETWORK_ID, "pchain.NETWORK_ID")

# Transactions naming a subnet, and where
SUBNET_ID: Dict[Type[Serializable], Callable[[Serializable], bytes]] = {
    AddSubnetValidatorTx: lambda tx: tx.subnet_validator.subnet,
    RemoveSubnetValidatorTx: lambda tx: tx.subnet,
    CreateChainTx: lambda tx: tx.subnet_id,
    TransformSubnetTx: lambda tx: tx.subnet,
    AddPermissionlessValidatorTx: lambda tx: tx.subnet,
    AddPermissionlessDelegatorTx: lambda tx: tx.subnet,
    TransferSubnetOwnershipTx: lambda tx: tx.subnet,
    ConvertSubnetToL1Tx: lambda tx: tx.subnet,
}

# Subnet governance transactions: authorized by the subnet's control keys
SUBNET_AUTH: Dict[Type[Serializable], Callable[[Serializable], Input]] = {
    AddSubnetValidatorTx: lambda tx: tx.subnet_auth,
    RemoveSubnetValidatorTx: lambda tx: tx.subnet_auth,
    CreateChainTx: lambda tx: tx.subnet_auth,
    TransformSubnetTx: lambda tx: tx.subnet_auth,
    TransferSubnetOwnershipTx: lambda tx: tx.subnet_auth,
    ConvertSubnetToL1Tx: lambda tx: tx.subnet_auth,
}


def network_id(tx: Serializable) -> int:
    return NETWORK_ID[type(tx)](tx)


def subnet_id(tx: Serializable) -> Optional[bytes]:
    """Subnet the transaction acts on, or None if it names no subnet."""
    getter = SUBNET_ID.get(type(tx))
    return getter(tx) if getter else None


def subnet_auth(tx: Serializable) -> Optional[Input]:
    """Authorization reference of a governance transaction, else None."""
    getter = SUBNET_AUTH.get(type(tx))
    return getter(tx) if getter else None
