"""Pydantic models for pool engine records and instruction arguments."""

from nftamm.models.allowlist import (
    Allowlist,
    AllowlistKind,
    DynamicAllowlist,
    dynamic_allowlist_pointer,
    empty_allowlists,
    pad_allowlists,
)
from nftamm.models.args import (
    CreateDynamicAllowlistArgs,
    CreatePoolArgs,
    DepositBuyArgs,
    DepositSellArgs,
    FulfillBuyArgs,
    FulfillSellArgs,
    MigratePoolArgs,
    SetSharedEscrowArgs,
    UpdateAllowlistsArgs,
    UpdateDynamicAllowlistArgs,
    UpdatePoolArgs,
    WithdrawBuyArgs,
    WithdrawSellArgs,
)
from nftamm.models.asset import AssetDescriptor, AssetKind, CollectionRef, Creator, hash_creators
from nftamm.models.pool import CurveKind, Pool, SellState
from nftamm.models.types import Hash32, Pubkey

__all__ = [
    # Types
    "Hash32",
    "Pubkey",
    # Allow-lists
    "Allowlist",
    "AllowlistKind",
    "DynamicAllowlist",
    "dynamic_allowlist_pointer",
    "empty_allowlists",
    "pad_allowlists",
    # Assets
    "AssetDescriptor",
    "AssetKind",
    "CollectionRef",
    "Creator",
    "hash_creators",
    # Pool records
    "CurveKind",
    "Pool",
    "SellState",
    # Instruction arguments
    "CreateDynamicAllowlistArgs",
    "CreatePoolArgs",
    "DepositBuyArgs",
    "DepositSellArgs",
    "FulfillBuyArgs",
    "FulfillSellArgs",
    "MigratePoolArgs",
    "SetSharedEscrowArgs",
    "UpdateAllowlistsArgs",
    "UpdateDynamicAllowlistArgs",
    "UpdatePoolArgs",
    "WithdrawBuyArgs",
    "WithdrawSellArgs",
]
