"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Participant keys, asset ids and common amounts
- factories: Engine, pool, asset and fill argument factory functions
"""

from tests.helpers.constants import (
    ASSET,
    ASSET_B,
    BUYER,
    COLLECTION,
    COSIGNER,
    CREATOR_A,
    CREATOR_B,
    NOW,
    OTHER_UUID,
    OWNER,
    REFERRAL,
    SELLER,
    SFT,
    SOL,
    STARTING_BALANCE,
    STRANGER,
    UUID,
)
from tests.helpers.factories import (
    any_allowlists,
    creator_hash,
    fulfill_buy_args,
    fulfill_sell_args,
    make_asset,
    make_engine,
    make_pool,
    make_pool_args,
)

__all__ = [
    # Constants
    "OWNER",
    "COSIGNER",
    "SELLER",
    "BUYER",
    "REFERRAL",
    "STRANGER",
    "CREATOR_A",
    "CREATOR_B",
    "UUID",
    "OTHER_UUID",
    "ASSET",
    "ASSET_B",
    "SFT",
    "COLLECTION",
    "SOL",
    "STARTING_BALANCE",
    "NOW",
    # Factories
    "any_allowlists",
    "creator_hash",
    "fulfill_buy_args",
    "fulfill_sell_args",
    "make_asset",
    "make_engine",
    "make_pool",
    "make_pool_args",
]
