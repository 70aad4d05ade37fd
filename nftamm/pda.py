"""Address derivation for engine records."""

from nftamm.constants import (
    BUYSIDE_SOL_ESCROW_ACCOUNT_PREFIX,
    DYNAMIC_ALLOWLIST_PREFIX,
    M2_AUCTION_HOUSE,
    M2_PREFIX,
    M2_PROGRAM,
    POOL_PREFIX,
    SELL_STATE_PREFIX,
)
from nftamm.keys import derive_address


def get_pool_address(owner: str, uuid: str) -> str:
    return derive_address(POOL_PREFIX, owner, uuid)


def get_buyside_sol_escrow_address(pool: str) -> str:
    return derive_address(BUYSIDE_SOL_ESCROW_ACCOUNT_PREFIX, pool)


def get_sell_state_address(pool: str, asset_id: str) -> str:
    return derive_address(SELL_STATE_PREFIX, pool, asset_id)


def get_dynamic_allowlist_address(authority: str, cosigner_annotation: str) -> str:
    return derive_address(DYNAMIC_ALLOWLIST_PREFIX, authority, cosigner_annotation)


def get_m2_buyer_escrow_address(wallet: str) -> str:
    """Delegate escrow holding a wallet's shared buy-side liquidity."""
    return derive_address(M2_PREFIX, M2_AUCTION_HOUSE, wallet, M2_PROGRAM)
