"""Pool and SellState records.

The Pool is the aggregate root: curve state, fee policy, allow-list and the
cached liquidity counters. A SellState tracks one asset's inventory inside
one pool and exists only while that inventory is non-zero.
"""

from enum import IntEnum

from pydantic import BaseModel, Field

from nftamm.keys import DEFAULT_KEY
from nftamm.models.allowlist import Allowlist, AllowlistKind, empty_allowlists
from nftamm.models.types import I64, U16, U64, ZERO_HASH, Hash32, Pubkey
from nftamm.pda import get_buyside_sol_escrow_address


class CurveKind(IntEnum):
    """Bonding curve families."""

    LINEAR = 0
    EXPONENTIAL = 1


class Pool(BaseModel):
    """A market-making pool.

    Counters are caches: buyside_payment_amount mirrors the payment escrow
    balance after every operation, sellside_asset_amount mirrors the sum of
    the pool's SellState amounts.
    """

    address: Pubkey

    # mutable
    spot_price: U64
    curve_type: CurveKind = CurveKind.LINEAR
    curve_delta: U64 = 0
    reinvest_fulfill_buy: bool = False
    reinvest_fulfill_sell: bool = False
    expiry: I64 = 0
    lp_fee_bp: U16 = 0
    referral: Pubkey = DEFAULT_KEY
    cosigner_annotation: Hash32 = ZERO_HASH
    buyside_creator_royalty_bp: U16 = 0

    # state counters
    sellside_asset_amount: U64 = 0
    buyside_payment_amount: U64 = 0
    lp_fee_earned: U64 = 0

    # immutable
    owner: Pubkey
    cosigner: Pubkey
    uuid: Pubkey
    payment_mint: Pubkey = DEFAULT_KEY
    allowlists: list[Allowlist] = Field(default_factory=empty_allowlists)

    # shared escrow delegation
    shared_escrow_account: Pubkey | None = None
    shared_escrow_count: U64 = 0

    model_config = {"validate_assignment": True}

    @property
    def using_shared_escrow(self) -> bool:
        return self.shared_escrow_account is not None

    @property
    def buyside_sol_escrow_account(self) -> str:
        return get_buyside_sol_escrow_address(self.address)

    @property
    def dynamic_allowlist_pointer(self) -> str | None:
        """Key of the referenced DynamicAllowlist, if slot 0 is a pointer."""
        first = self.allowlists[0]
        if first.kind == AllowlistKind.DYNAMIC:
            return first.value
        return None

    def is_expired(self, now: int) -> bool:
        return self.expiry != 0 and self.expiry <= now


class SellState(BaseModel):
    """Inventory of one asset held by one pool."""

    address: Pubkey
    pool: Pubkey
    pool_owner: Pubkey
    asset_mint: Pubkey
    cosigner_annotation: Hash32 = ZERO_HASH
    asset_amount: U64 = 0

    model_config = {"validate_assignment": True}
