"""Typed argument records for engine instructions.

Field widths are validated here; policy rules (fee caps, curve shape,
allow-list layout) are checked by the engine so they surface as engine
errors with stable codes rather than validation errors.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nftamm.keys import DEFAULT_KEY
from nftamm.models.allowlist import Allowlist, empty_allowlists
from nftamm.models.asset import Creator
from nftamm.models.types import I16, I64, U16, U64, ZERO_HASH, Hash32, Pubkey


class InstructionArgs(BaseModel):
    """Base for argument records.

    Accepts both snake_case and camelCase keys, matching the client SDK.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PoolParams(InstructionArgs):
    """The mutable half of a pool, shared by create and update."""

    spot_price: U64
    curve_type: int = Field(default=0, ge=0, le=255)
    curve_delta: U64 = 0
    reinvest_fulfill_buy: bool = False
    reinvest_fulfill_sell: bool = False
    expiry: I64 = 0
    lp_fee_bp: U16 = 0
    referral: Pubkey = DEFAULT_KEY
    cosigner_annotation: Hash32 = ZERO_HASH
    buyside_creator_royalty_bp: U16 = 0


class CreatePoolArgs(PoolParams):
    uuid: Pubkey
    payment_mint: Pubkey = DEFAULT_KEY
    allowlists: list[Allowlist] = Field(default_factory=empty_allowlists)


class UpdatePoolArgs(PoolParams):
    pass


class UpdateAllowlistsArgs(InstructionArgs):
    allowlists: list[Allowlist]


class SetSharedEscrowArgs(InstructionArgs):
    """Delegate buy-side liquidity.

    Attributes:
        shared_escrow_account: Owner's escrow inside the delegate program
        shared_escrow_count: Asset units the pool may buy with delegated funds
    """

    shared_escrow_account: Pubkey
    shared_escrow_count: U64


class DepositBuyArgs(InstructionArgs):
    payment_amount: U64


class WithdrawBuyArgs(InstructionArgs):
    payment_amount: U64


class DepositSellArgs(InstructionArgs):
    asset_amount: U64
    allowlist_aux: str | None = None


class WithdrawSellArgs(InstructionArgs):
    asset_amount: U64


class FillArgs(InstructionArgs):
    """Common arguments of a fill.

    Attributes:
        asset_amount: Units to fill
        allowlist_aux: Expected metadata URI prefix for METADATA rules
        maker_fee_bp: Signed maker fee; negative is a rebate
        taker_fee_bp: Taker fee
        creators: Royalty recipients, in the order declared on the asset
        creator_hash: Hash committing to ``creators``; required when
            creators are supplied
        remaining_accounts: Extra keys; while delegated, the delegate program
            and the owner's delegate escrow
    """

    asset_amount: U64
    allowlist_aux: str | None = None
    maker_fee_bp: I16 = 0
    taker_fee_bp: I16 = 0
    creators: list[Creator] = Field(default_factory=list)
    creator_hash: Hash32 | None = None
    remaining_accounts: list[Pubkey] = Field(default_factory=list)


class FulfillBuyArgs(FillArgs):
    """Counterparty sells ``asset_amount`` units into the pool."""

    min_payment_amount: U64 = 0


class FulfillSellArgs(FillArgs):
    """Counterparty buys ``asset_amount`` units from the pool."""

    max_payment_amount: U64
    buyside_creator_royalty_bp: U16 = 0


class CreateDynamicAllowlistArgs(InstructionArgs):
    cosigner_annotation: Hash32 = ZERO_HASH
    allowlists: list[Allowlist]


class UpdateDynamicAllowlistArgs(InstructionArgs):
    cosigner_annotation: Hash32 = ZERO_HASH
    allowlists: list[Allowlist]


class MigratePoolArgs(InstructionArgs):
    cosigner_annotation: Hash32 = ZERO_HASH
    owner: Pubkey
    uuid: Pubkey
