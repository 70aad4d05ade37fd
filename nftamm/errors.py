"""Engine error classes.

Every error carries a stable numeric code (``ErrorCode``) so callers and the
HTTP surface can distinguish failure kinds without parsing messages. Codes
start at 6000 to line up with on-chain custom error numbering.

Errors are grouped by taxonomy:
- PolicyViolation: invalid fee/curve/royalty configuration or mode combination
- ArithmeticFault: checked add/sub/mul overflow or underflow
- AllowlistRejection: asset does not match the pool's allow-list
- SlippageViolation: realized price violates the caller's bound
- LiquidityExhausted: quota or balance insufficient
- AccountStateError: account in the wrong state for the operation
- AuthorizationError: wrong owner/cosigner/authority/creator
"""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Stable error codes.

    6000 is unassigned; an lp fee above the cap raises INVALID_BP.
    """

    INVALID_ALLOWLISTS = 6001
    INVALID_BP = 6002
    INVALID_CURVE_TYPE = 6003
    INVALID_CURVE_DELTA = 6004
    INVALID_COSIGNER = 6005
    INVALID_PAYMENT_MINT = 6006
    INVALID_OWNER = 6007
    NUMERIC_OVERFLOW = 6008
    INVALID_REQUESTED_PRICE = 6009
    NOT_EMPTY_ESCROW_ACCOUNT = 6010
    NOT_EMPTY_SELLSIDE_ASSET_AMOUNT = 6011
    INVALID_REFERRAL = 6012
    EXPIRED = 6013
    INVALID_SPOT_PRICE = 6014
    INVALID_METADATA_CREATOR_ROYALTY = 6015
    NOT_ENOUGH_BALANCE = 6016
    INVALID_CREATOR_ADDRESS = 6017
    UNEXPECTED_METADATA_URI = 6018
    INVALID_MAKER_OR_TAKER_FEE_BP = 6019
    INVALID_ACCOUNT_STATE = 6020
    INVALID_REMAINING_ACCOUNTS = 6021
    POOL_NOT_FOUND = 6022
    SELL_STATE_NOT_FOUND = 6023
    INVALID_AUTHORITY = 6024
    INVALID_ASSET = 6025


class MMMError(Exception):
    """Base error for pool engine operations."""

    code: ErrorCode = ErrorCode.INVALID_ACCOUNT_STATE
    message: str = "pool engine error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(f"{self.message}: {detail}" if detail else self.message)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, object]:
        """Serializable form used by the HTTP surface."""
        return {"code": int(self.code), "name": self.name, "message": str(self)}


# --- Taxonomy ---


class PolicyViolation(MMMError):
    """Invalid configuration, rejected before any state mutation."""


class ArithmeticFault(MMMError):
    """Checked arithmetic failed."""


class AllowlistRejection(MMMError):
    """Asset does not satisfy the allow-list."""


class SlippageViolation(MMMError):
    """Realized price outside the caller's declared bound."""


class LiquidityExhausted(MMMError):
    """Balance or quota insufficient."""


class AccountStateError(MMMError):
    """Account is not in a state that permits the operation."""


class AuthorizationError(MMMError):
    """Signer or key does not match what the record requires."""


# --- Policy violations ---


class InvalidBP(PolicyViolation):
    code = ErrorCode.INVALID_BP
    message = "invalid bp"


class InvalidCurveType(PolicyViolation):
    code = ErrorCode.INVALID_CURVE_TYPE
    message = "invalid curve type"


class InvalidCurveDelta(PolicyViolation):
    code = ErrorCode.INVALID_CURVE_DELTA
    message = "invalid curve delta"


class InvalidSpotPrice(PolicyViolation):
    code = ErrorCode.INVALID_SPOT_PRICE
    message = "invalid spot price"


class InvalidPaymentMint(PolicyViolation):
    code = ErrorCode.INVALID_PAYMENT_MINT
    message = "invalid payment mint"


class InvalidReferral(PolicyViolation):
    code = ErrorCode.INVALID_REFERRAL
    message = "invalid referral"


class InvalidMakerOrTakerFeeBP(PolicyViolation):
    code = ErrorCode.INVALID_MAKER_OR_TAKER_FEE_BP
    message = "invalid maker or taker fee bp"


class InvalidMetadataCreatorRoyalty(PolicyViolation):
    code = ErrorCode.INVALID_METADATA_CREATOR_ROYALTY
    message = "invalid metadata creator royalty"


# --- Arithmetic ---


class NumericOverflow(ArithmeticFault):
    code = ErrorCode.NUMERIC_OVERFLOW
    message = "numeric overflow"


# --- Allow-list ---


class InvalidAllowLists(AllowlistRejection):
    code = ErrorCode.INVALID_ALLOWLISTS
    message = "invalid allowlists"


class UnexpectedMetadataUri(AllowlistRejection):
    code = ErrorCode.UNEXPECTED_METADATA_URI
    message = "unexpected metadata uri"


# --- Slippage ---


class InvalidRequestedPrice(SlippageViolation):
    code = ErrorCode.INVALID_REQUESTED_PRICE
    message = "invalid requested price"


# --- Liquidity ---


class NotEnoughBalance(LiquidityExhausted):
    code = ErrorCode.NOT_ENOUGH_BALANCE
    message = "not enough balance"


# --- Account state ---


class InvalidAccountState(AccountStateError):
    code = ErrorCode.INVALID_ACCOUNT_STATE
    message = "invalid account state"


class NotEmptyEscrowAccount(AccountStateError):
    code = ErrorCode.NOT_EMPTY_ESCROW_ACCOUNT
    message = "not empty escrow account"


class NotEmptySellsideAssetAmount(AccountStateError):
    code = ErrorCode.NOT_EMPTY_SELLSIDE_ASSET_AMOUNT
    message = "not empty sellside asset amount"


class InvalidRemainingAccounts(AccountStateError):
    code = ErrorCode.INVALID_REMAINING_ACCOUNTS
    message = "invalid remaining accounts"


class Expired(AccountStateError):
    code = ErrorCode.EXPIRED
    message = "expired"


class PoolNotFound(AccountStateError):
    code = ErrorCode.POOL_NOT_FOUND
    message = "pool not found"


class SellStateNotFound(AccountStateError):
    code = ErrorCode.SELL_STATE_NOT_FOUND
    message = "sell state not found"


class InvalidAsset(AccountStateError):
    code = ErrorCode.INVALID_ASSET
    message = "invalid asset"


# --- Authorization ---


class InvalidOwner(AuthorizationError):
    code = ErrorCode.INVALID_OWNER
    message = "invalid owner"


class InvalidCosigner(AuthorizationError):
    code = ErrorCode.INVALID_COSIGNER
    message = "invalid cosigner"


class InvalidAuthority(AuthorizationError):
    code = ErrorCode.INVALID_AUTHORITY
    message = "invalid authority"


class InvalidCreatorAddress(AuthorizationError):
    code = ErrorCode.INVALID_CREATOR_ADDRESS
    message = "invalid creator address"
