"""Fee calculator for pool fills.

Uses SafeInt for arithmetic so every intermediate is checked:
- basis point products use an unbounded intermediate, narrowed on return
- signed fees round toward zero and must fit i64
- the referral fee is cast to unsigned, a negative sum is a NumericOverflow
"""

from __future__ import annotations

from typing import Protocol

import structlog

from nftamm.errors import InvalidMakerOrTakerFeeBP, InvalidRequestedPrice
from nftamm.fees.config import DEFAULT_FEE_CONFIG, FeeConfig
from nftamm.fees.result import PoolPriceInfo
from nftamm.models.pool import Pool
from nftamm.pricing.curve import get_total_price_and_next_price
from nftamm.safe_int import S

logger = structlog.get_logger()


def get_lp_fee_bp(pool: Pool, escrow_balance: int) -> int:
    """LP fee bp in effect for a fill.

    The lp fee only applies while the pool is two-sided: it holds inventory
    and its escrow can fund at least one unit at spot.
    """
    if pool.sellside_asset_amount < 1:
        return 0
    if escrow_balance < pool.spot_price:
        return 0
    return pool.lp_fee_bp


def get_lp_fee(pool: Pool, escrow_balance: int, amount: int, denominator: int = 10_000) -> int:
    lp_fee_bp = get_lp_fee_bp(pool, escrow_balance)
    return (S(amount) * lp_fee_bp // denominator).to_u64()


def get_fee(amount: int, fee_bp: int, denominator: int = 10_000) -> int:
    """Signed fee, truncated toward zero.

    Raises:
        I64Overflow: If the fee does not fit i64
    """
    return (S(amount) * fee_bp).trunc_div(denominator).to_i64()


def get_referral_fee(maker_fee: int, taker_fee: int) -> int:
    """Referral payout as an unsigned amount.

    A maker rebate larger than the taker fee leaves nothing to pay the
    referral and cannot be settled.

    Raises:
        U64Overflow: If the sum is negative
    """
    return (S(maker_fee) + taker_fee).to_u64()


def get_buyside_seller_receives(
    total_price: int,
    lp_fee_bp: int,
    royalty_bp: int,
    buyside_creator_royalty_bp: int,
    denominator: int = 10_000,
) -> int:
    """Net base of a fulfill buy.

    The pool pays total_price in all; lp fee and royalty are carved out of
    it so that seller_receives * (1 + lp + royalty * buyside_share) equals
    total_price, rounded down.
    """
    scale = S(denominator) * denominator
    royalty_part = S(royalty_bp) * buyside_creator_royalty_bp
    all_fees = S(lp_fee_bp) * denominator + royalty_part + scale
    return (S(total_price) * scale // all_fees).to_u64()


class FeeCalculator(Protocol):
    """Protocol for fill fee calculation.

    Implementations price a fill against the pool's curve and split the
    consideration into lp, maker and taker fees.
    """

    def assert_valid_fees_bp(self, maker_fee_bp: int, taker_fee_bp: int) -> None:
        """Reject maker/taker bp outside the referral fee cap."""
        ...

    def buy_fulfill_price_info(
        self,
        pool: Pool,
        escrow_balance: int,
        asset_amount: int,
        maker_fee_bp: int,
        taker_fee_bp: int,
        royalty_bp: int,
    ) -> PoolPriceInfo:
        """Price and split a fill where the pool buys."""
        ...

    def sell_fulfill_price_info(
        self,
        pool: Pool,
        escrow_balance: int,
        asset_amount: int,
        maker_fee_bp: int,
        taker_fee_bp: int,
    ) -> PoolPriceInfo:
        """Price and split a fill where the pool sells."""
        ...

    def seller_payment(self, info: PoolPriceInfo, royalty_paid: int, min_payment_amount: int) -> int:
        """Net proceeds of a fulfill buy, bounded below by the seller."""
        ...

    def buyer_payment(self, info: PoolPriceInfo, royalty_paid: int, max_payment_amount: int) -> int:
        """Gross cost of a fulfill sell, bounded above by the buyer."""
        ...


class DefaultFeeCalculator:
    """Default implementation of fill fee calculation.

    Fulfill buy (pool pays from its escrow):
        seller_receives = total * 1e8 / (1e8 + lp_bp * 1e4 + royalty_bp * creator_bp)
        lp, maker, taker fees are computed on seller_receives
        seller payment = total - lp - taker - royalty

    Fulfill sell (counterparty pays):
        lp, maker, taker fees are computed on total
        buyer payment = total + lp + taker + royalty

    Attributes:
        config: Fee configuration settings
    """

    def __init__(self, config: FeeConfig | None = None):
        """Initialize with optional configuration.

        Args:
            config: Fee configuration. Uses DEFAULT_FEE_CONFIG if not provided.
        """
        self.config = config or DEFAULT_FEE_CONFIG

    def assert_valid_fees_bp(self, maker_fee_bp: int, taker_fee_bp: int) -> None:
        """Check maker/taker bp before anything moves.

        taker must be in [0, cap], maker in [-cap, cap] and their sum at most
        cap. A negative sum passes here and is rejected by the unsigned cast
        of the referral fee.

        Raises:
            InvalidMakerOrTakerFeeBP: If a bound is violated
        """
        bound = self.config.max_referral_fee_bp
        if not 0 <= taker_fee_bp <= bound:
            raise InvalidMakerOrTakerFeeBP(f"taker_fee_bp={taker_fee_bp}")
        if not -bound <= maker_fee_bp <= bound:
            raise InvalidMakerOrTakerFeeBP(f"maker_fee_bp={maker_fee_bp}")
        if maker_fee_bp + taker_fee_bp > bound:
            raise InvalidMakerOrTakerFeeBP(
                f"maker_fee_bp + taker_fee_bp = {maker_fee_bp + taker_fee_bp} exceeds {bound}"
            )

    def buy_fulfill_price_info(
        self,
        pool: Pool,
        escrow_balance: int,
        asset_amount: int,
        maker_fee_bp: int,
        taker_fee_bp: int,
        royalty_bp: int,
    ) -> PoolPriceInfo:
        """Price and split a fill where the pool buys.

        Args:
            pool: Pool being filled
            escrow_balance: Payment escrow balance before the fill
            asset_amount: Units sold into the pool
            maker_fee_bp: Signed maker fee bp
            taker_fee_bp: Taker fee bp
            royalty_bp: Royalty bp declared on the asset

        Returns:
            PoolPriceInfo with fee_base set to what the seller receives
        """
        denominator = self.config.bp_denominator
        total_price, next_price = get_total_price_and_next_price(pool, asset_amount, True)

        lp_fee_bp = get_lp_fee_bp(pool, escrow_balance)
        seller_receives = get_buyside_seller_receives(
            total_price, lp_fee_bp, royalty_bp, pool.buyside_creator_royalty_bp, denominator
        )
        lp_fee = get_lp_fee(pool, escrow_balance, seller_receives, denominator)

        self.assert_valid_fees_bp(maker_fee_bp, taker_fee_bp)
        maker_fee = get_fee(seller_receives, maker_fee_bp, denominator)
        taker_fee = get_fee(seller_receives, taker_fee_bp, denominator)
        referral_fee = get_referral_fee(maker_fee, taker_fee)

        return PoolPriceInfo(
            total_price=total_price,
            next_price=next_price,
            fee_base=seller_receives,
            lp_fee=lp_fee,
            maker_fee=maker_fee,
            taker_fee=taker_fee,
            referral_fee=referral_fee,
            royalty_bp=royalty_bp,
        )

    def sell_fulfill_price_info(
        self,
        pool: Pool,
        escrow_balance: int,
        asset_amount: int,
        maker_fee_bp: int,
        taker_fee_bp: int,
    ) -> PoolPriceInfo:
        """Price and split a fill where the pool sells."""
        denominator = self.config.bp_denominator
        total_price, next_price = get_total_price_and_next_price(pool, asset_amount, False)
        lp_fee = get_lp_fee(pool, escrow_balance, total_price, denominator)

        self.assert_valid_fees_bp(maker_fee_bp, taker_fee_bp)
        maker_fee = get_fee(total_price, maker_fee_bp, denominator)
        taker_fee = get_fee(total_price, taker_fee_bp, denominator)
        referral_fee = get_referral_fee(maker_fee, taker_fee)

        return PoolPriceInfo(
            total_price=total_price,
            next_price=next_price,
            fee_base=total_price,
            lp_fee=lp_fee,
            maker_fee=maker_fee,
            taker_fee=taker_fee,
            referral_fee=referral_fee,
        )

    def seller_payment(self, info: PoolPriceInfo, royalty_paid: int, min_payment_amount: int) -> int:
        """What the seller receives on a fulfill buy, checked against their floor.

        Raises:
            NumericOverflow: If fees exceed the total
            InvalidRequestedPrice: If the payment is below min_payment_amount
        """
        payment = (S(info.total_price) - info.lp_fee - info.taker_fee - royalty_paid).to_u64()
        if payment < min_payment_amount:
            logger.info(
                "slippage_rejected",
                side="fulfill_buy",
                payment_amount=payment,
                min_payment_amount=min_payment_amount,
            )
            raise InvalidRequestedPrice(
                f"seller would receive {payment}, below min_payment_amount {min_payment_amount}"
            )
        return payment

    def buyer_payment(self, info: PoolPriceInfo, royalty_paid: int, max_payment_amount: int) -> int:
        """What the buyer pays on a fulfill sell, checked against their ceiling.

        Raises:
            NumericOverflow: If the sum does not fit u64
            InvalidRequestedPrice: If the payment exceeds max_payment_amount
        """
        payment = (S(info.total_price) + info.lp_fee + info.taker_fee + royalty_paid).to_u64()
        if payment > max_payment_amount:
            logger.info(
                "slippage_rejected",
                side="fulfill_sell",
                payment_amount=payment,
                max_payment_amount=max_payment_amount,
            )
            raise InvalidRequestedPrice(
                f"buyer would pay {payment}, above max_payment_amount {max_payment_amount}"
            )
        return payment


# Default calculator instance
DEFAULT_FEE_CALCULATOR = DefaultFeeCalculator()
