"""Fee and royalty splitting for pool fills.

This module provides:
- Fill pricing and lp/maker/taker/referral fee split
- Slippage checks against the caller's payment bounds
- Creator royalty computation and payout

Usage:
    from nftamm.fees import DefaultFeeCalculator

    calculator = DefaultFeeCalculator()
    info = calculator.sell_fulfill_price_info(pool, escrow_balance, 1, 0, 100)
    payment = calculator.buyer_payment(info, royalty_paid=0, max_payment_amount=bound)
"""

from nftamm.fees.calculator import (
    DEFAULT_FEE_CALCULATOR,
    DefaultFeeCalculator,
    FeeCalculator,
    get_buyside_seller_receives,
    get_fee,
    get_lp_fee,
    get_lp_fee_bp,
    get_referral_fee,
)
from nftamm.fees.config import DEFAULT_FEE_CONFIG, FeeConfig
from nftamm.fees.result import PoolPriceInfo, RoyaltyPayout
from nftamm.fees.royalty import get_royalty, pay_creator_fees, verify_creators

__all__ = [
    # Calculator
    "FeeCalculator",
    "DefaultFeeCalculator",
    "DEFAULT_FEE_CALCULATOR",
    "get_buyside_seller_receives",
    "get_fee",
    "get_lp_fee",
    "get_lp_fee_bp",
    "get_referral_fee",
    # Config
    "FeeConfig",
    "DEFAULT_FEE_CONFIG",
    # Result
    "PoolPriceInfo",
    "RoyaltyPayout",
    # Royalty
    "get_royalty",
    "pay_creator_fees",
    "verify_creators",
]
