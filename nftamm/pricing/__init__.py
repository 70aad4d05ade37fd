"""Bonding curve pricing for pool fills."""

from nftamm.pricing.curve import check_curve, get_total_price_and_next_price

__all__ = ["check_curve", "get_total_price_and_next_price"]
