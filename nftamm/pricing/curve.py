"""Bonding curve pricing.

A fill of ``n`` units is priced as the sum of ``n`` consecutive unit prices.

Fulfill buy (the counterparty sells into the pool, price goes down), with
p = spot price and d = curve delta:
    linear:       total = n * (2p - (n - 1) * d) / 2,  next = p - n * d
    exponential:  unit prices p, p / r, p / r^2, ...   with r = 1 + d / 10000

Fulfill sell (the counterparty buys from the pool, price goes up). Every unit
is one step above spot so a pool cannot be drained at its own bid:
    linear:       total = n * (2p + (n + 1) * d) / 2,  next = p + n * d
    exponential:  unit prices p * r, p * r^2, ...

Linear steps are checked against u64 at every multiplication; exponential
steps use a wide intermediate and round down each step. A price that would
go below zero is an error, never clamped.
"""

from __future__ import annotations

import structlog

from nftamm.constants import BP_DENOMINATOR, MAX_EXP_CURVE_DELTA_BP, MAX_TOTAL_PRICE
from nftamm.errors import InvalidCurveDelta, InvalidCurveType, NumericOverflow
from nftamm.models.pool import CurveKind, Pool
from nftamm.safe_int import S, SafeInt

logger = structlog.get_logger()


def check_curve(curve_type: int, curve_delta: int) -> None:
    """Validate curve parameters for create/update.

    Raises:
        InvalidCurveType: If the curve kind is unknown
        InvalidCurveDelta: If an exponential delta exceeds 10000 bp
    """
    if curve_type not in (CurveKind.LINEAR, CurveKind.EXPONENTIAL):
        raise InvalidCurveType(f"curve_type={curve_type}")
    if curve_type == CurveKind.EXPONENTIAL and curve_delta > MAX_EXP_CURVE_DELTA_BP:
        raise InvalidCurveDelta(f"curve_delta={curve_delta} exceeds {MAX_EXP_CURVE_DELTA_BP} bp")


def _u64(value: SafeInt) -> SafeInt:
    """Narrow an intermediate back to u64, as every linear step must fit."""
    return S(value.to_u64())


def _linear_buy(p: int, d: int, n: int) -> tuple[int, int]:
    step = _u64(_u64(S(n) - 1) * d)
    per_pair = _u64(_u64(S(p) * 2) - step)
    total = _u64(S(n) * per_pair) // 2
    next_price = S(p) - _u64(S(n) * d)
    return total.to_u64(), next_price.to_u64()


def _linear_sell(p: int, d: int, n: int) -> tuple[int, int]:
    step = _u64(_u64(S(n) + 1) * d)
    per_pair = _u64(_u64(S(p) * 2) + step)
    total = _u64(S(n) * per_pair) // 2
    next_price = S(p) + _u64(S(n) * d)
    return total.to_u64(), next_price.to_u64()


def _exponential_buy(p: int, d: int, n: int) -> tuple[int, int]:
    total = S(0)
    current = S(p)
    for filled in range(n):
        total = S((total + current).to_u64())
        stepped = current * BP_DENOMINATOR // (S(d) + BP_DENOMINATOR)
        if stepped == current:
            # rounding pins the price, the remaining units cost the same
            total = total + current * (n - filled - 1)
            _check_running_total(total)
            break
        current = stepped
        if not current:
            break
        _check_running_total(total)
    return total.to_u64(), current.to_u64()


def _exponential_sell(p: int, d: int, n: int) -> tuple[int, int]:
    total = S(0)
    current = S(p)
    for filled in range(n):
        stepped = current * (S(d) + BP_DENOMINATOR) // BP_DENOMINATOR
        if stepped == current:
            total = total + current * (n - filled)
            _check_running_total(total)
            break
        current = stepped
        total = S((total + current).to_u64())
        _check_running_total(total)
    return total.to_u64(), current.to_u64()


def _check_running_total(total: SafeInt) -> None:
    # the total only grows, so a long loop can stop at the cap
    if total > MAX_TOTAL_PRICE:
        raise NumericOverflow(f"total price exceeds {MAX_TOTAL_PRICE}")


def get_total_price_and_next_price(pool: Pool, n: int, fulfill_buy: bool) -> tuple[int, int]:
    """Price a fill of ``n`` units against the pool's curve.

    The pool is not modified; the caller commits ``next_price`` once the
    fill succeeds.

    Args:
        pool: Pool whose spot price and curve are used
        n: Units to fill
        fulfill_buy: True when the pool buys (counterparty sells into it)

    Returns:
        (total_price, next_spot_price)

    Raises:
        InvalidCurveType: If the pool carries an unknown curve kind
        NumericOverflow: On any overflow or underflow, a zero total, or a
            total above MAX_TOTAL_PRICE
    """
    p, d = pool.spot_price, pool.curve_delta

    if pool.curve_type == CurveKind.LINEAR:
        total, next_price = _linear_buy(p, d, n) if fulfill_buy else _linear_sell(p, d, n)
    elif pool.curve_type == CurveKind.EXPONENTIAL:
        total, next_price = (
            _exponential_buy(p, d, n) if fulfill_buy else _exponential_sell(p, d, n)
        )
    else:
        raise InvalidCurveType(f"curve_type={pool.curve_type}")

    if total == 0:
        raise NumericOverflow("total price is zero")
    if total > MAX_TOTAL_PRICE:
        raise NumericOverflow(f"total price {total} exceeds {MAX_TOTAL_PRICE}")

    logger.debug(
        "curve_priced",
        curve_type=int(pool.curve_type),
        spot_price=p,
        quantity=n,
        fulfill_buy=fulfill_buy,
        total_price=total,
        next_price=next_price,
    )
    return total, next_price
