"""Escrow and pool reclamation.

After any operation that can shrink a pool's exposure the engine
opportunistically closes what is no longer needed:
- the payment escrow, once its balance is too small to fund a fill
- the pool itself, once it holds neither payment nor inventory

buyside_payment_amount is a cache of the escrow balance and is resynced
at the end of every instruction.
"""

from __future__ import annotations

import structlog

from nftamm.constants import BP_DENOMINATOR, MIN_SOL_ESCROW_BALANCE_BP, RENT_EXEMPT_MINIMUM
from nftamm.ledger.bank import LamportBank
from nftamm.ledger.store import PoolStore
from nftamm.models.pool import Pool
from nftamm.safe_int import S

logger = structlog.get_logger()


def min_escrow_balance(pool: Pool, rent_minimum: int = RENT_EXEMPT_MINIMUM) -> int:
    """Balance under which the escrow is reclaimed.

    A pool reinvesting its sales with inventory left can still grow its
    escrow, so only the rent minimum applies. Otherwise the escrow is dust
    once it holds less than MIN_SOL_ESCROW_BALANCE_BP of the spot price.
    """
    if pool.reinvest_fulfill_sell and pool.sellside_asset_amount > 0:
        return rent_minimum
    return (S(pool.spot_price) * MIN_SOL_ESCROW_BALANCE_BP // BP_DENOMINATOR).to_u64()


def try_close_escrow(
    bank: LamportBank,
    pool: Pool,
    rent_minimum: int = RENT_EXEMPT_MINIMUM,
) -> int:
    """Return a dust escrow balance to the owner.

    An empty escrow is left alone; a balance above the threshold stays.

    Returns:
        Lamports returned to the owner
    """
    escrow = pool.buyside_sol_escrow_account
    balance = bank.balance(escrow)
    threshold = max(rent_minimum, min_escrow_balance(pool, rent_minimum))
    if balance == 0 or balance > threshold:
        return 0

    reclaimed = bank.close(escrow, pool.owner)
    logger.info("escrow_closed", pool=pool.address, reclaimed=reclaimed, threshold=threshold)
    return reclaimed


def resync_buyside_payment_amount(bank: LamportBank, pool: Pool) -> int:
    """Set the cached counter to the escrow's actual balance."""
    pool.buyside_payment_amount = bank.balance(pool.buyside_sol_escrow_account)
    return pool.buyside_payment_amount


def can_close_pool(pool: Pool) -> bool:
    if pool.sellside_asset_amount != 0:
        return False
    if pool.buyside_payment_amount != 0:
        return False
    if pool.using_shared_escrow and pool.shared_escrow_count != 0:
        return False
    return True


def try_close_pool(store: PoolStore, pool: Pool) -> bool:
    """Close an empty pool and refund its rent to the owner.

    A pool still holding a live shared-escrow quota stays open. Closing an
    already closed pool does nothing.

    Returns:
        True if the pool was closed by this call
    """
    if not can_close_pool(pool):
        return False
    if store.find_pool(pool.address) is None:
        return False

    refunded = store.bank.close(pool.address, pool.owner)
    store.delete_pool(pool.address)
    logger.info("pool_closed", pool=pool.address, owner=pool.owner, rent_refunded=refunded)
    return True
