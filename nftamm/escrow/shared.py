"""Shared escrow delegation.

A delegated pool keeps no standing balance of its own. Its buy-side
liquidity sits in the owner's escrow inside a delegate program; every
fulfill buy pulls exactly what the fill needs into the local escrow, pays
out, and sweeps the residue back. shared_escrow_count bounds how many units
the pool may buy this way.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from nftamm.constants import M2_PROGRAM, RENT_EXEMPT_MINIMUM
from nftamm.errors import InvalidAccountState, InvalidRemainingAccounts
from nftamm.escrow.lifecycle import try_close_escrow
from nftamm.interfaces import DelegateEscrow
from nftamm.ledger.bank import LamportBank
from nftamm.models.pool import Pool
from nftamm.pda import get_m2_buyer_escrow_address
from nftamm.safe_int import S, checked_sub_u64

logger = structlog.get_logger()


def check_can_enable_shared_escrow(pool: Pool, shared_escrow_account: str) -> None:
    """A pool may delegate only with no exposure and no reinvestment.

    Raises:
        InvalidAccountState: If the pool holds payment or inventory, has a
            reinvest flag set, or the account is not the owner's delegate
            escrow
    """
    if pool.buyside_payment_amount > 0:
        raise InvalidAccountState("pool holds buy-side payment")
    if pool.sellside_asset_amount > 0:
        raise InvalidAccountState("pool holds sell-side inventory")
    if pool.reinvest_fulfill_buy or pool.reinvest_fulfill_sell:
        raise InvalidAccountState("reinvest cannot be combined with shared escrow")
    if shared_escrow_account != get_m2_buyer_escrow_address(pool.owner):
        raise InvalidAccountState("shared escrow account is not the owner's delegate escrow")


def check_remaining_accounts(remaining_accounts: Sequence[str], pool_owner: str) -> str:
    """Verify the delegate program and escrow supplied with a delegated fill.

    Returns:
        The delegate escrow address

    Raises:
        InvalidRemainingAccounts: If either account is missing or wrong
    """
    if len(remaining_accounts) < 2:
        raise InvalidRemainingAccounts("delegate program and escrow are required")
    if remaining_accounts[0] != M2_PROGRAM:
        raise InvalidRemainingAccounts(f"{remaining_accounts[0]} is not the delegate program")
    expected = get_m2_buyer_escrow_address(pool_owner)
    if remaining_accounts[1] != expected:
        raise InvalidRemainingAccounts(f"{remaining_accounts[1]} is not the owner's delegate escrow")
    return remaining_accounts[1]


def get_withdraw_amount(delegate_balance: int, amount: int, rent_minimum: int) -> int:
    """How much to pull from the delegate for a fill needing ``amount``.

    When what would remain could not keep the delegate escrow rent-exempt,
    the whole balance is taken instead.
    """
    keep = (S(rent_minimum) + amount).to_u64()
    if delegate_balance > keep:
        return amount
    return delegate_balance


def withdraw_from_delegate(
    delegate: DelegateEscrow,
    bank: LamportBank,
    pool: Pool,
    delegate_escrow: str,
    amount: int,
    rent_minimum: int = RENT_EXEMPT_MINIMUM,
) -> int:
    """Pull a fill's funding into the pool's local escrow.

    Returns:
        Lamports withdrawn
    """
    withdraw_amount = get_withdraw_amount(bank.balance(delegate_escrow), amount, rent_minimum)
    delegate.withdraw(
        pool=pool.address,
        wallet=pool.owner,
        escrow=delegate_escrow,
        destination=pool.buyside_sol_escrow_account,
        amount=withdraw_amount,
    )
    logger.debug(
        "shared_escrow_withdrawn",
        pool=pool.address,
        requested=amount,
        withdrawn=withdraw_amount,
    )
    return withdraw_amount


def consume_quota(pool: Pool, asset_amount: int) -> None:
    """Spend delegated quota.

    Raises:
        NumericOverflow: If the fill exceeds the remaining quota
    """
    pool.shared_escrow_count = checked_sub_u64(pool.shared_escrow_count, asset_amount)


def sweep_local_escrow(
    bank: LamportBank,
    pool: Pool,
    delegate_escrow: str,
    rent_minimum: int = RENT_EXEMPT_MINIMUM,
) -> int:
    """Return the local escrow's residue to the delegate.

    If together they would not stay above the rent minimum the residue is
    treated as dust and the local escrow is closed to the owner instead.

    Returns:
        Lamports swept back to the delegate
    """
    local = bank.balance(pool.buyside_sol_escrow_account)
    shared = bank.balance(delegate_escrow)
    if local > 0 and shared + local > rent_minimum:
        bank.transfer(pool.buyside_sol_escrow_account, delegate_escrow, local)
        logger.debug("shared_escrow_swept", pool=pool.address, amount=local)
        return local

    try_close_escrow(bank, pool, rent_minimum)
    return 0


class LedgerDelegateEscrow:
    """Delegate program whose escrows are balances in the engine's bank."""

    def __init__(self, bank: LamportBank) -> None:
        self.bank = bank

    def withdraw(self, pool: str, wallet: str, escrow: str, destination: str, amount: int) -> None:
        """Transfer ``amount`` from the wallet's escrow.

        Raises:
            InvalidRemainingAccounts: If escrow is not the wallet's escrow
            NotEnoughBalance: If the escrow cannot cover the amount
        """
        if escrow != get_m2_buyer_escrow_address(wallet):
            raise InvalidRemainingAccounts(f"{escrow} is not the escrow of {wallet}")
        self.bank.transfer(escrow, destination, amount)
