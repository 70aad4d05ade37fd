"""Payment escrow lifecycle and shared escrow delegation."""

from nftamm.escrow.lifecycle import (
    can_close_pool,
    min_escrow_balance,
    resync_buyside_payment_amount,
    try_close_escrow,
    try_close_pool,
)
from nftamm.escrow.shared import (
    LedgerDelegateEscrow,
    check_can_enable_shared_escrow,
    check_remaining_accounts,
    consume_quota,
    get_withdraw_amount,
    sweep_local_escrow,
    withdraw_from_delegate,
)

__all__ = [
    # Lifecycle
    "can_close_pool",
    "min_escrow_balance",
    "resync_buyside_payment_amount",
    "try_close_escrow",
    "try_close_pool",
    # Shared escrow
    "LedgerDelegateEscrow",
    "check_can_enable_shared_escrow",
    "check_remaining_accounts",
    "consume_quota",
    "get_withdraw_amount",
    "sweep_local_escrow",
    "withdraw_from_delegate",
]
