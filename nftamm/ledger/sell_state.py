"""Per (pool, asset) inventory records.

A SellState moves Absent -> Active -> Absent: created on the first deposit
of an asset into a pool, closed when its amount returns to zero. The pool's
sellside_asset_amount moves in lockstep with every record change.
"""

from __future__ import annotations

import structlog

from nftamm.constants import SELL_STATE_ACCOUNT_RENT
from nftamm.ledger.store import PoolStore
from nftamm.models.pool import Pool, SellState
from nftamm.pda import get_sell_state_address
from nftamm.safe_int import checked_add_u64, checked_sub_u64

logger = structlog.get_logger()


class SellStateLedger:
    """Deposits and withdrawals of pool inventory.

    Attributes:
        store: Backing store; SellState rent is held in its bank under the
            record's address
        rent: Lamports a new record costs its creator
    """

    def __init__(self, store: PoolStore, rent: int = SELL_STATE_ACCOUNT_RENT) -> None:
        self.store = store
        self.rent = rent

    def deposit(self, pool: Pool, asset_id: str, amount: int, rent_payer: str) -> SellState:
        """Record ``amount`` more units of an asset held by the pool.

        Creates the record on first deposit, charging its rent to rent_payer.

        Raises:
            NumericOverflow: If either counter would exceed u64
            NotEnoughBalance: If a new record's rent cannot be paid
        """
        sell_state = self.store.find_sell_state(pool.address, asset_id)
        if sell_state is None:
            address = get_sell_state_address(pool.address, asset_id)
            self.store.bank.transfer(rent_payer, address, self.rent)
            sell_state = SellState(
                address=address,
                pool=pool.address,
                pool_owner=pool.owner,
                asset_mint=asset_id,
            )
            logger.debug("sell_state_created", pool=pool.address, asset=asset_id)

        pool_amount = checked_add_u64(pool.sellside_asset_amount, amount)
        asset_amount = checked_add_u64(sell_state.asset_amount, amount)

        pool.sellside_asset_amount = pool_amount
        sell_state.asset_amount = asset_amount
        sell_state.cosigner_annotation = pool.cosigner_annotation
        self.store.put_sell_state(sell_state)
        return sell_state

    def withdraw(self, pool: Pool, asset_id: str, amount: int, rent_receiver: str) -> SellState:
        """Release ``amount`` units, closing the record when it reaches zero.

        Raises:
            SellStateNotFound: If the pool holds none of the asset
            NumericOverflow: If more is withdrawn than recorded
        """
        sell_state = self.store.get_sell_state(pool.address, asset_id)

        asset_amount = checked_sub_u64(sell_state.asset_amount, amount)
        pool_amount = checked_sub_u64(pool.sellside_asset_amount, amount)

        sell_state.asset_amount = asset_amount
        pool.sellside_asset_amount = pool_amount
        self.try_close(sell_state, rent_receiver)
        return sell_state

    def try_close(self, sell_state: SellState, rent_receiver: str) -> bool:
        """Close an empty record and refund its rent.

        Returns:
            True if the record was closed
        """
        if sell_state.asset_amount != 0:
            return False
        if self.store.find_sell_state(sell_state.pool, sell_state.asset_mint) is None:
            return False

        refunded = self.store.bank.close(sell_state.address, rent_receiver)
        self.store.delete_sell_state(sell_state.pool, sell_state.asset_mint)
        logger.debug(
            "sell_state_closed",
            pool=sell_state.pool,
            asset=sell_state.asset_mint,
            rent_refunded=refunded,
        )
        return True

    def total_for_pool(self, pool: Pool) -> int:
        """Sum of every record's amount, which sellside_asset_amount mirrors."""
        return sum(s.asset_amount for s in self.store.sell_states_for_pool(pool.address))

