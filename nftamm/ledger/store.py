"""Keyed store for pool engine state.

This module provides PoolStore, the in-memory home of every record the
engine touches:
- Pools keyed by pool address
- SellStates keyed by (pool, asset_id)
- DynamicAllowlists keyed by record address
- Lamport balances (LamportBank) and asset holdings (HoldingsBook)

transaction() gives each instruction all-or-nothing semantics: state is
snapshotted on entry and restored if the block raises.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from nftamm.errors import PoolNotFound, SellStateNotFound
from nftamm.ledger.bank import LamportBank
from nftamm.ledger.holdings import HoldingsBook
from nftamm.models.allowlist import DynamicAllowlist
from nftamm.models.pool import Pool, SellState

logger = structlog.get_logger()


class PoolStore:
    """Registry of pools, sell states and balances.

    One lock serializes instructions against the store; it is reentrant so
    a transaction can call helpers that open their own.
    """

    def __init__(
        self,
        bank: LamportBank | None = None,
        holdings: HoldingsBook | None = None,
    ) -> None:
        self.bank = bank or LamportBank()
        self.holdings = holdings or HoldingsBook()
        self._pools: dict[str, Pool] = {}
        self._sell_states: dict[tuple[str, str], SellState] = {}
        self._dynamic_allowlists: dict[str, DynamicAllowlist] = {}
        self._lock = threading.RLock()

    # --- Pools ---

    def get_pool(self, address: str) -> Pool:
        """Look up a pool.

        Raises:
            PoolNotFound: If no pool lives at the address
        """
        pool = self._pools.get(address)
        if pool is None:
            raise PoolNotFound(address)
        return pool

    def find_pool(self, address: str) -> Pool | None:
        return self._pools.get(address)

    def put_pool(self, pool: Pool) -> None:
        self._pools[pool.address] = pool

    def delete_pool(self, address: str) -> None:
        self._pools.pop(address, None)

    @property
    def pool_count(self) -> int:
        return len(self._pools)

    def pools(self) -> list[Pool]:
        return list(self._pools.values())

    # --- Sell states ---

    def get_sell_state(self, pool: str, asset_id: str) -> SellState:
        """Look up the inventory record of one asset in one pool.

        Raises:
            SellStateNotFound: If the pool holds none of the asset
        """
        sell_state = self._sell_states.get((pool, asset_id))
        if sell_state is None:
            raise SellStateNotFound(f"pool={pool} asset={asset_id}")
        return sell_state

    def find_sell_state(self, pool: str, asset_id: str) -> SellState | None:
        return self._sell_states.get((pool, asset_id))

    def put_sell_state(self, sell_state: SellState) -> None:
        self._sell_states[(sell_state.pool, sell_state.asset_mint)] = sell_state

    def delete_sell_state(self, pool: str, asset_id: str) -> None:
        self._sell_states.pop((pool, asset_id), None)

    def sell_states_for_pool(self, pool: str) -> list[SellState]:
        return [s for (owner_pool, _), s in self._sell_states.items() if owner_pool == pool]

    # --- Dynamic allow-lists ---

    def get_dynamic_allowlist(self, address: str) -> DynamicAllowlist | None:
        return self._dynamic_allowlists.get(address)

    def put_dynamic_allowlist(self, dynamic_allowlist: DynamicAllowlist) -> None:
        self._dynamic_allowlists[dynamic_allowlist.address] = dynamic_allowlist

    # --- Transactions ---

    @contextmanager
    def transaction(self, name: str = "instruction") -> Iterator[PoolStore]:
        """Run a block atomically.

        Every record and balance is restored if the block raises; the
        exception propagates unchanged.
        """
        with self._lock:
            snapshot = (
                copy.deepcopy(self._pools),
                copy.deepcopy(self._sell_states),
                copy.deepcopy(self._dynamic_allowlists),
                self.bank.snapshot(),
                self.holdings.snapshot(),
            )
            try:
                yield self
            except Exception:
                (
                    self._pools,
                    self._sell_states,
                    self._dynamic_allowlists,
                    bank_snapshot,
                    holdings_snapshot,
                ) = snapshot
                self.bank.restore(bank_snapshot)
                self.holdings.restore(holdings_snapshot)
                logger.debug("transaction_rolled_back", instruction=name)
                raise
