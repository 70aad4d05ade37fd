"""Lamport balances for every account the engine pays to or from.

Pool escrows, owners, counterparties, referrals, creators and delegate
escrows all hold native currency here, so every payment is a checked
transfer and conservation can be observed by summing balances.
"""

from __future__ import annotations

import structlog

from nftamm.errors import NotEnoughBalance
from nftamm.safe_int import checked_add_u64, checked_sub_u64

logger = structlog.get_logger()


class LamportBank:
    """In-memory lamport ledger.

    Accounts spring into existence on first credit and hold zero otherwise;
    a zero balance and a closed account are the same thing.
    """

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self._balances: dict[str, int] = {}
        for address, amount in (balances or {}).items():
            self.credit(address, amount)

    def balance(self, address: str) -> int:
        return self._balances.get(address, 0)

    def credit(self, address: str, amount: int) -> None:
        """Add lamports from outside the system (airdrop, test funding)."""
        self._set(address, checked_add_u64(self.balance(address), amount))

    def transfer(self, source: str, destination: str, amount: int) -> None:
        """Move lamports between two accounts.

        Raises:
            NotEnoughBalance: If the source cannot cover the amount
            NumericOverflow: If the destination would exceed u64
        """
        if amount == 0:
            return
        available = self.balance(source)
        if available < amount:
            raise NotEnoughBalance(f"{source} holds {available}, needs {amount}")
        if source == destination:
            return
        credited = checked_add_u64(self.balance(destination), amount)
        self._set(source, checked_sub_u64(available, amount))
        self._set(destination, credited)
        logger.debug("lamports_transferred", source=source, destination=destination, amount=amount)

    def close(self, address: str, destination: str) -> int:
        """Drain an account into destination, returning the amount moved."""
        amount = self.balance(address)
        self.transfer(address, destination, amount)
        return amount

    def total(self) -> int:
        """Sum of all balances."""
        return sum(self._balances.values())

    def snapshot(self) -> dict[str, int]:
        return dict(self._balances)

    def restore(self, snapshot: dict[str, int]) -> None:
        self._balances = dict(snapshot)

    def _set(self, address: str, amount: int) -> None:
        if amount == 0:
            self._balances.pop(address, None)
        else:
            self._balances[address] = amount
