"""Asset units held per (holder, asset)."""

from __future__ import annotations

from nftamm.errors import NotEnoughBalance
from nftamm.safe_int import checked_add_u64, checked_sub_u64


class HoldingsBook:
    """In-memory record of who holds how many units of which asset.

    Pools hold inventory under their own address, so a pool's custody is
    observable next to its SellState counters.
    """

    def __init__(self) -> None:
        self._units: dict[tuple[str, str], int] = {}

    def balance(self, holder: str, asset_id: str) -> int:
        return self._units.get((holder, asset_id), 0)

    def mint(self, holder: str, asset_id: str, amount: int) -> None:
        key = (holder, asset_id)
        self._units[key] = checked_add_u64(self.balance(holder, asset_id), amount)

    def move(self, source: str, destination: str, asset_id: str, amount: int) -> None:
        """Move units between holders.

        Raises:
            NotEnoughBalance: If the source holds fewer units than amount
        """
        held = self.balance(source, asset_id)
        if held < amount:
            raise NotEnoughBalance(f"{source} holds {held} of {asset_id}, needs {amount}")
        if source == destination or amount == 0:
            return
        remaining = checked_sub_u64(held, amount)
        if remaining:
            self._units[(source, asset_id)] = remaining
        else:
            del self._units[(source, asset_id)]
        self.mint(destination, asset_id, amount)

    def holders(self, asset_id: str) -> dict[str, int]:
        return {holder: units for (holder, asset), units in self._units.items() if asset == asset_id}

    def snapshot(self) -> dict[tuple[str, str], int]:
        return dict(self._units)

    def restore(self, snapshot: dict[tuple[str, str], int]) -> None:
        self._units = dict(snapshot)
