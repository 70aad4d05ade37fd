"""Registry mapping asset kinds to transfer strategies.

The engine runs one generic fill pipeline and looks the transfer strategy
up by asset kind, so adding a kind means registering one strategy.
"""

from __future__ import annotations

from nftamm.errors import InvalidAsset
from nftamm.interfaces import AssetTransfer
from nftamm.ledger.holdings import HoldingsBook
from nftamm.models.asset import AssetDescriptor, AssetKind
from nftamm.transfers.strategies import ALL_STRATEGIES


class TransferRegistry:
    """Registry of AssetTransfer strategies keyed by asset kind.

    Usage:
        registry = TransferRegistry()
        registry.register(VanillaTransfer(holdings))
        registry.for_asset(asset).transfer(asset, owner, pool, 1)
    """

    def __init__(self) -> None:
        self._strategies: dict[AssetKind, AssetTransfer] = {}

    def register(self, strategy: AssetTransfer) -> None:
        self._strategies[strategy.kind] = strategy

    def for_asset(self, asset: AssetDescriptor) -> AssetTransfer:
        """Strategy for an asset.

        Raises:
            InvalidAsset: If no strategy handles the asset's kind
        """
        strategy = self._strategies.get(asset.kind)
        if strategy is None:
            raise InvalidAsset(f"no transfer strategy for {asset.kind.value}")
        return strategy

    @property
    def kinds(self) -> list[AssetKind]:
        return list(self._strategies)


def build_default_registry(holdings: HoldingsBook) -> TransferRegistry:
    """Registry with a holdings-backed strategy for every asset kind."""
    registry = TransferRegistry()
    for strategy_class in ALL_STRATEGIES:
        registry.register(strategy_class(holdings))
    return registry
