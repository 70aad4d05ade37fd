"""Asset transfer strategies, one per asset kind.

Every strategy moves units in a HoldingsBook; what differs per kind is what
a single transfer may carry and whether the holder keeps a custody record
(a token account) that can be closed once empty.
"""

from __future__ import annotations

from typing import ClassVar

import structlog

from nftamm.errors import InvalidAsset
from nftamm.ledger.holdings import HoldingsBook
from nftamm.models.asset import AssetDescriptor, AssetKind

logger = structlog.get_logger()


class HoldingsTransfer:
    """Base strategy over a HoldingsBook.

    Attributes:
        kind: Asset kind this strategy moves
        single_unit: Only one unit may move per transfer
        has_token_account: Holders keep a closable custody record
    """

    kind: ClassVar[AssetKind]
    single_unit: ClassVar[bool] = False
    has_token_account: ClassVar[bool] = True

    def __init__(self, holdings: HoldingsBook) -> None:
        self.holdings = holdings

    def transfer(self, asset: AssetDescriptor, source: str, destination: str, amount: int) -> None:
        if asset.kind != self.kind:
            raise InvalidAsset(f"{asset.asset_id} is {asset.kind.value}, not {self.kind.value}")
        if self.single_unit and amount != 1:
            raise InvalidAsset(f"{self.kind.value} assets move one unit at a time, got {amount}")
        self.holdings.move(source, destination, asset.asset_id, amount)
        logger.debug(
            "asset_transferred",
            kind=self.kind.value,
            asset=asset.asset_id,
            source=source,
            destination=destination,
            amount=amount,
        )

    def close_if_empty(self, asset: AssetDescriptor, holder: str) -> bool:
        if not self.has_token_account:
            return False
        return self.holdings.balance(holder, asset.asset_id) == 0


class VanillaTransfer(HoldingsTransfer):
    """Plain token program NFTs and SFTs."""

    kind = AssetKind.VANILLA


class ExtTransfer(HoldingsTransfer):
    """Token-2022 mints."""

    kind = AssetKind.EXT


class Mip1Transfer(HoldingsTransfer):
    """Programmable NFTs moved through their authorization rules."""

    kind = AssetKind.MIP1
    single_unit = True


class OcpTransfer(HoldingsTransfer):
    """Open creator protocol wrapped NFTs."""

    kind = AssetKind.OCP
    single_unit = True


class CnftTransfer(HoldingsTransfer):
    """Compressed NFTs; ownership is a tree leaf, no token account."""

    kind = AssetKind.CNFT
    single_unit = True
    has_token_account = False


class MplCoreTransfer(HoldingsTransfer):
    """Generic typed assets owned directly by their holder."""

    kind = AssetKind.MPL_CORE
    single_unit = True
    has_token_account = False


ALL_STRATEGIES: tuple[type[HoldingsTransfer], ...] = (
    VanillaTransfer,
    ExtTransfer,
    Mip1Transfer,
    OcpTransfer,
    CnftTransfer,
    MplCoreTransfer,
)
