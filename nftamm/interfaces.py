"""Capabilities the engine reaches through narrow interfaces.

Asset custody, metadata resolution, delegate escrow withdrawals and
referral proxies live outside the engine. Each is a Protocol so handlers
can plug in real integrations and tests can plug in fakes.
"""

from typing import Protocol, runtime_checkable

from nftamm.models.asset import AssetDescriptor, AssetKind
from nftamm.models.pool import Pool


@runtime_checkable
class AssetTransfer(Protocol):
    """Moves units of one asset kind between holders.

    One implementation per asset kind; the engine picks it by
    ``AssetDescriptor.kind`` and never looks at transfer mechanics.
    """

    kind: AssetKind

    def transfer(
        self,
        asset: AssetDescriptor,
        source: str,
        destination: str,
        amount: int,
    ) -> None:
        """Move ``amount`` units of ``asset`` from source to destination.

        Args:
            asset: Resolved asset being moved
            source: Current holder
            destination: New holder
            amount: Units to move

        Raises:
            NotEnoughBalance: If the source holds fewer units
            InvalidAsset: If the asset cannot be moved by this strategy
        """
        ...

    def close_if_empty(self, asset: AssetDescriptor, holder: str) -> bool:
        """Release the holder's custody record once it holds no units.

        Returns:
            True if a record was released
        """
        ...


@runtime_checkable
class MetadataSource(Protocol):
    """Resolves an asset id to the descriptor the engine matches on."""

    def resolve(self, asset_id: str) -> AssetDescriptor:
        """Look up an asset.

        Raises:
            InvalidAsset: If the asset is unknown
        """
        ...


@runtime_checkable
class DelegateEscrow(Protocol):
    """Withdrawal entrypoint of the program holding delegated liquidity."""

    def withdraw(self, pool: str, wallet: str, escrow: str, destination: str, amount: int) -> None:
        """Move ``amount`` from the wallet's escrow into destination on the pool's behalf."""
        ...


@runtime_checkable
class ReferralVerifier(Protocol):
    """Decides whether an account may collect a pool's referral fee."""

    def verify(self, pool: Pool, referral: str) -> bool:
        """True if referral is the pool's referral or a valid stand-in for it."""
        ...
