"""In-memory metadata source."""

from __future__ import annotations

from nftamm.errors import InvalidAsset
from nftamm.models.asset import AssetDescriptor


class InMemoryMetadataSource:
    """MetadataSource over descriptors registered up front."""

    def __init__(self, assets: list[AssetDescriptor] | None = None) -> None:
        self._assets: dict[str, AssetDescriptor] = {}
        for asset in assets or []:
            self.add(asset)

    def add(self, asset: AssetDescriptor) -> None:
        self._assets[asset.asset_id] = asset

    def resolve(self, asset_id: str) -> AssetDescriptor:
        asset = self._assets.get(asset_id)
        if asset is None:
            raise InvalidAsset(f"unknown asset {asset_id}")
        return asset
