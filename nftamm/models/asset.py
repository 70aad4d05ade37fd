"""Asset descriptors as resolved from an asset's metadata.

The engine never parses metadata formats itself; a MetadataSource hands it
an AssetDescriptor with the fields allow-list matching and royalty payout
need.
"""

import hashlib
from enum import Enum

from pydantic import BaseModel, Field

from nftamm.models.types import U16, U64, Pubkey


class AssetKind(str, Enum):
    """Asset transfer families.

    Each kind has its own transfer mechanics but shares the pricing, fee
    and escrow pipeline.
    """

    VANILLA = "vanilla"  # plain token program NFT/SFT
    EXT = "ext"  # token-2022 with extensions
    MIP1 = "mip1"  # programmable NFT behind authorization rules
    OCP = "ocp"  # open creator protocol wrapped NFT
    CNFT = "cnft"  # compressed NFT (tree leaf)
    MPL_CORE = "mpl_core"  # generic typed asset


class Creator(BaseModel):
    """A royalty recipient declared on the asset."""

    address: Pubkey
    share: int = Field(ge=0, le=100)
    verified: bool = False

    model_config = {"frozen": True}


class CollectionRef(BaseModel):
    """Collection membership as declared on the asset."""

    key: Pubkey
    verified: bool = False

    model_config = {"frozen": True}


class AssetDescriptor(BaseModel):
    """Everything the engine needs to know about one asset.

    Attributes:
        asset_id: Mint key, or the asset id of a compressed leaf
        kind: Transfer family
        royalty_bp: Seller fee basis points declared on the asset
        creators: Declared creators, None when the asset declares none
        collection: Verified-collection membership (MCC)
        group: Token-2022 group the mint is a member of
        core_collection: Collection of a generic typed asset
        uri: Metadata URI
        supply: Units in existence (1 for NFTs)
    """

    asset_id: Pubkey
    kind: AssetKind = AssetKind.VANILLA
    royalty_bp: U16 = 0
    creators: list[Creator] | None = None
    collection: CollectionRef | None = None
    group: Pubkey | None = None
    core_collection: Pubkey | None = None
    uri: str = ""
    supply: U64 = 1

    @property
    def first_creator(self) -> Creator | None:
        if not self.creators:
            return None
        return self.creators[0]

    @property
    def verified_creators(self) -> list[Creator]:
        return [c for c in self.creators or [] if c.verified]


def hash_creators(creators: list[Creator]) -> str:
    """Content hash committing to a creator set, its shares and flags.

    Used to check that the creators a caller supplies for royalty payout are
    the ones committed on the asset.
    """
    hasher = hashlib.sha256()
    for creator in creators:
        hasher.update(bytes.fromhex(creator.address[2:]))
        hasher.update(bytes([1 if creator.verified else 0, creator.share]))
    return "0x" + hasher.hexdigest()
