"""Engine seeding from a JSON file.

The API server's engine starts from the lamport balances, asset descriptors
and asset holdings in the file named by NFTAMM_SEED_FILE:

    {
        "balances": {"0x...": 100000000000},
        "assets": [{"asset_id": "0x...", "royalty_bp": 500}],
        "holdings": [{"holder": "0x...", "asset_id": "0x...", "amount": 1}]
    }

Without the variable the engine starts empty.
"""

from __future__ import annotations

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator

from nftamm.engine import PoolEngine
from nftamm.ledger import LamportBank, PoolStore
from nftamm.metadata import InMemoryMetadataSource
from nftamm.models.asset import AssetDescriptor
from nftamm.models.types import U64, Pubkey

SEED_FILE_ENV = "NFTAMM_SEED_FILE"

logger = structlog.get_logger()


class HoldingSeed(BaseModel):
    """Units of one asset held by one account at startup."""

    model_config = ConfigDict(extra="forbid")

    holder: Pubkey
    asset_id: Pubkey
    amount: U64 = Field(default=1, ge=1)


class EngineSeed(BaseModel):
    """Starting state of an engine."""

    model_config = ConfigDict(extra="forbid")

    balances: dict[Pubkey, U64] = Field(default_factory=dict)
    assets: list[AssetDescriptor] = Field(default_factory=list)
    holdings: list[HoldingSeed] = Field(default_factory=list)

    @model_validator(mode="after")
    def holdings_reference_known_assets(self) -> EngineSeed:
        known = {asset.asset_id for asset in self.assets}
        for holding in self.holdings:
            if holding.asset_id not in known:
                raise ValueError(f"holding of unknown asset {holding.asset_id}")
        return self


def load_seed(path: str | Path) -> EngineSeed:
    """Read and validate a seed file.

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the contents are not a valid seed
    """
    return EngineSeed.model_validate_json(Path(path).read_text())


def build_engine(seed: EngineSeed | None = None) -> PoolEngine:
    """Create an engine over a store holding the seed's state."""
    seed = seed or EngineSeed()
    store = PoolStore(bank=LamportBank(seed.balances))
    for holding in seed.holdings:
        store.holdings.mint(holding.holder, holding.asset_id, holding.amount)

    logger.info(
        "engine_seeded",
        accounts=len(seed.balances),
        assets=len(seed.assets),
        holdings=len(seed.holdings),
    )
    return PoolEngine(store=store, metadata=InMemoryMetadataSource(seed.assets))


def engine_from_env() -> PoolEngine:
    """Create an engine from the seed file named by NFTAMM_SEED_FILE, if any."""
    path = os.environ.get(SEED_FILE_ENV)
    if not path:
        logger.warning("engine_unseeded", hint=f"set {SEED_FILE_ENV} to fund accounts")
        return build_engine()
    logger.info("loading_seed", path=path)
    return build_engine(load_seed(path))
