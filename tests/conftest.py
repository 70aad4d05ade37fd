"""Pytest configuration and fixtures."""

from dataclasses import dataclass, field

import pytest

from nftamm.engine import PoolEngine
from nftamm.ledger import LamportBank
from nftamm.models import Creator, DepositBuyArgs, DepositSellArgs, Pool
from tests.helpers import (
    ASSET,
    ASSET_B,
    COSIGNER,
    CREATOR_A,
    CREATOR_B,
    OWNER,
    SFT,
    make_asset,
    make_engine,
    make_pool,
)


@pytest.fixture
def creators() -> list[Creator]:
    """Two verified creators splitting royalties 60/40."""
    return [
        Creator(address=CREATOR_A, share=60, verified=True),
        Creator(address=CREATOR_B, share=40, verified=True),
    ]


@pytest.fixture
def engine() -> PoolEngine:
    """Engine knowing a plain NFT (ASSET), a second NFT (ASSET_B) and an SFT."""
    return make_engine(
        assets=[
            make_asset(ASSET),
            make_asset(ASSET_B),
            make_asset(SFT, supply=100),
        ]
    )


@pytest.fixture
def pool(engine: PoolEngine) -> Pool:
    """Linear pool at spot 1_000_000 with an ANY allow-list and no liquidity."""
    return make_pool(engine)


@pytest.fixture
def two_sided_pool(engine: PoolEngine) -> Pool:
    """Pool at spot 1_000_000, 200 bp lp fee, holding one ASSET_B and
    1_000_000 lamports of buy-side liquidity."""
    pool = make_pool(engine, lp_fee_bp=200)
    engine.store.holdings.mint(OWNER, ASSET_B, 1)
    engine.deposit_sell(pool.address, OWNER, COSIGNER, ASSET_B, DepositSellArgs(asset_amount=1))
    return engine.deposit_buy(
        pool.address, OWNER, COSIGNER, DepositBuyArgs(payment_amount=1_000_000)
    )


# =============================================================================
# Mock classes for dependency injection
# =============================================================================


@dataclass
class RecordingDelegateEscrow:
    """Delegate escrow that records every withdrawal before moving lamports.

    Usage:
        delegate = RecordingDelegateEscrow(engine.store.bank)
        engine.delegate = delegate
        ...
        assert delegate.withdrawals[0]["amount"] == 1_000_000
    """

    bank: LamportBank
    withdrawals: list[dict] = field(default_factory=list)

    def withdraw(self, pool: str, wallet: str, escrow: str, destination: str, amount: int) -> None:
        self.withdrawals.append({"pool": pool, "wallet": wallet, "escrow": escrow, "amount": amount})
        self.bank.transfer(escrow, destination, amount)


@pytest.fixture
def recording_delegate(engine: PoolEngine) -> RecordingDelegateEscrow:
    """Install a RecordingDelegateEscrow on the engine."""
    delegate = RecordingDelegateEscrow(engine.store.bank)
    engine.delegate = delegate
    return delegate
