"""Tests for fulfill buy and fulfill sell."""

import pytest
from structlog.testing import capture_logs

from nftamm.constants import POOL_ACCOUNT_RENT, SELL_STATE_ACCOUNT_RENT
from nftamm.errors import (
    Expired,
    InvalidAllowLists,
    InvalidCosigner,
    InvalidCreatorAddress,
    InvalidReferral,
    InvalidRequestedPrice,
    NotEnoughBalance,
    NumericOverflow,
    PoolNotFound,
)
from nftamm.models import (
    Allowlist,
    AllowlistKind,
    DepositBuyArgs,
    DepositSellArgs,
    pad_allowlists,
)
from tests.helpers import (
    ASSET,
    ASSET_B,
    BUYER,
    COSIGNER,
    CREATOR_A,
    CREATOR_B,
    NOW,
    OWNER,
    REFERRAL,
    SELLER,
    SFT,
    SOL,
    STARTING_BALANCE,
    STRANGER,
    creator_hash,
    fulfill_buy_args,
    fulfill_sell_args,
    make_asset,
    make_engine,
    make_pool,
)


def sell_into(engine, pool, asset_id=ASSET, **kwargs):
    """SELLER sells into the pool (fulfill buy)."""
    args = fulfill_buy_args(**kwargs)
    return engine.fulfill_buy(pool.address, SELLER, asset_id, args, COSIGNER, REFERRAL)


def buy_from(engine, pool, asset_id=ASSET_B, **kwargs):
    """BUYER buys from the pool (fulfill sell)."""
    args = fulfill_sell_args(**kwargs)
    return engine.fulfill_sell(pool.address, BUYER, asset_id, args, COSIGNER, REFERRAL)


def fund_buy_side(engine, pool, amount):
    return engine.deposit_buy(pool.address, OWNER, COSIGNER, DepositBuyArgs(payment_amount=amount))


def stock(engine, pool, asset_id, amount=1):
    engine.store.holdings.mint(OWNER, asset_id, amount)
    engine.deposit_sell(pool.address, OWNER, COSIGNER, asset_id, DepositSellArgs(asset_amount=amount))


class TestFulfillSell:
    """Counterparty buys from the pool."""

    def test_two_sided_pool_charges_lp_and_taker(self, engine, two_sided_pool):
        """Spot 1_000_000, 200 bp lp, 100 bp taker: the buyer pays 1_030_000."""
        bank = engine.store.bank
        pool = two_sided_pool

        receipt = buy_from(engine, pool, taker_fee_bp=100)

        assert receipt.total_price == 1_000_000
        assert receipt.lp_fee == 20_000
        assert receipt.taker_fee == 10_000
        assert receipt.referral_fee == 10_000
        assert receipt.payment_amount == 1_030_000
        assert receipt.pool_closed is False

        assert bank.balance(BUYER) == STARTING_BALANCE - 1_030_000
        assert bank.balance(REFERRAL) == 10_000
        # proceeds and lp fee to the owner, sell-state rent refunded
        assert bank.balance(OWNER) == STARTING_BALANCE - POOL_ACCOUNT_RENT + 20_000
        assert engine.store.holdings.balance(BUYER, ASSET_B) == 1
        assert engine.store.find_sell_state(pool.address, ASSET_B) is None

        updated = engine.get_pool(pool.address)
        assert updated.sellside_asset_amount == 0
        assert updated.buyside_payment_amount == 1_000_000
        assert updated.lp_fee_earned == 20_000

    def test_price_ceiling_one_below_rejected(self, engine, two_sided_pool):
        bank = engine.store.bank
        before = bank.snapshot()

        with pytest.raises(InvalidRequestedPrice):
            buy_from(engine, two_sided_pool, taker_fee_bp=100, max_payment_amount=1_029_999)

        assert bank.snapshot() == before
        assert engine.store.holdings.balance(two_sided_pool.address, ASSET_B) == 1
        assert engine.get_sell_state(two_sided_pool.address, ASSET_B).asset_amount == 1

    def test_one_sided_pool_has_no_lp_fee(self, engine, pool):
        stock(engine, pool, ASSET_B)
        receipt = buy_from(engine, pool)
        assert receipt.lp_fee == 0
        assert receipt.payment_amount == 1_000_000

    def test_linear_curve_moves_spot_up(self, engine):
        pool = make_pool(engine, curve_delta=10_000)
        stock(engine, pool, SFT, 3)

        receipt = buy_from(engine, pool, SFT, asset_amount=2)

        assert receipt.total_price == 2_030_000
        assert receipt.next_price == 1_020_000
        updated = engine.get_pool(pool.address)
        assert updated.spot_price == 1_020_000
        assert updated.sellside_asset_amount == 1
        assert engine.store.holdings.balance(BUYER, SFT) == 2

    def test_last_unit_out_closes_pool_token_account(self, engine, pool):
        stock(engine, pool, SFT, 2)

        with capture_logs() as logs:
            buy_from(engine, pool, SFT)
        assert not [entry for entry in logs if entry["event"] == "token_account_closed"]

        with capture_logs() as logs:
            buy_from(engine, pool, SFT)
        closed = [entry for entry in logs if entry["event"] == "token_account_closed"]
        assert len(closed) == 1
        assert closed[0]["holder"] == pool.address
        assert closed[0]["asset"] == SFT

    def test_buying_more_than_stocked(self, engine, pool):
        stock(engine, pool, SFT, 1)
        with pytest.raises(NumericOverflow):
            buy_from(engine, pool, SFT, asset_amount=2)

    def test_reinvest_sends_proceeds_to_escrow(self, engine):
        pool = make_pool(engine, reinvest_fulfill_sell=True)
        stock(engine, pool, ASSET_B)

        buy_from(engine, pool)

        updated = engine.get_pool(pool.address)
        assert updated.buyside_payment_amount == 1_000_000
        assert engine.store.bank.balance(pool.buyside_sol_escrow_account) == 1_000_000

    def test_maker_rebate_reduces_owner_proceeds(self, engine, pool):
        stock(engine, pool, ASSET_B)
        owner_before = engine.store.bank.balance(OWNER)

        receipt = buy_from(engine, pool, maker_fee_bp=-50, taker_fee_bp=100)

        assert receipt.maker_fee == -5_000
        assert receipt.referral_fee == 5_000
        assert receipt.payment_amount == 1_010_000
        # proceeds 1_000_000 + 5_000 rebate, plus the sell-state rent
        assert engine.store.bank.balance(OWNER) == (
            owner_before + 1_005_000 + SELL_STATE_ACCOUNT_RENT
        )
        assert engine.store.bank.balance(BUYER) == STARTING_BALANCE - 1_010_000

    def test_royalty_paid_by_buyer(self, creators):
        engine = make_engine(
            assets=[make_asset(ASSET, royalty_bp=500, creators=creators)],
            balances={CREATOR_A: SOL, CREATOR_B: SOL},
        )
        pool = make_pool(engine)
        stock(engine, pool, ASSET)

        receipt = buy_from(
            engine,
            pool,
            ASSET,
            buyside_creator_royalty_bp=10_000,
            creators=creators,
            creator_hash=creator_hash(creators),
        )

        assert receipt.royalty_paid == 50_000
        assert receipt.payment_amount == 1_050_000
        assert engine.store.bank.balance(CREATOR_A) == SOL + 30_000
        assert engine.store.bank.balance(CREATOR_B) == SOL + 20_000

    def test_buyer_cannot_pay(self):
        engine = make_engine(assets=[make_asset(ASSET_B)], balances={BUYER: 0})
        pool = make_pool(engine)
        stock(engine, pool, ASSET_B)
        with pytest.raises(NotEnoughBalance):
            buy_from(engine, pool)


class TestFulfillBuy:
    """Counterparty sells into the pool."""

    def test_one_sided_pool_pays_total(self, engine):
        pool = make_pool(engine, curve_delta=100_000)
        fund_buy_side(engine, pool, 3 * SOL)
        engine.store.holdings.mint(SELLER, ASSET, 1)

        receipt = sell_into(engine, pool)

        assert receipt.total_price == 1_000_000
        assert receipt.payment_amount == 1_000_000
        assert engine.store.bank.balance(SELLER) == STARTING_BALANCE + 1_000_000
        assert engine.store.holdings.balance(OWNER, ASSET) == 1
        updated = engine.get_pool(pool.address)
        assert updated.spot_price == 900_000
        assert updated.buyside_payment_amount == 3 * SOL - 1_000_000

    def test_royalty_lp_and_taker_conserve_total(self, creators):
        """Every lamport leaving the escrow is accounted for."""
        engine = make_engine(
            assets=[make_asset(ASSET, royalty_bp=500, creators=creators), make_asset(ASSET_B)],
            balances={CREATOR_A: SOL, CREATOR_B: SOL},
        )
        pool = make_pool(engine, lp_fee_bp=200, buyside_creator_royalty_bp=10_000)
        stock(engine, pool, ASSET_B)
        fund_buy_side(engine, pool, 1_000_000)
        engine.store.holdings.mint(SELLER, ASSET, 1)

        receipt = sell_into(
            engine,
            pool,
            taker_fee_bp=100,
            creators=creators,
            creator_hash=creator_hash(creators),
        )

        assert receipt.lp_fee == 18_691
        assert receipt.taker_fee == 9_345
        assert receipt.referral_fee == 9_345
        assert receipt.royalty_paid == 46_728
        assert receipt.payment_amount == 925_236
        assert (
            receipt.payment_amount + receipt.lp_fee + receipt.referral_fee + receipt.royalty_paid
            == receipt.total_price + receipt.maker_fee
        )

        bank = engine.store.bank
        assert bank.balance(SELLER) == STARTING_BALANCE + 925_236
        assert bank.balance(CREATOR_A) == SOL + 28_036
        assert bank.balance(CREATOR_B) == SOL + 18_692
        assert bank.balance(REFERRAL) == 9_345
        assert bank.balance(pool.buyside_sol_escrow_account) == 0
        assert engine.get_pool(pool.address).lp_fee_earned == 18_691

    def test_price_floor_rejected_and_rolled_back(self, creators):
        engine = make_engine(
            assets=[make_asset(ASSET, royalty_bp=500, creators=creators), make_asset(ASSET_B)],
            balances={CREATOR_A: SOL, CREATOR_B: SOL},
        )
        pool = make_pool(engine, lp_fee_bp=200, buyside_creator_royalty_bp=10_000)
        stock(engine, pool, ASSET_B)
        fund_buy_side(engine, pool, 1_000_000)
        engine.store.holdings.mint(SELLER, ASSET, 1)
        before = engine.store.bank.snapshot()

        with pytest.raises(InvalidRequestedPrice):
            sell_into(
                engine,
                pool,
                taker_fee_bp=100,
                min_payment_amount=925_237,
                creators=creators,
                creator_hash=creator_hash(creators),
            )

        assert engine.store.bank.snapshot() == before
        assert engine.store.holdings.balance(SELLER, ASSET) == 1

    def test_missing_creator_hash_rejected(self, creators):
        engine = make_engine(assets=[make_asset(ASSET, royalty_bp=500, creators=creators)])
        pool = make_pool(engine, buyside_creator_royalty_bp=10_000)
        fund_buy_side(engine, pool, SOL)
        engine.store.holdings.mint(SELLER, ASSET, 1)

        with pytest.raises(InvalidCreatorAddress):
            sell_into(engine, pool, creators=creators)

    def test_maker_rebate_above_taker_is_overflow(self, engine):
        pool = make_pool(engine, spot_price=500_000)
        fund_buy_side(engine, pool, 500_000)
        engine.store.holdings.mint(SELLER, ASSET, 1)

        with pytest.raises(NumericOverflow):
            sell_into(engine, pool, maker_fee_bp=-50)

        assert engine.store.holdings.balance(SELLER, ASSET) == 1
        assert engine.get_pool(pool.address).buyside_payment_amount == 500_000

    def test_escrow_too_small(self, engine, pool):
        fund_buy_side(engine, pool, 999_999)
        engine.store.holdings.mint(SELLER, ASSET, 1)
        with pytest.raises(NotEnoughBalance):
            sell_into(engine, pool)

    def test_reinvest_keeps_asset_in_pool(self, engine):
        pool = make_pool(engine, reinvest_fulfill_buy=True)
        fund_buy_side(engine, pool, 2 * SOL)
        engine.store.holdings.mint(SELLER, ASSET, 1)

        sell_into(engine, pool)

        assert engine.store.holdings.balance(pool.address, ASSET) == 1
        assert engine.get_sell_state(pool.address, ASSET).asset_amount == 1
        assert engine.get_pool(pool.address).sellside_asset_amount == 1
        assert engine.store.bank.balance(SELLER) == (
            STARTING_BALANCE + 1_000_000 - SELL_STATE_ACCOUNT_RENT
        )

    def test_draining_fill_closes_escrow_and_pool(self, engine, pool):
        fund_buy_side(engine, pool, 1_005_000)
        engine.store.holdings.mint(SELLER, ASSET, 1)

        receipt = sell_into(engine, pool)

        assert receipt.pool_closed is True
        with pytest.raises(PoolNotFound):
            engine.get_pool(pool.address)
        # dust and pool rent both back with the owner
        assert engine.store.bank.balance(OWNER) == STARTING_BALANCE - 1_000_000

    def test_settlement_is_logged(self, engine, pool):
        fund_buy_side(engine, pool, 2 * SOL)
        engine.store.holdings.mint(SELLER, ASSET, 1)

        with capture_logs() as logs:
            sell_into(engine, pool)

        events = [entry["event"] for entry in logs]
        assert "post_fulfill_buy" in events
        assert "fill_settled" in events


class TestFillGuards:
    """Checks every fill runs before anything moves."""

    def test_expired_pool(self, engine):
        pool = make_pool(engine, expiry=NOW)
        stock(engine, pool, ASSET_B)
        with pytest.raises(Expired):
            buy_from(engine, pool)

    def test_future_expiry_allowed(self, engine):
        pool = make_pool(engine, expiry=NOW + 1)
        stock(engine, pool, ASSET_B)
        buy_from(engine, pool)

    def test_wrong_cosigner(self, engine, two_sided_pool):
        args = fulfill_sell_args()
        with pytest.raises(InvalidCosigner):
            engine.fulfill_sell(two_sided_pool.address, BUYER, ASSET_B, args, STRANGER, REFERRAL)

    def test_wrong_referral(self, engine, two_sided_pool):
        args = fulfill_sell_args()
        with pytest.raises(InvalidReferral):
            engine.fulfill_sell(two_sided_pool.address, BUYER, ASSET_B, args, COSIGNER, STRANGER)

    def test_asset_outside_allowlist(self, engine):
        pool = make_pool(
            engine, allowlists=pad_allowlists([Allowlist(kind=AllowlistKind.MINT, value=ASSET_B)])
        )
        fund_buy_side(engine, pool, SOL)
        engine.store.holdings.mint(SELLER, ASSET, 1)
        with pytest.raises(InvalidAllowLists):
            sell_into(engine, pool)

    def test_unknown_pool(self, engine):
        with pytest.raises(PoolNotFound):
            engine.fulfill_buy(STRANGER, SELLER, ASSET, fulfill_buy_args(), COSIGNER, REFERRAL)
