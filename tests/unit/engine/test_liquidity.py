"""Tests for deposit and withdrawal of buy-side payment and sell-side inventory."""

import pytest

from nftamm.constants import POOL_ACCOUNT_RENT, SELL_STATE_ACCOUNT_RENT
from nftamm.errors import (
    InvalidAccountState,
    InvalidAllowLists,
    InvalidAsset,
    InvalidOwner,
    NotEnoughBalance,
    NumericOverflow,
    SellStateNotFound,
)
from nftamm.models import (
    Allowlist,
    AllowlistKind,
    DepositBuyArgs,
    DepositSellArgs,
    WithdrawBuyArgs,
    WithdrawSellArgs,
    pad_allowlists,
)
from nftamm.pda import get_sell_state_address
from tests.helpers import (
    ASSET,
    ASSET_B,
    COSIGNER,
    OWNER,
    SFT,
    SOL,
    STARTING_BALANCE,
    STRANGER,
    make_pool,
)


def deposit_buy(engine, pool, amount):
    return engine.deposit_buy(pool.address, OWNER, COSIGNER, DepositBuyArgs(payment_amount=amount))


def withdraw_buy(engine, pool, amount):
    return engine.withdraw_buy(pool.address, OWNER, COSIGNER, WithdrawBuyArgs(payment_amount=amount))


def deposit_sell(engine, pool, asset_id, amount, **kwargs):
    args = DepositSellArgs(asset_amount=amount, **kwargs)
    return engine.deposit_sell(pool.address, OWNER, COSIGNER, asset_id, args)


def withdraw_sell(engine, pool, asset_id, amount):
    args = WithdrawSellArgs(asset_amount=amount)
    return engine.withdraw_sell(pool.address, OWNER, COSIGNER, asset_id, args)


class TestBuySide:
    """Tests for payment escrow deposits and withdrawals."""

    def test_deposit_funds_escrow(self, engine, pool):
        updated = deposit_buy(engine, pool, 2 * SOL)

        assert updated.buyside_payment_amount == 2 * SOL
        assert engine.store.bank.balance(pool.buyside_sol_escrow_account) == 2 * SOL

    def test_deposit_requires_owner(self, engine, pool):
        with pytest.raises(InvalidOwner):
            engine.deposit_buy(pool.address, STRANGER, COSIGNER, DepositBuyArgs(payment_amount=1))

    def test_deposit_more_than_owner_holds(self, engine, pool):
        with pytest.raises(NotEnoughBalance):
            deposit_buy(engine, pool, STARTING_BALANCE)

    def test_partial_withdraw(self, engine, pool):
        deposit_buy(engine, pool, 2 * SOL)

        updated = withdraw_buy(engine, pool, SOL)

        assert updated is not None
        assert updated.buyside_payment_amount == SOL

    def test_withdraw_everything_closes_pool(self, engine, pool):
        deposit_buy(engine, pool, 2 * SOL)

        assert withdraw_buy(engine, pool, 2 * SOL) is None
        assert engine.store.find_pool(pool.address) is None
        assert engine.store.bank.balance(OWNER) == STARTING_BALANCE

    def test_withdraw_leaving_dust_reclaims_it(self, engine, pool):
        """10_000 lamports is 1% of spot, so the escrow is dust and is closed."""
        deposit_buy(engine, pool, 1_000_000)

        assert withdraw_buy(engine, pool, 990_000) is None
        assert engine.store.bank.balance(pool.buyside_sol_escrow_account) == 0
        assert engine.store.bank.balance(OWNER) == STARTING_BALANCE

    def test_withdraw_more_than_escrow(self, engine, pool):
        deposit_buy(engine, pool, SOL)
        with pytest.raises(NotEnoughBalance):
            withdraw_buy(engine, pool, SOL + 1)
        assert engine.get_pool(pool.address).buyside_payment_amount == SOL


class TestSellSide:
    """Tests for inventory deposits and withdrawals."""

    def test_deposit_moves_asset_and_creates_sell_state(self, engine, pool):
        engine.store.holdings.mint(OWNER, ASSET, 1)

        sell_state = deposit_sell(engine, pool, ASSET, 1)

        assert sell_state.address == get_sell_state_address(pool.address, ASSET)
        assert sell_state.asset_amount == 1
        assert engine.store.holdings.balance(pool.address, ASSET) == 1
        assert engine.get_pool(pool.address).sellside_asset_amount == 1
        assert engine.store.bank.balance(OWNER) == (
            STARTING_BALANCE - POOL_ACCOUNT_RENT - SELL_STATE_ACCOUNT_RENT
        )

    def test_repeat_deposit_of_sft(self, engine, pool):
        engine.store.holdings.mint(OWNER, SFT, 10)
        deposit_sell(engine, pool, SFT, 4)
        sell_state = deposit_sell(engine, pool, SFT, 3)

        assert sell_state.asset_amount == 7
        assert engine.get_pool(pool.address).sellside_asset_amount == 7

    def test_zero_amount_rejected(self, engine, pool):
        engine.store.holdings.mint(OWNER, ASSET, 1)
        with pytest.raises(InvalidAccountState):
            deposit_sell(engine, pool, ASSET, 0)

    def test_asset_outside_allowlist_rejected(self, engine):
        pool = make_pool(
            engine, allowlists=pad_allowlists([Allowlist(kind=AllowlistKind.MINT, value=ASSET_B)])
        )
        engine.store.holdings.mint(OWNER, ASSET, 1)

        with pytest.raises(InvalidAllowLists):
            deposit_sell(engine, pool, ASSET, 1)
        assert engine.store.holdings.balance(OWNER, ASSET) == 1

    def test_unknown_asset_rejected(self, engine, pool):
        with pytest.raises(InvalidAsset):
            deposit_sell(engine, pool, STRANGER, 1)

    def test_owner_without_units(self, engine, pool):
        with pytest.raises(NotEnoughBalance):
            deposit_sell(engine, pool, ASSET, 1)
        assert engine.store.find_sell_state(pool.address, ASSET) is None

    def test_partial_withdraw(self, engine, pool):
        engine.store.holdings.mint(OWNER, SFT, 5)
        deposit_sell(engine, pool, SFT, 5)

        updated = withdraw_sell(engine, pool, SFT, 2)

        assert updated.sellside_asset_amount == 3
        assert engine.get_sell_state(pool.address, SFT).asset_amount == 3
        assert engine.store.holdings.balance(OWNER, SFT) == 2

    def test_withdraw_last_unit_closes_sell_state_and_pool(self, engine, pool):
        engine.store.holdings.mint(OWNER, ASSET, 1)
        deposit_sell(engine, pool, ASSET, 1)

        assert withdraw_sell(engine, pool, ASSET, 1) is None
        assert engine.store.find_sell_state(pool.address, ASSET) is None
        assert engine.store.find_pool(pool.address) is None
        assert engine.store.holdings.balance(OWNER, ASSET) == 1
        assert engine.store.bank.balance(OWNER) == STARTING_BALANCE

    def test_withdraw_last_unit_keeps_pool_with_buy_side(self, engine, pool):
        engine.store.holdings.mint(OWNER, ASSET, 1)
        deposit_sell(engine, pool, ASSET, 1)
        deposit_buy(engine, pool, SOL)

        updated = withdraw_sell(engine, pool, ASSET, 1)

        assert updated is not None
        assert updated.sellside_asset_amount == 0

    def test_withdraw_more_than_held(self, engine, pool):
        engine.store.holdings.mint(OWNER, SFT, 2)
        deposit_sell(engine, pool, SFT, 2)
        with pytest.raises(NumericOverflow):
            withdraw_sell(engine, pool, SFT, 3)
        assert engine.get_sell_state(pool.address, SFT).asset_amount == 2

    def test_withdraw_unknown_sell_state(self, engine, pool):
        with pytest.raises(SellStateNotFound):
            withdraw_sell(engine, pool, ASSET, 1)
