"""Tests for creator royalty payout."""

import pytest

from nftamm.errors import InvalidCreatorAddress, InvalidMetadataCreatorRoyalty, NotEnoughBalance
from nftamm.fees import get_royalty, pay_creator_fees, verify_creators
from nftamm.ledger import LamportBank
from nftamm.models import Creator, hash_creators
from tests.helpers import CREATOR_A, CREATOR_B, SELLER, SOL, make_asset

PAYER = SELLER


@pytest.fixture
def split_70_30() -> list[Creator]:
    return [
        Creator(address=CREATOR_A, share=70, verified=True),
        Creator(address=CREATOR_B, share=30),
    ]


def pay(bank, creators, amount=1_000_000, royalty_bp=1_000, buyside_bp=10_000):
    """Pay royalties from PAYER, supplying the declared creators and their hash."""
    asset = make_asset(royalty_bp=royalty_bp, creators=creators)
    return pay_creator_fees(
        bank, PAYER, amount, asset, buyside_bp, creators, hash_creators(creators)
    )


class TestGetRoyalty:
    """Tests for the royalty formula."""

    def test_full_buyside_share(self):
        assert get_royalty(1_000_000, 1_000, 10_000) == 100_000

    def test_half_buyside_share(self):
        assert get_royalty(1_000_000, 1_000, 5_000) == 50_000

    def test_rounds_down_each_step(self):
        # 999 * 1000 // 10000 = 99, then 99 * 5000 // 10000 = 49
        assert get_royalty(999, 1_000, 5_000) == 49


class TestPayCreatorFees:
    """Tests for payout and skip rules."""

    def test_split_by_share(self, split_70_30):
        bank = LamportBank({PAYER: SOL, CREATOR_A: SOL, CREATOR_B: SOL})

        payout = pay(bank, split_70_30)

        assert payout.royalty == 100_000
        assert payout.paid == 100_000
        assert payout.payments == ((CREATOR_A, 70_000), (CREATOR_B, 30_000))
        assert bank.balance(CREATOR_A) == SOL + 70_000
        assert bank.balance(CREATOR_B) == SOL + 30_000
        assert bank.balance(PAYER) == SOL - 100_000

    def test_last_creator_receives_remainder(self):
        creators = [
            Creator(address=CREATOR_A, share=33),
            Creator(address=CREATOR_B, share=67),
        ]
        bank = LamportBank({PAYER: SOL, CREATOR_A: SOL, CREATOR_B: SOL})

        payout = pay(bank, creators, amount=1_000_010)

        # royalty 100_001; A gets floor(33%), B the rest
        assert payout.payments == ((CREATOR_A, 33_000), (CREATOR_B, 67_001))

    def test_creator_under_rent_is_skipped(self, split_70_30):
        """A skipped creator's share is not counted as paid, so the last creator
        receives it."""
        bank = LamportBank({PAYER: SOL, CREATOR_B: SOL})

        payout = pay(bank, split_70_30)

        assert payout.skipped == (CREATOR_A,)
        assert payout.payments == ((CREATOR_B, 100_000),)
        assert payout.paid == 100_000
        assert bank.balance(CREATOR_A) == 0

    def test_every_creator_skipped_leaves_funds_with_payer(self, split_70_30):
        bank = LamportBank({PAYER: SOL})

        payout = pay(bank, split_70_30)

        assert payout.royalty == 100_000
        assert payout.paid == 0
        assert payout.skipped == (CREATOR_A, CREATOR_B)
        assert bank.balance(PAYER) == SOL

    def test_no_creators_pays_nothing(self):
        bank = LamportBank({PAYER: SOL})
        payout = pay_creator_fees(
            bank, PAYER, 1_000_000, make_asset(royalty_bp=1_000), 10_000, [], None
        )
        assert payout.paid == 0
        assert payout.royalty == 0

    def test_zero_buyside_share_needs_no_hash(self, split_70_30):
        bank = LamportBank({PAYER: SOL})
        asset = make_asset(royalty_bp=1_000, creators=split_70_30)
        payout = pay_creator_fees(bank, PAYER, 1_000_000, asset, 0, [], None)
        assert payout.paid == 0

    def test_payer_short_of_royalty(self, split_70_30):
        bank = LamportBank({PAYER: 99_999, CREATOR_A: SOL, CREATOR_B: SOL})
        with pytest.raises(NotEnoughBalance):
            pay(bank, split_70_30)

    def test_royalty_above_cap_rejected(self, split_70_30):
        bank = LamportBank({PAYER: SOL})
        with pytest.raises(InvalidMetadataCreatorRoyalty):
            pay(bank, split_70_30, royalty_bp=3_001)


class TestVerifyCreators:
    """Tests for creator set verification."""

    def test_matching_set(self, split_70_30):
        asset = make_asset(creators=split_70_30)
        assert verify_creators(asset, split_70_30, hash_creators(split_70_30)) == split_70_30

    def test_missing_hash(self, split_70_30):
        asset = make_asset(creators=split_70_30)
        with pytest.raises(InvalidCreatorAddress):
            verify_creators(asset, split_70_30, None)

    def test_hash_of_other_set(self, split_70_30):
        asset = make_asset(creators=split_70_30)
        with pytest.raises(InvalidCreatorAddress):
            verify_creators(asset, split_70_30, hash_creators(split_70_30[:1]))

    def test_supplied_creators_differ(self, split_70_30):
        """A consistent hash over the wrong creators is still rejected."""
        asset = make_asset(creators=split_70_30)
        forged = [split_70_30[0], Creator(address=SELLER, share=30)]
        with pytest.raises(InvalidCreatorAddress):
            verify_creators(asset, forged, hash_creators(forged))

    def test_too_few_creators(self, split_70_30):
        asset = make_asset(creators=split_70_30)
        supplied = split_70_30[:1]
        with pytest.raises(InvalidCreatorAddress):
            verify_creators(asset, supplied, hash_creators(supplied))

    def test_hash_depends_on_share(self, split_70_30):
        reshared = [split_70_30[0].model_copy(update={"share": 69}), split_70_30[1]]
        assert hash_creators(reshared) != hash_creators(split_70_30)
