"""Tests for building an engine from a seed file."""

import json

import pytest
from pydantic import ValidationError

from nftamm.errors import InvalidAsset
from nftamm.seed import SEED_FILE_ENV, EngineSeed, build_engine, engine_from_env, load_seed
from tests.helpers import ASSET, ASSET_B, OWNER, SELLER, SFT, STARTING_BALANCE


def write_seed(tmp_path, **contents):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(contents))
    return path


class TestLoadSeed:
    def test_full_seed(self, tmp_path):
        path = write_seed(
            tmp_path,
            balances={OWNER: STARTING_BALANCE},
            assets=[{"asset_id": ASSET}, {"asset_id": SFT, "supply": 100, "royalty_bp": 500}],
            holdings=[{"holder": SELLER, "asset_id": SFT, "amount": 3}],
        )

        seed = load_seed(path)

        assert seed.balances == {OWNER: STARTING_BALANCE}
        assert [asset.asset_id for asset in seed.assets] == [ASSET, SFT]
        assert seed.assets[1].royalty_bp == 500
        assert seed.holdings[0].amount == 3

    def test_holding_of_unknown_asset_rejected(self, tmp_path):
        path = write_seed(tmp_path, holdings=[{"holder": SELLER, "asset_id": ASSET_B}])
        with pytest.raises(ValidationError, match="unknown asset"):
            load_seed(path)

    @pytest.mark.parametrize(
        "contents",
        [
            {"balances": {OWNER: -1}},
            {"balances": {"not-a-key": 1}},
            {"holdings": [{"holder": SELLER, "asset_id": ASSET, "amount": 0}]},
            {"accounts": {}},
        ],
    )
    def test_malformed_seed_rejected(self, tmp_path, contents):
        with pytest.raises(ValidationError):
            load_seed(write_seed(tmp_path, **contents))


class TestBuildEngine:
    def test_state_matches_seed(self):
        seed = EngineSeed(
            balances={OWNER: STARTING_BALANCE},
            assets=[{"asset_id": ASSET}],
            holdings=[{"holder": SELLER, "asset_id": ASSET}],
        )

        engine = build_engine(seed)

        assert engine.store.bank.balance(OWNER) == STARTING_BALANCE
        assert engine.store.holdings.balance(SELLER, ASSET) == 1
        assert engine.metadata.resolve(ASSET).asset_id == ASSET

    def test_without_seed_file_engine_is_empty(self, monkeypatch):
        monkeypatch.delenv(SEED_FILE_ENV, raising=False)

        engine = engine_from_env()

        assert engine.store.bank.total() == 0
        with pytest.raises(InvalidAsset):
            engine.metadata.resolve(ASSET)

    def test_seed_file_from_environment(self, tmp_path, monkeypatch):
        path = write_seed(tmp_path, balances={SELLER: 5})
        monkeypatch.setenv(SEED_FILE_ENV, str(path))

        assert engine_from_env().store.bank.balance(SELLER) == 5
