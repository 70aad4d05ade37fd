"""Engine state: keyed store, balances, holdings and sell-state ledger."""

from nftamm.ledger.bank import LamportBank
from nftamm.ledger.holdings import HoldingsBook
from nftamm.ledger.sell_state import SellStateLedger
from nftamm.ledger.store import PoolStore

__all__ = ["HoldingsBook", "LamportBank", "PoolStore", "SellStateLedger"]
