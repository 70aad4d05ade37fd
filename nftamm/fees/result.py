"""Fee split result types."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PoolPriceInfo:
    """Price and fee split of one fill, before royalties are paid.

    Attributes:
        total_price: Curve consideration for the filled units
        next_price: Spot price once the fill commits
        fee_base: Amount the maker/taker/lp fees were computed on. For a
            fulfill buy this is what the seller receives before fees, for a
            fulfill sell it is total_price.
        lp_fee: Pool owner's cut
        maker_fee: Signed maker fee (negative is a rebate)
        taker_fee: Taker fee
        referral_fee: maker_fee + taker_fee, validated unsigned
        royalty_bp: Royalty bp declared on the asset (0 without creators)
    """

    total_price: int
    next_price: int
    fee_base: int
    lp_fee: int
    maker_fee: int
    taker_fee: int
    referral_fee: int
    royalty_bp: int = 0

    @property
    def escrow_outflow(self) -> int:
        """Lamports a fulfill buy draws from the payment escrow.

        payment + lp + referral + royalty collapses to total + maker, which
        is also what a delegated pool withdraws from its delegate.
        """
        return self.total_price + self.maker_fee


@dataclass(frozen=True)
class RoyaltyPayout:
    """Outcome of a royalty payout.

    Attributes:
        royalty: Royalty owed across all creators
        paid: Lamports actually transferred (skipped creators excluded)
        payments: (creator, amount) for every transfer made
        skipped: Creators whose share was withheld to keep them under rent
    """

    royalty: int
    paid: int
    payments: tuple[tuple[str, int], ...] = field(default_factory=tuple)
    skipped: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def none(cls) -> "RoyaltyPayout":
        """Nothing owed."""
        return cls(royalty=0, paid=0)
