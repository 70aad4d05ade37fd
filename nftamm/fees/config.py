"""Fee configuration for the pool engine."""

from dataclasses import dataclass

from nftamm.constants import (
    BP_DENOMINATOR,
    MAX_METADATA_CREATOR_ROYALTY_BP,
    MAX_REFERRAL_FEE_BP,
    RENT_EXEMPT_MINIMUM,
)


@dataclass(frozen=True)
class FeeConfig:
    """Centralized configuration for fee and royalty calculation.

    Attributes:
        bp_denominator: Basis point base (10_000 = 100%)
        max_referral_fee_bp: Cap on maker and taker fee bp and on their sum
        max_metadata_creator_royalty_bp: Highest royalty bp an asset may
            declare before a fill paying royalties is rejected
        rent_exempt_minimum: Balance a creator account must exceed after
            receiving its share, otherwise the share is skipped
    """

    bp_denominator: int = BP_DENOMINATOR
    max_referral_fee_bp: int = MAX_REFERRAL_FEE_BP
    max_metadata_creator_royalty_bp: int = MAX_METADATA_CREATOR_ROYALTY_BP
    rent_exempt_minimum: int = RENT_EXEMPT_MINIMUM


# Default configuration instance
DEFAULT_FEE_CONFIG = FeeConfig()
