"""Creator royalty computation and payout.

royalty = amount * royalty_bp / 10000 * buyside_creator_royalty_bp / 10000

Each declared creator gets royalty * share / 100, the last one the
remainder. A creator whose balance would still sit at or under the rent
minimum after receiving its share is skipped, and the skipped lamports stay
with the payer.
"""

from __future__ import annotations

import structlog

from nftamm.errors import InvalidCreatorAddress, InvalidMetadataCreatorRoyalty, NotEnoughBalance
from nftamm.fees.config import DEFAULT_FEE_CONFIG, FeeConfig
from nftamm.fees.result import RoyaltyPayout
from nftamm.ledger.bank import LamportBank
from nftamm.models.asset import AssetDescriptor, Creator, hash_creators
from nftamm.safe_int import S

logger = structlog.get_logger()


def get_royalty(
    amount: int,
    metadata_royalty_bp: int,
    buyside_creator_royalty_bp: int,
    denominator: int = 10_000,
) -> int:
    return (
        S(amount) * metadata_royalty_bp // denominator * buyside_creator_royalty_bp // denominator
    ).to_u64()


def verify_creators(
    asset: AssetDescriptor,
    supplied: list[Creator],
    creator_hash: str | None,
) -> list[Creator]:
    """Check the caller's creator set against the one committed on the asset.

    Args:
        asset: Resolved asset descriptor
        supplied: Creators the caller routes royalties to, in declared order
        creator_hash: Hash the caller commits to ``supplied``

    Returns:
        The declared creators

    Raises:
        InvalidCreatorAddress: If the hash is missing or wrong, or the
            supplied creators differ from the declared ones
    """
    declared = asset.creators or []
    if creator_hash is None:
        raise InvalidCreatorAddress("creator_hash is required to pay royalties")
    if hash_creators(supplied) != creator_hash:
        raise InvalidCreatorAddress("creator_hash does not match the supplied creators")
    if len(supplied) < len(declared):
        raise InvalidCreatorAddress(f"expected {len(declared)} creators, got {len(supplied)}")
    for index, creator in enumerate(declared):
        if supplied[index] != creator:
            raise InvalidCreatorAddress(f"creator {index} is {supplied[index].address}")
    return declared


def pay_creator_fees(
    bank: LamportBank,
    payer: str,
    amount: int,
    asset: AssetDescriptor,
    buyside_creator_royalty_bp: int,
    supplied_creators: list[Creator],
    creator_hash: str | None,
    config: FeeConfig | None = None,
) -> RoyaltyPayout:
    """Pay royalties on ``amount`` from ``payer`` to the asset's creators.

    Returns:
        RoyaltyPayout; ``paid`` is what left the payer

    Raises:
        NotEnoughBalance: If the payer cannot cover the royalty
        InvalidMetadataCreatorRoyalty: If the asset declares more royalty
            bp than the cap
        InvalidCreatorAddress: If the creator set fails verification
    """
    config = config or DEFAULT_FEE_CONFIG
    royalty = get_royalty(
        amount, asset.royalty_bp, buyside_creator_royalty_bp, config.bp_denominator
    )
    if royalty == 0 or not asset.creators:
        return RoyaltyPayout.none()

    if bank.balance(payer) < royalty:
        raise NotEnoughBalance(f"royalty payer holds {bank.balance(payer)}, needs {royalty}")
    if asset.royalty_bp > config.max_metadata_creator_royalty_bp:
        raise InvalidMetadataCreatorRoyalty(
            f"royalty_bp={asset.royalty_bp} exceeds {config.max_metadata_creator_royalty_bp}"
        )

    creators = verify_creators(asset, supplied_creators, creator_hash)

    paid = S(0)
    payments: list[tuple[str, int]] = []
    skipped: list[str] = []
    for index, creator in enumerate(creators):
        if index == len(creators) - 1:
            creator_fee = (S(royalty) - paid).to_u64()
        else:
            creator_fee = (S(royalty) * creator.share // 100).to_u64()

        if creator_fee == 0:
            continue
        if S(bank.balance(creator.address)) + creator_fee <= config.rent_exempt_minimum:
            skipped.append(creator.address)
            continue

        bank.transfer(payer, creator.address, creator_fee)
        payments.append((creator.address, creator_fee))
        paid = paid + creator_fee

    if skipped:
        logger.info("royalty_creators_skipped", creators=skipped, royalty=royalty)

    return RoyaltyPayout(
        royalty=royalty,
        paid=paid.to_u64(),
        payments=tuple(payments),
        skipped=tuple(skipped),
    )
