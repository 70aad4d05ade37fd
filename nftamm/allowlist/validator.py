"""Allow-list validation and asset matching.

Write time: check_allowlists rejects malformed slot layouts before a pool or
dynamic record stores them.

Fill time: check_allowlists_for_asset matches an asset against the pool's
rules. Matching is an OR over populated slots. METADATA is a filter: when
the caller supplies an expected URI prefix the asset's URI must start with
it, but a METADATA slot never matches on its own.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import structlog

from nftamm.constants import ALLOWLIST_MAX_LEN
from nftamm.errors import InvalidAllowLists, UnexpectedMetadataUri
from nftamm.models.allowlist import Allowlist, AllowlistKind, DynamicAllowlist
from nftamm.models.asset import AssetDescriptor
from nftamm.models.pool import Pool

logger = structlog.get_logger()

DynamicAllowlistLookup = Callable[[str], DynamicAllowlist | None]

_KNOWN_KINDS = frozenset(int(kind) for kind in AllowlistKind)

# Kinds that may appear at most once in a slot list
_SINGLETON_KINDS = (AllowlistKind.GROUP, AllowlistKind.METADATA)


def check_allowlists(allowlists: Sequence[Allowlist]) -> None:
    """Validate a slot list before it is stored.

    Rules:
        - exactly ALLOWLIST_MAX_LEN slots
        - every kind is known
        - at most one GROUP slot and at most one METADATA slot
        - DYNAMIC only in slot 0, with every other slot empty
        - ANY only alone

    Raises:
        InvalidAllowLists: If any rule is violated
    """
    if len(allowlists) != ALLOWLIST_MAX_LEN:
        raise InvalidAllowLists(f"expected {ALLOWLIST_MAX_LEN} slots, got {len(allowlists)}")

    for index, allowlist in enumerate(allowlists):
        if allowlist.kind not in _KNOWN_KINDS:
            raise InvalidAllowLists(f"slot {index} has unknown kind {allowlist.kind}")

    kinds = [allowlist.kind for allowlist in allowlists]
    for kind in _SINGLETON_KINDS:
        if kinds.count(kind) > 1:
            raise InvalidAllowLists(f"at most one {kind.name} slot allowed")

    populated = [allowlist for allowlist in allowlists if not allowlist.is_empty]

    if AllowlistKind.DYNAMIC in kinds:
        if kinds[0] != AllowlistKind.DYNAMIC or len(populated) != 1:
            raise InvalidAllowLists("DYNAMIC must be the only slot and sit in slot 0")

    if AllowlistKind.ANY in kinds and len(populated) != 1:
        raise InvalidAllowLists("ANY cannot be combined with other rules")


def resolve_allowlists(pool: Pool, lookup: DynamicAllowlistLookup) -> list[Allowlist]:
    """The rules a pool's fills are matched against.

    Follows a DYNAMIC pointer in slot 0 to the shared record.

    Raises:
        InvalidAllowLists: If the pointed-to record does not exist
    """
    pointer = pool.dynamic_allowlist_pointer
    if pointer is None:
        return list(pool.allowlists)

    dynamic = lookup(pointer)
    if dynamic is None:
        raise InvalidAllowLists(f"dynamic allowlist {pointer} not found")
    return list(dynamic.allowlists)


def _matches(allowlist: Allowlist, asset: AssetDescriptor) -> bool:
    kind, value = allowlist.kind, allowlist.value

    if kind == AllowlistKind.FVCA:
        first = asset.first_creator
        return first is not None and first.address == value and first.verified
    if kind == AllowlistKind.MINT:
        return asset.asset_id == value
    if kind == AllowlistKind.MCC:
        collection = asset.collection
        return collection is not None and collection.key == value and collection.verified
    if kind == AllowlistKind.GROUP:
        return asset.group == value
    if kind == AllowlistKind.ANY_VERIFIED_CREATOR:
        return any(creator.address == value for creator in asset.verified_creators)
    if kind == AllowlistKind.MPL_CORE_COLLECTION:
        return asset.core_collection == value

    # DYNAMIC must be resolved before matching
    raise InvalidAllowLists(f"cannot match kind {kind}")


def check_allowlists_for_asset(
    allowlists: Sequence[Allowlist],
    asset: AssetDescriptor,
    allowlist_aux: str | None = None,
) -> None:
    """Require the asset to satisfy at least one populated rule.

    Args:
        allowlists: Resolved rules (no DYNAMIC pointer)
        asset: Candidate asset
        allowlist_aux: Expected metadata URI prefix; skipped when None

    Raises:
        UnexpectedMetadataUri: If a METADATA slot exists and the URI does
            not start with allowlist_aux
        InvalidAllowLists: If no rule matches
    """
    has_metadata_rule = any(a.kind == AllowlistKind.METADATA for a in allowlists)
    if has_metadata_rule and allowlist_aux is not None:
        if not asset.uri.strip().startswith(allowlist_aux):
            logger.info(
                "metadata_uri_rejected",
                asset=asset.asset_id,
                expected_prefix=allowlist_aux,
                uri=asset.uri,
            )
            raise UnexpectedMetadataUri(f"uri {asset.uri!r} does not start with {allowlist_aux!r}")

    for allowlist in allowlists:
        if allowlist.kind == AllowlistKind.EMPTY:
            continue
        if allowlist.kind == AllowlistKind.ANY:
            return
        if allowlist.kind == AllowlistKind.METADATA:
            continue
        if _matches(allowlist, asset):
            return

    raise InvalidAllowLists(f"asset {asset.asset_id} matches no allowlist rule")
