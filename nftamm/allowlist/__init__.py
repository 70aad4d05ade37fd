"""Allow-list validation and matching."""

from nftamm.allowlist.validator import (
    DynamicAllowlistLookup,
    check_allowlists,
    check_allowlists_for_asset,
    resolve_allowlists,
)

__all__ = [
    "DynamicAllowlistLookup",
    "check_allowlists",
    "check_allowlists_for_asset",
    "resolve_allowlists",
]
