"""Allow-list records.

A pool carries exactly six slots. Each slot is a rule (kind + value);
an asset qualifies when it satisfies any populated rule. Slot 0 may instead
point at a shared DynamicAllowlist record.
"""

from enum import IntEnum

from pydantic import BaseModel, Field

from nftamm.constants import ALLOWLIST_MAX_LEN
from nftamm.keys import DEFAULT_KEY
from nftamm.models.types import ZERO_HASH, Hash32, Pubkey


class AllowlistKind(IntEnum):
    """Rule kinds for an allow-list slot."""

    EMPTY = 0
    FVCA = 1  # first verified creator address
    MINT = 2  # exact mint, useful for SFTs
    MCC = 3  # verified metaplex certified collection
    METADATA = 4  # metadata URI prefix, a filter rather than a match
    GROUP = 5  # token-2022 group membership
    ANY_VERIFIED_CREATOR = 6
    MPL_CORE_COLLECTION = 7
    ANY = 8
    DYNAMIC = 9  # pointer to a DynamicAllowlist record


class Allowlist(BaseModel):
    """One allow-list slot.

    kind is kept as a raw byte so unknown kinds reach check_allowlists and
    are rejected there with InvalidAllowLists.
    """

    kind: int = Field(default=AllowlistKind.EMPTY, ge=0, le=255)
    value: Pubkey = DEFAULT_KEY

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return self.kind == AllowlistKind.EMPTY

    @classmethod
    def empty(cls) -> "Allowlist":
        return cls()


def empty_allowlists() -> list[Allowlist]:
    """Six empty slots."""
    return [Allowlist.empty() for _ in range(ALLOWLIST_MAX_LEN)]


def dynamic_allowlist_pointer(dynamic_allowlist: str) -> list[Allowlist]:
    """Slot 0 points at the dynamic record, the rest are empty."""
    return [Allowlist(kind=AllowlistKind.DYNAMIC, value=dynamic_allowlist)] + [
        Allowlist.empty() for _ in range(ALLOWLIST_MAX_LEN - 1)
    ]


def pad_allowlists(allowlists: list[Allowlist]) -> list[Allowlist]:
    """Fill a short rule list with empty slots up to six entries."""
    return list(allowlists) + [
        Allowlist.empty() for _ in range(ALLOWLIST_MAX_LEN - len(allowlists))
    ]


class DynamicAllowlist(BaseModel):
    """Allow-list rules shared by many pools, updatable by one authority."""

    address: Pubkey
    authority: Pubkey
    cosigner_annotation: Hash32 = ZERO_HASH
    allowlists: list[Allowlist] = Field(default_factory=empty_allowlists)
