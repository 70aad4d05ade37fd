"""Shared type definitions for engine records.

Integer widths mirror the on-chain layout so a value that validates here
fits the field it models.
"""

from typing import Annotated

from pydantic import BeforeValidator, Field

from nftamm.keys import DEFAULT_KEY, validate_key
from nftamm.safe_int import I16_MAX, I16_MIN, I64_MAX, I64_MIN, U16_MAX, U64_MAX

# 32-byte key as 0x-prefixed hex (validated, normalized)
Pubkey = Annotated[str, BeforeValidator(validate_key)]

# Fixed-width integers
U16 = Annotated[int, Field(ge=0, le=U16_MAX)]
U64 = Annotated[int, Field(ge=0, le=U64_MAX)]
I16 = Annotated[int, Field(ge=I16_MIN, le=I16_MAX)]
I64 = Annotated[int, Field(ge=I64_MIN, le=I64_MAX)]

# 32 opaque bytes as hex, used for cosigner annotations and content hashes
Hash32 = Annotated[str, Field(pattern=r"^0x[a-f0-9]{64}$")]

ZERO_HASH = DEFAULT_KEY
