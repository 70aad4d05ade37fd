"""Protocol constants for the pool engine.

Centralizes account seed prefixes, fee caps and well-known keys.
"""

from nftamm.keys import DEFAULT_KEY, derive_address

# Account seed prefixes
POOL_PREFIX = "mmm_pool"
BUYSIDE_SOL_ESCROW_ACCOUNT_PREFIX = "mmm_buyside_sol_escrow_account"
SELL_STATE_PREFIX = "mmm_sell_state"
DYNAMIC_ALLOWLIST_PREFIX = "mmm_dynamic_allowlist"

# Basis points denominator (100% = 10_000 bp)
BP_DENOMINATOR = 10_000

MAX_METADATA_CREATOR_ROYALTY_BP = 3_000
MAX_REFERRAL_FEE_BP = 500
MAX_LP_FEE_BP = 2_000
MAX_BUYSIDE_CREATOR_ROYALTY_BP = 10_000
MAX_EXP_CURVE_DELTA_BP = 10_000

ALLOWLIST_MAX_LEN = 6

LAMPORTS_PER_SOL = 1_000_000_000

# Upper bound on the consideration of a single fill
MAX_TOTAL_PRICE = 8_000_000 * LAMPORTS_PER_SOL

# Escrow balances under 1% of spot price cannot fund a fill and are reclaimed
MIN_SOL_ESCROW_BALANCE_BP = 100

# Minimum balance that keeps a zero-data account alive
RENT_EXEMPT_MINIMUM = 890_880

# Rent held by a Pool / SellState record while it exists
POOL_ACCOUNT_RENT = 5_066_880
SELL_STATE_ACCOUNT_RENT = 1_795_680

# Payment must be the native currency
NATIVE_PAYMENT_MINT = DEFAULT_KEY

# Delegate escrow (auction-house) program and the auction house instance
M2_PREFIX = "m2"
M2_PROGRAM = derive_address("program", "m2")
M2_AUCTION_HOUSE = derive_address("auction_house", "m2")

# Payment proxy program allowed to stand in for a pool's referral
PAYMENT_PROXY_PROGRAM = derive_address("program", "payment_proxy")

# Authority that migrates pools onto dynamic allow-lists and sweeps unusable pools
CANCEL_AUTHORITY = derive_address("authority", "cancel")
