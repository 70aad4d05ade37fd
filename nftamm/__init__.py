"""Collectible AMM pool engine.

Pools quote two-sided bonding-curve prices for NFTs and SFTs, settle fees
and creator royalties, and manage their payment escrow and inventory
records through a single generic pipeline shared by every asset kind.
"""

__version__ = "0.1.0"
