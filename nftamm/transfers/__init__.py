"""Asset-kind transfer strategies."""

from nftamm.transfers.registry import TransferRegistry, build_default_registry
from nftamm.transfers.strategies import (
    CnftTransfer,
    ExtTransfer,
    HoldingsTransfer,
    Mip1Transfer,
    MplCoreTransfer,
    OcpTransfer,
    VanillaTransfer,
)

__all__ = [
    "TransferRegistry",
    "build_default_registry",
    "HoldingsTransfer",
    "VanillaTransfer",
    "ExtTransfer",
    "Mip1Transfer",
    "OcpTransfer",
    "CnftTransfer",
    "MplCoreTransfer",
]
