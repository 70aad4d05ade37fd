"""API endpoints for the pool engine.

Each instruction is one POST/PUT taking the signers and the instruction's
argument record. Engine errors surface as 4xx responses (see main.py).
"""

from dataclasses import asdict
from typing import Annotated, Literal

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from nftamm.engine import PoolEngine
from nftamm.models import (
    CreateDynamicAllowlistArgs,
    CreatePoolArgs,
    DepositBuyArgs,
    DepositSellArgs,
    DynamicAllowlist,
    FulfillBuyArgs,
    FulfillSellArgs,
    MigratePoolArgs,
    Pool,
    SellState,
    SetSharedEscrowArgs,
    UpdateAllowlistsArgs,
    UpdateDynamicAllowlistArgs,
    UpdatePoolArgs,
    WithdrawBuyArgs,
    WithdrawSellArgs,
)
from nftamm.models.args import InstructionArgs
from nftamm.models.types import Pubkey
from nftamm.seed import engine_from_env

logger = structlog.get_logger()

router = APIRouter()

# Largest fill a quote prices; exponential curves price one unit at a time
MAX_QUOTE_ASSET_AMOUNT = 10_000

_default_engine: PoolEngine | None = None


def get_engine() -> PoolEngine:
    """Dependency provider for the engine instance.

    The server's engine is built on first use from NFTAMM_SEED_FILE (see
    nftamm.seed). Override this in tests to inject a prepared engine:
        app.dependency_overrides[get_engine] = lambda: engine
    """
    global _default_engine
    if _default_engine is None:
        _default_engine = engine_from_env()
    return _default_engine


def reset_engine() -> None:
    """Drop the server's engine so the next request rebuilds it."""
    global _default_engine
    _default_engine = None


# --- Request bodies ---


class OwnerSigned(InstructionArgs):
    owner: Pubkey
    cosigner: Pubkey


class CreatePoolRequest(OwnerSigned):
    args: CreatePoolArgs


class UpdatePoolRequest(OwnerSigned):
    args: UpdatePoolArgs


class UpdateAllowlistsRequest(InstructionArgs):
    cosigner: Pubkey
    args: UpdateAllowlistsArgs


class SetSharedEscrowRequest(OwnerSigned):
    args: SetSharedEscrowArgs


class DepositBuyRequest(OwnerSigned):
    args: DepositBuyArgs


class WithdrawBuyRequest(OwnerSigned):
    args: WithdrawBuyArgs


class DepositSellRequest(OwnerSigned):
    asset_id: Pubkey
    args: DepositSellArgs


class WithdrawSellRequest(OwnerSigned):
    asset_id: Pubkey
    args: WithdrawSellArgs


class FulfillBuyRequest(InstructionArgs):
    seller: Pubkey
    asset_id: Pubkey
    cosigner: Pubkey
    referral: Pubkey
    args: FulfillBuyArgs


class FulfillSellRequest(InstructionArgs):
    buyer: Pubkey
    asset_id: Pubkey
    cosigner: Pubkey
    referral: Pubkey
    args: FulfillSellArgs


class AuthoritySigned(InstructionArgs):
    authority: Pubkey


class CreateDynamicAllowlistRequest(AuthoritySigned):
    args: CreateDynamicAllowlistArgs


class UpdateDynamicAllowlistRequest(AuthoritySigned):
    args: UpdateDynamicAllowlistArgs


class MigratePoolRequest(AuthoritySigned):
    args: MigratePoolArgs


class PoolResult(BaseModel):
    """Outcome of an instruction that may close the pool."""

    closed: bool
    pool: Pool | None = None


class QuoteResult(BaseModel):
    total_price: int
    next_price: int


class AccountBalance(BaseModel):
    address: str
    lamports: int


# --- Reads ---


@router.get("/pools/{address}")
def read_pool(address: str, engine: PoolEngine = Depends(get_engine)) -> Pool:
    return engine.get_pool(address)


@router.get("/pools/{address}/sell-states/{asset_id}")
def read_sell_state(
    address: str, asset_id: str, engine: PoolEngine = Depends(get_engine)
) -> SellState:
    return engine.get_sell_state(address, asset_id)


@router.get("/pools/{address}/quote")
def quote(
    address: str,
    asset_amount: Annotated[int, Query(ge=1, le=MAX_QUOTE_ASSET_AMOUNT)],
    side: Literal["buy", "sell"],
    engine: PoolEngine = Depends(get_engine),
) -> QuoteResult:
    """Curve price of a fill; side "buy" prices a fulfill buy (pool buys)."""
    total_price, next_price = engine.quote(address, asset_amount, side == "buy")
    return QuoteResult(total_price=total_price, next_price=next_price)


@router.get("/accounts/{address}")
def read_balance(address: str, engine: PoolEngine = Depends(get_engine)) -> AccountBalance:
    return AccountBalance(address=address, lamports=engine.store.bank.balance(address))


# --- Pool administration ---


@router.post("/pools")
def create_pool(request: CreatePoolRequest, engine: PoolEngine = Depends(get_engine)) -> Pool:
    pool = engine.create_pool(request.owner, request.cosigner, request.args)
    logger.info("pool_created", pool=pool.address, owner=pool.owner)
    return pool


@router.put("/pools/{address}")
def update_pool(
    address: str, request: UpdatePoolRequest, engine: PoolEngine = Depends(get_engine)
) -> Pool:
    return engine.update_pool(address, request.owner, request.cosigner, request.args)


@router.put("/pools/{address}/allowlists")
def update_allowlists(
    address: str, request: UpdateAllowlistsRequest, engine: PoolEngine = Depends(get_engine)
) -> Pool:
    return engine.update_allowlists(address, request.cosigner, request.args)


@router.put("/pools/{address}/shared-escrow")
def set_shared_escrow(
    address: str, request: SetSharedEscrowRequest, engine: PoolEngine = Depends(get_engine)
) -> Pool:
    return engine.set_shared_escrow(address, request.owner, request.cosigner, request.args)


@router.post("/pools/{address}/close")
def close_pool(
    address: str, request: OwnerSigned, engine: PoolEngine = Depends(get_engine)
) -> dict[str, int]:
    refunded = engine.close_pool(address, request.owner, request.cosigner)
    return {"rent_refunded": refunded}


@router.post("/pools/{address}/close-if-balance-invalid")
def close_if_balance_invalid(
    address: str, request: AuthoritySigned, engine: PoolEngine = Depends(get_engine)
) -> PoolResult:
    closed = engine.close_if_balance_invalid(address, request.authority)
    return PoolResult(closed=closed, pool=None if closed else engine.get_pool(address))


# --- Liquidity ---


@router.post("/pools/{address}/deposit-buy")
def deposit_buy(
    address: str, request: DepositBuyRequest, engine: PoolEngine = Depends(get_engine)
) -> Pool:
    return engine.deposit_buy(address, request.owner, request.cosigner, request.args)


@router.post("/pools/{address}/withdraw-buy")
def withdraw_buy(
    address: str, request: WithdrawBuyRequest, engine: PoolEngine = Depends(get_engine)
) -> PoolResult:
    pool = engine.withdraw_buy(address, request.owner, request.cosigner, request.args)
    return PoolResult(closed=pool is None, pool=pool)


@router.post("/pools/{address}/deposit-sell")
def deposit_sell(
    address: str, request: DepositSellRequest, engine: PoolEngine = Depends(get_engine)
) -> SellState:
    return engine.deposit_sell(
        address, request.owner, request.cosigner, request.asset_id, request.args
    )


@router.post("/pools/{address}/withdraw-sell")
def withdraw_sell(
    address: str, request: WithdrawSellRequest, engine: PoolEngine = Depends(get_engine)
) -> PoolResult:
    pool = engine.withdraw_sell(
        address, request.owner, request.cosigner, request.asset_id, request.args
    )
    return PoolResult(closed=pool is None, pool=pool)


# --- Fills ---


@router.post("/pools/{address}/fulfill-buy")
def fulfill_buy(
    address: str, request: FulfillBuyRequest, engine: PoolEngine = Depends(get_engine)
) -> dict[str, object]:
    receipt = engine.fulfill_buy(
        address,
        request.seller,
        request.asset_id,
        request.args,
        cosigner=request.cosigner,
        referral=request.referral,
    )
    return asdict(receipt)


@router.post("/pools/{address}/fulfill-sell")
def fulfill_sell(
    address: str, request: FulfillSellRequest, engine: PoolEngine = Depends(get_engine)
) -> dict[str, object]:
    receipt = engine.fulfill_sell(
        address,
        request.buyer,
        request.asset_id,
        request.args,
        cosigner=request.cosigner,
        referral=request.referral,
    )
    return asdict(receipt)


# --- Dynamic allow-lists ---


@router.post("/dynamic-allowlists")
def create_dynamic_allowlist(
    request: CreateDynamicAllowlistRequest, engine: PoolEngine = Depends(get_engine)
) -> DynamicAllowlist:
    return engine.create_dynamic_allowlist(request.authority, request.args)


@router.put("/dynamic-allowlists/{address}")
def update_dynamic_allowlist(
    address: str,
    request: UpdateDynamicAllowlistRequest,
    engine: PoolEngine = Depends(get_engine),
) -> DynamicAllowlist:
    return engine.update_dynamic_allowlist(address, request.authority, request.args)


@router.post("/migrate")
def migrate_pool(request: MigratePoolRequest, engine: PoolEngine = Depends(get_engine)) -> Pool:
    return engine.migrate_pool(request.authority, request.args)
