"""FastAPI application exposing the pool engine instructions."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from nftamm import __version__
from nftamm.api.endpoints import get_engine, router
from nftamm.errors import AuthorizationError, MMMError, PoolNotFound, SellStateNotFound
from nftamm.logging import configure

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("NFTAMM_HOST", "0.0.0.0")
PORT = int(os.environ.get("NFTAMM_PORT", "8000"))
DEBUG = os.environ.get("NFTAMM_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (1 MB)
MAX_REQUEST_SIZE = 1024 * 1024

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the engine at startup so a bad seed file fails the boot."""
    get_engine()
    yield


app = FastAPI(
    title="NFT AMM Engine",
    description="Pricing, fee settlement and escrow lifecycle for collectible AMM pools",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


@app.exception_handler(MMMError)
async def engine_error_handler(request: Request, exc: MMMError) -> JSONResponse:
    """Engine errors are client errors; missing records are 404s."""
    if isinstance(exc, (PoolNotFound, SellStateNotFound)):
        status_code = 404
    elif isinstance(exc, AuthorizationError):
        status_code = 403
    else:
        status_code = 400
    logger.info("request_rejected", path=request.url.path, code=int(exc.code), error=exc.name)
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the engine API server.

    Configuration via environment variables:
    - NFTAMM_HOST: Host to bind to (default: 0.0.0.0)
    - NFTAMM_PORT: Port to bind to (default: 8000)
    - NFTAMM_DEBUG: Enable debug/reload mode (default: false)
    - NFTAMM_SEED_FILE: JSON file of starting balances, assets and holdings
      (see nftamm.seed; default: none, every account starts empty)
    """
    configure()
    uvicorn.run(
        "nftamm.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
