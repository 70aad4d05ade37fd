"""structlog setup for the engine and its HTTP surface.

Configuration via environment variables:
- NFTAMM_LOG_LEVEL: Minimum level (default: INFO)
- NFTAMM_LOG_JSON: Render JSON lines instead of console output (default: false)
"""

import logging
import os

import structlog


def configure(level: str | None = None, json_output: bool | None = None) -> None:
    """Configure structlog processors and level filtering.

    Args:
        level: Level name; read from NFTAMM_LOG_LEVEL if None
        json_output: Render JSON; read from NFTAMM_LOG_JSON if None
    """
    if level is None:
        level = os.environ.get("NFTAMM_LOG_LEVEL", "INFO")
    if json_output is None:
        json_output = os.environ.get("NFTAMM_LOG_JSON", "false").lower() in ("true", "1", "yes")

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )
