"""Referral verification.

A fill pays its referral fee either to the pool's referral directly or to a
payment proxy account whose authority is that referral.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from nftamm.constants import PAYMENT_PROXY_PROGRAM
from nftamm.models.pool import Pool

logger = structlog.get_logger()


@dataclass(frozen=True)
class PaymentProxyAccount:
    """A payment proxy record.

    Attributes:
        address: Proxy account key (where fees are paid)
        program: Program owning the record; must be the payment proxy program
        authority: Referral the proxy collects for
    """

    address: str
    program: str
    authority: str


class PaymentProxyVerifier:
    """ReferralVerifier backed by a registry of known proxy accounts."""

    def __init__(self, proxies: list[PaymentProxyAccount] | None = None) -> None:
        self._proxies: dict[str, PaymentProxyAccount] = {}
        for proxy in proxies or []:
            self.register(proxy)

    def register(self, proxy: PaymentProxyAccount) -> None:
        self._proxies[proxy.address] = proxy

    def verify(self, pool: Pool, referral: str) -> bool:
        if referral == pool.referral:
            return True

        proxy = self._proxies.get(referral)
        if proxy is None or proxy.program != PAYMENT_PROXY_PROGRAM:
            return False
        if proxy.authority != pool.referral:
            logger.info(
                "referral_proxy_rejected",
                pool=pool.address,
                proxy=referral,
                authority=proxy.authority,
            )
            return False
        return True
