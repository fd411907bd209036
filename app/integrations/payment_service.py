"""
Payment integration for business subscriptions.

Charges go through Stripe's PaymentIntents REST endpoint, confirmed in the
same call. Configure with:
- STRIPE_SECRET_KEY
- STRIPE_API_URL (optional, defaults to https://api.stripe.com/v1)
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import aiohttp

from app.core.config import PaymentConfig
from app.core.exceptions import UpstreamException

logger = logging.getLogger(__name__)


class IntentStatus(Enum):
    """PaymentIntent statuses we care about."""

    SUCCEEDED = "succeeded"
    PROCESSING = "processing"
    REQUIRES_ACTION = "requires_action"
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    CANCELED = "canceled"


@dataclass(slots=True)
class PaymentResult:
    reference: str
    status: str
    amount: int
    currency: str


class PaymentProcessor(Protocol):
    async def create_intent(
        self, amount: int, payment_method: str, description: str = ""
    ) -> PaymentResult:
        ...


class StripePaymentProcessor:
    """Create and confirm PaymentIntents over Stripe's REST API."""

    def __init__(self, config: PaymentConfig, timeout: float = 30) -> None:
        self.config = config
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"Authorization": f"Bearer {self.config.secret_key}"},
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def create_intent(
        self, amount: int, payment_method: str, description: str = ""
    ) -> PaymentResult:
        """Charge ``amount`` minor units and return the confirmed intent.

        Raises:
            UpstreamException: Processor unreachable, declined or unconfigured
        """
        if not self.config.secret_key:
            raise UpstreamException("Payment processor is not configured")

        form = {
            "amount": str(amount),
            "currency": self.config.currency,
            "payment_method": payment_method,
            "confirm": "true",
            "description": description,
            "automatic_payment_methods[enabled]": "true",
            "automatic_payment_methods[allow_redirects]": "never",
        }

        session = await self._get_session()
        url = f"{self.config.api_url}/payment_intents"
        try:
            async with session.post(url, data=form) as response:
                payload: dict[str, Any] = await response.json(content_type=None)
                status_code = response.status
        except asyncio.TimeoutError as e:
            logger.error("Payment processor timeout")
            raise UpstreamException("Payment processor timeout") from e
        except aiohttp.ClientError as e:
            logger.error(f"Payment processor unreachable: {e}")
            raise UpstreamException(f"Payment processor error: {e}") from e

        if status_code >= 400:
            message = (payload.get("error") or {}).get("message") or f"HTTP {status_code}"
            logger.warning(f"Payment declined: {message}")
            raise UpstreamException(message)

        status = payload.get("status", "")
        if status not in (IntentStatus.SUCCEEDED.value, IntentStatus.PROCESSING.value):
            raise UpstreamException(f"Payment not completed (status: {status or 'unknown'})")

        logger.info(f"Payment intent {payload.get('id')} {status} for {amount} {self.config.currency}")
        return PaymentResult(
            reference=str(payload.get("id", "")),
            status=status,
            amount=int(payload.get("amount", amount)),
            currency=str(payload.get("currency", self.config.currency)),
        )
