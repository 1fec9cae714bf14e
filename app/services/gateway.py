"""Client for the external payment gateway's collect-request API."""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
import jwt

from app.config import settings
from app.services.exceptions import GatewayConfigurationError, GatewayError

logger = logging.getLogger(__name__)


@dataclass
class CollectRequest:
    collect_request_id: str
    payment_url: str


class PaymentGatewayClient:
    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        pg_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.api_url = api_url if api_url is not None else settings.PAYMENT_API_URL
        self.api_key = api_key if api_key is not None else settings.API_KEY
        self.pg_key = pg_key if pg_key is not None else settings.PG_KEY
        self.transport = transport
        self.timeout = timeout or settings.GATEWAY_TIMEOUT_SECONDS

    def check_configured(self) -> None:
        if not self.api_url:
            raise GatewayConfigurationError("PAYMENT_API_URL is not defined in environment variables")
        if not self.api_key:
            raise GatewayConfigurationError("API_KEY is not defined in environment variables")

    def sign(self, payload: dict) -> str:
        return jwt.encode(payload, self.pg_key, algorithm="HS256")

    async def create_collect_request(
        self, school_id: str, amount: str, callback_url: str
    ) -> CollectRequest:
        """Ask the gateway for a payment link. The body is signed with the PG key."""
        self.check_configured()

        payload = {
            "school_id": school_id,
            "amount": amount,
            "callback_url": callback_url,
        }
        body = {**payload, "sign": self.sign(payload)}
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                resp = await client.post(self.api_url, json=body, headers=headers)
            resp.raise_for_status()
            data = resp.json()
            return CollectRequest(
                collect_request_id=str(data["collect_request_id"]),
                payment_url=data["Collect_request_url"],
            )
        except httpx.HTTPStatusError as e:
            logger.error(
                "Payment API error",
                extra={"status_code": e.response.status_code, "body": e.response.text},
            )
            raise GatewayError("Failed to create payment link.") from e
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.error("Payment API error", extra={"error": repr(e)})
            raise GatewayError("Failed to create payment link.") from e
