"""Client for the Paystack resolve-account API."""
import time
from typing import Any, Optional

import httpx

from bank_verification.config import settings
from bank_verification.logging import get_logger, mask_account_number
from bank_verification import metrics

logger = get_logger(__name__)


class PaystackApiError(Exception):
    """Raised when the Paystack API cannot be reached or returns no usable body."""
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Paystack API error: {detail}")


class PaystackClient:
    """Client for resolving a bank account number to its holder's name."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Paystack client.

        Args:
            secret_key: Paystack secret key. Defaults to settings.paystack_secret_key.
            base_url: Base URL of the Paystack API. Defaults to settings.paystack_api_base.
            timeout: Request timeout in seconds. Defaults to settings.paystack_timeout_seconds.
            transport: Optional httpx transport, used to stub the network in tests.
        """
        self.secret_key = secret_key or settings.paystack_secret_key
        self.base_url = (base_url or settings.paystack_api_base).rstrip("/")
        self.timeout = timeout or settings.paystack_timeout_seconds
        self.transport = transport

    async def resolve_account(self, account_number: str, bank_code: str) -> Any:
        """
        Resolve an account number at a bank.

        The body is decoded whatever the HTTP status: Paystack answers an
        unresolvable account with a 4xx and ``{"status": false, "message": ...}``.

        Args:
            account_number: The account number to resolve
            bank_code: Paystack bank code

        Returns:
            The decoded JSON body

        Raises:
            PaystackApiError: If the request fails, the body is not JSON, or it is JSON null
        """
        url = f"{self.base_url}/bank/resolve"
        params = {"account_number": account_number, "bank_code": bank_code}
        headers = {"Authorization": f"Bearer {self.secret_key}"}

        start_time = time.perf_counter()

        logger.info(
            "paystack_resolve_started",
            account_number=mask_account_number(account_number),
            bank_code=bank_code,
        )

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(url, params=params, headers=headers)
            except httpx.RequestError as e:
                duration_ms = (time.perf_counter() - start_time) * 1000

                logger.error(
                    "paystack_request_error",
                    bank_code=bank_code,
                    duration_ms=round(duration_ms, 2),
                    error=str(e),
                    outcome="error",
                )

                error_type = "timeout" if isinstance(e, httpx.TimeoutException) else "connection_error"
                metrics.record_paystack_call(
                    success=False, latency_seconds=duration_ms / 1000, error_type=error_type
                )

                raise PaystackApiError(f"Request failed: {e}") from e

        duration_ms = (time.perf_counter() - start_time) * 1000

        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                "paystack_invalid_response",
                bank_code=bank_code,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                error=str(e),
                outcome="error",
            )
            metrics.record_paystack_call(
                success=False, latency_seconds=duration_ms / 1000, error_type="invalid_json"
            )
            raise PaystackApiError(
                f"Invalid JSON response (HTTP {response.status_code}): {e}"
            ) from e

        if data is None:
            logger.error(
                "paystack_empty_response",
                bank_code=bank_code,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                outcome="error",
            )
            metrics.record_paystack_call(
                success=False, latency_seconds=duration_ms / 1000, error_type="empty_body"
            )
            raise PaystackApiError("Empty response body")

        logger.info(
            "paystack_resolve_completed",
            bank_code=bank_code,
            status_code=response.status_code,
            resolved=isinstance(data, dict) and data.get("status") is True,
            message=data.get("message") if isinstance(data, dict) else None,
            duration_ms=round(duration_ms, 2),
            outcome="success",
        )

        metrics.record_paystack_call(success=True, latency_seconds=duration_ms / 1000)

        return data
