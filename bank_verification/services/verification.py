"""Verification service for driver bank accounts."""
import time
from typing import Any, Optional

from bank_verification.logging import get_logger, log_verification_outcome, mask_account_number
from bank_verification.schemas import (
    DriverIdentity,
    VerificationOutcome,
    VerificationRequest,
    is_present,
)
from bank_verification.services.fanout import BestEffortFanOut
from bank_verification.services.paystack_client import PaystackClient
from bank_verification.services.record_store import RecordStore

logger = get_logger(__name__)

NOTIFICATION_TYPE = "bank_verification_completed"
UNKNOWN_DRIVER_NAME = "Unknown"
UNKNOWN_ERROR = "Unknown verification error"

DRIVER_FAILURE_MESSAGE = (
    "We couldn't verify your bank account details. Please check your account "
    "number and bank selection in your driver profile."
)


class VerificationService:
    """
    Service for verifying a driver's bank account.

    This service orchestrates:
    1. Resolving the account with Paystack
    2. Recording the verified or rejected state on the bank account row
    3. Notifying the driver
    4. Notifying all administrators

    Steps 2-4 are best effort: a failure is logged and the remaining steps
    still run. Only a failure of step 1 aborts the run.
    """

    def __init__(self, record_store: RecordStore, paystack_client: Optional[PaystackClient] = None):
        """
        Initialize the verification service.

        Args:
            record_store: Gateway to the platform database
            paystack_client: Paystack API client (defaults to new instance)
        """
        self.record_store = record_store
        self.paystack_client = paystack_client or PaystackClient()

    async def verify(self, request: VerificationRequest) -> VerificationOutcome:
        """
        Verify the bank account described by ``request``.

        Args:
            request: A complete verification request

        Returns:
            VerificationOutcome with ``success=True``; ``verified`` tells
            whether Paystack resolved the account

        Raises:
            PaystackApiError: If Paystack is unreachable or answers with a non-JSON or null body
        """
        start_time = time.perf_counter()

        logger.info(
            "verifying_bank_account",
            driver_id=request.driver_id,
            bank_account_id=request.bank_account_id,
            bank_code=request.bank_code,
            account_number=mask_account_number(request.account_number),
        )

        payload = await self.paystack_client.resolve_account(
            request.account_number, request.bank_code
        )

        fanout = BestEffortFanOut(
            logger,
            bank_account_id=request.bank_account_id,
            driver_id=request.driver_id,
        )

        if _is_resolved(payload):
            outcome = self._handle_verified(request, payload["data"], fanout)
        else:
            outcome = self._handle_rejected(request, payload, fanout)

        fanout.summarize()

        log_verification_outcome(
            logger=logger,
            bank_account_id=request.bank_account_id,
            driver_id=request.driver_id,
            verified=outcome.verified,
            failed_steps=fanout.failed_steps,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

        return outcome

    def _handle_verified(
        self, request: VerificationRequest, data: Any, fanout: BestEffortFanOut
    ) -> VerificationOutcome:
        account_name = data.get("account_name") if isinstance(data, dict) else None

        fanout.run(
            "update_bank_account",
            self.record_store.mark_verified,
            request.bank_account_id,
            account_name=account_name,
            details=data,
        )

        fanout.run(
            "notify_driver",
            self.record_store.send_notification_with_preferences,
            user_id=request.driver_id,
            notification_type=NOTIFICATION_TYPE,
            message=f"Your bank account ({account_name}) has been verified successfully.",
            related_id=request.driver_id,
        )

        driver_name = self._driver_name(request.driver_id, fanout)

        fanout.run(
            "notify_admins",
            self.record_store.notify_all_admins,
            notification_type=NOTIFICATION_TYPE,
            message=f"Bank verified for {driver_name}: {account_name} at {request.bank_code}",
            related_id=request.driver_id,
        )

        return VerificationOutcome(success=True, verified=True, account_name=account_name)

    def _handle_rejected(
        self, request: VerificationRequest, payload: Any, fanout: BestEffortFanOut
    ) -> VerificationOutcome:
        error_message = _error_message(payload)

        fanout.run(
            "update_bank_account",
            self.record_store.mark_rejected,
            request.bank_account_id,
            reason=error_message,
            details=payload,
        )

        # The driver gets a generic message; the upstream reason goes to admins only
        fanout.run(
            "notify_driver",
            self.record_store.send_notification_with_preferences,
            user_id=request.driver_id,
            notification_type=NOTIFICATION_TYPE,
            message=DRIVER_FAILURE_MESSAGE,
            related_id=request.driver_id,
        )

        driver_name = self._driver_name(request.driver_id, fanout)

        fanout.run(
            "notify_admins",
            self.record_store.notify_all_admins,
            notification_type=NOTIFICATION_TYPE,
            message=f"Bank verification FAILED for {driver_name}: {error_message}",
            related_id=request.driver_id,
        )

        return VerificationOutcome(success=True, verified=False, error=error_message)

    def _driver_name(self, driver_id: str, fanout: BestEffortFanOut) -> str:
        identity: Optional[DriverIdentity] = fanout.run(
            "lookup_driver", self.record_store.get_driver_identity, driver_id
        )
        if identity is None:
            return UNKNOWN_DRIVER_NAME
        return identity.display_name or UNKNOWN_DRIVER_NAME


def _is_resolved(payload: Any) -> bool:
    """Paystack resolved the account: ``status`` is exactly true and data is present."""
    if not isinstance(payload, dict) or payload.get("status") is not True:
        return False
    return is_present(payload.get("data"))


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict) and is_present(payload.get("message")):
        return str(payload["message"])
    return UNKNOWN_ERROR
