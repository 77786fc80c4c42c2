"""API route handlers for the bank verification service."""
import time
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from bank_verification.config import settings
from bank_verification.database import get_db
from bank_verification.logging import get_logger, set_request_context
from bank_verification.schemas import (
    REQUIRED_FIELDS,
    ErrorResponse,
    VerificationOutcome,
    VerificationRequest,
    is_present,
)
from bank_verification.services.paystack_client import PaystackClient
from bank_verification.services.record_store import RecordStore
from bank_verification.services.verification import VerificationService
from bank_verification import metrics

logger = get_logger(__name__)

router = APIRouter(tags=["verification"])

# Registered for every method so the handler itself answers non-POST requests
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def get_verification_service(db: Session = Depends(get_db)) -> VerificationService:
    """Dependency that wires the verification service from process settings."""
    return VerificationService(
        record_store=RecordStore(db),
        paystack_client=PaystackClient(
            secret_key=settings.paystack_secret_key,
            base_url=settings.paystack_api_base,
            timeout=settings.paystack_timeout_seconds,
        ),
    )


@router.api_route("/verify-bank-account", methods=ALL_METHODS)
async def verify_bank_account(
    request: Request,
    verification_service: VerificationService = Depends(get_verification_service),
):
    """
    Verify a driver's bank account with Paystack.

    This endpoint:
    1. Resolves the account number at the bank through Paystack
    2. Marks the bank account row verified or rejected
    3. Notifies the driver and all administrators

    Returns 200 whenever the workflow ran, with ``verified`` telling the
    outcome. Only a fault before the workflow could run yields a 500.
    """
    if request.method != "POST":
        logger.warning("method_not_allowed", method=request.method)
        return _error(405, "Method not allowed")

    start_time = time.perf_counter()
    request_id = getattr(request.state, "request_id", "unknown")

    try:
        body = await request.json()

        verification_request = _parse_request(body)
        if verification_request is None:
            logger.warning("verification_rejected_missing_fields")
            return _error(400, "Missing required fields")

        # Set driver context for logging
        set_request_context(request_id, driver_id=verification_request.driver_id)

        outcome = await verification_service.verify(verification_request)

        metrics.record_verification(
            outcome="verified" if outcome.verified else "rejected",
            latency_seconds=time.perf_counter() - start_time,
        )

        return JSONResponse(status_code=200, content=outcome.model_dump(exclude_none=True))

    except Exception as e:
        duration_seconds = time.perf_counter() - start_time

        logger.error(
            "verification_failed",
            duration_ms=round(duration_seconds * 1000, 2),
            error_type=type(e).__name__,
            error=str(e),
            outcome="error",
        )
        metrics.record_verification(outcome="error", latency_seconds=duration_seconds)

        outcome = VerificationOutcome(success=False, error=str(e))
        return JSONResponse(status_code=500, content=outcome.model_dump(exclude_none=True))


def _parse_request(body) -> Optional[VerificationRequest]:
    """Build a request from a JSON body, or None unless all four fields are present."""
    if not isinstance(body, dict):
        return None
    if not all(is_present(body.get(field)) for field in REQUIRED_FIELDS):
        return None

    # JSON true arrives as the string "true", like any other scalar
    values = {
        field: "true" if body[field] is True else body[field]
        for field in REQUIRED_FIELDS
    }
    try:
        verification_request = VerificationRequest.model_validate(values)
    except ValidationError:
        return None
    if not verification_request.is_complete():
        return None
    return verification_request


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())
