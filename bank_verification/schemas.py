"""Pydantic schemas for request/response validation."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

REQUIRED_FIELDS = ("bank_account_id", "account_number", "bank_code", "driver_id")


def is_present(value: Any) -> bool:
    """Presence as the platform's callers define it: null, false, 0, NaN and "" are absent.

    Empty objects and lists count as present.
    """
    if value is None or value is False or value == "":
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == value and value != 0
    return True


class VerificationRequest(BaseModel):
    """Request body for POST /verify-bank-account.

    Every field is optional at the schema level so that a missing field is
    reported by the handler as a 400 instead of a 422 validation error.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True)

    bank_account_id: Optional[str] = Field(None, description="driver_bank_accounts row id")
    account_number: Optional[str] = Field(None, description="Bank account number to resolve")
    bank_code: Optional[str] = Field(None, description="Paystack bank code")
    driver_id: Optional[str] = Field(None, description="Driver (user) id owning the account")

    def is_complete(self) -> bool:
        """True when all four fields are present and non-empty."""
        return all(
            (self.bank_account_id, self.account_number, self.bank_code, self.driver_id)
        )


class DriverIdentity(BaseModel):
    """Display-name projection of a user row."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class VerificationOutcome(BaseModel):
    """Response body for a verification run that reached Paystack.

    ``success`` reports that the workflow ran, ``verified`` reports whether
    the account resolved.
    """
    success: bool
    verified: Optional[bool] = None
    account_name: Optional[str] = None
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    """Body for rejected requests (405/400)."""
    error: str
