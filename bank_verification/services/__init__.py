"""Service layer for the bank verification service."""
from bank_verification.services.fanout import BestEffortFanOut
from bank_verification.services.paystack_client import PaystackClient, PaystackApiError
from bank_verification.services.record_store import RecordStore
from bank_verification.services.verification import VerificationService

__all__ = [
    "BestEffortFanOut",
    "PaystackClient",
    "PaystackApiError",
    "RecordStore",
    "VerificationService",
]
