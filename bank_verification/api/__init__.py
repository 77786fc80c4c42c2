"""HTTP API for the bank verification service."""
from bank_verification.api.routes import router

__all__ = ["router"]
