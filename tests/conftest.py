"""Shared fixtures for the bank verification service tests."""
import os

# Settings are read once at import time; seed the required values first.
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_secret")
os.environ.setdefault("PAYSTACK_API_BASE", "https://paystack.test")
os.environ.setdefault("DATABASE_URL", "postgresql://postgres@localhost:5432/postgres")
os.environ.setdefault("DATABASE_SERVICE_ROLE_KEY", "service-role-key")

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from bank_verification.api.routes import get_verification_service
from bank_verification.main import app
from bank_verification.schemas import DriverIdentity
from bank_verification.services.paystack_client import PaystackClient
from bank_verification.services.record_store import RecordStore
from bank_verification.services.verification import VerificationService


@pytest.fixture
def record_store():
    """Record store double with a known driver."""
    store = MagicMock(spec=RecordStore)
    store.mark_verified.return_value = 1
    store.mark_rejected.return_value = 1
    store.get_driver_identity.return_value = DriverIdentity(first_name="Ada", last_name="Obi")
    return store


@pytest.fixture
def paystack_client():
    """Paystack client double; set resolve_account.return_value per test."""
    return AsyncMock(spec=PaystackClient)


@pytest.fixture
def verification_service(record_store, paystack_client):
    return VerificationService(record_store=record_store, paystack_client=paystack_client)


@pytest.fixture
def client(verification_service):
    """Test client with the verification service wired to the doubles."""
    app.dependency_overrides[get_verification_service] = lambda: verification_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def verification_body():
    return {
        "bank_account_id": "5b1f0c9e-0000-4000-8000-000000000001",
        "account_number": "0123456789",
        "bank_code": "058",
        "driver_id": "7d2a4e10-0000-4000-8000-000000000002",
    }
