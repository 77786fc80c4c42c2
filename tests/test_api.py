"""API endpoint tests for the bank verification service."""
import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from bank_verification.api.routes import get_verification_service
from bank_verification.main import app
from bank_verification.services.paystack_client import PaystackApiError, PaystackClient
from bank_verification.services.verification import VerificationService

VERIFY_URL = "/verify-bank-account"

RESOLVED = {
    "status": True,
    "message": "Account number resolved",
    "data": {"account_name": "Jane Doe", "account_number": "0123456789", "bank_id": 9},
}

UNRESOLVED = {"status": False, "message": "Could not resolve account name"}


class TestHealthEndpoint:
    """Test the health check endpoint."""

    def setup_method(self):
        self.client = TestClient(app)

    def test_health_check(self):
        """Health endpoint should return ok status."""
        response = self.client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "bank-verification"


class TestMetricsEndpoint:
    """Test the Prometheus metrics endpoint."""

    def setup_method(self):
        self.client = TestClient(app)

    def test_metrics_endpoint(self):
        """Metrics endpoint should return Prometheus format."""
        response = self.client.get("/metrics")
        assert response.status_code == 200
        assert "paystack_resolve_success_total" in response.text


class TestRequestValidation:
    """Requests rejected before Paystack is called."""

    @pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE"])
    def test_non_post_is_405(self, client, paystack_client, method):
        response = client.request(method, VERIFY_URL)

        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}
        paystack_client.resolve_account.assert_not_called()

    @pytest.mark.parametrize(
        "missing", ["bank_account_id", "account_number", "bank_code", "driver_id"]
    )
    def test_missing_field_is_400(self, client, paystack_client, verification_body, missing):
        del verification_body[missing]

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}
        paystack_client.resolve_account.assert_not_called()

    def test_empty_string_counts_as_missing(self, client, verification_body):
        verification_body["bank_code"] = ""

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 400

    def test_null_counts_as_missing(self, client, verification_body):
        verification_body["driver_id"] = None

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 400

    def test_non_object_body_is_400(self, client):
        response = client.post(VERIFY_URL, json=["0123456789", "058"])

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}

    @pytest.mark.parametrize("value", [0, 0.0, False])
    def test_falsy_scalar_counts_as_missing(self, client, paystack_client, verification_body, value):
        verification_body["account_number"] = value

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}
        paystack_client.resolve_account.assert_not_called()

    def test_true_is_accepted_as_text(self, client, paystack_client, verification_body):
        paystack_client.resolve_account.return_value = RESOLVED
        verification_body["bank_code"] = True

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 200
        paystack_client.resolve_account.assert_awaited_once_with("0123456789", "true")

    def test_zero_as_text_is_accepted(self, client, paystack_client, verification_body):
        paystack_client.resolve_account.return_value = RESOLVED
        verification_body["bank_code"] = "0"

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 200
        paystack_client.resolve_account.assert_awaited_once_with("0123456789", "0")

    def test_numeric_account_number_is_accepted(self, client, paystack_client, verification_body):
        paystack_client.resolve_account.return_value = RESOLVED
        verification_body["account_number"] = 123456789

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 200
        paystack_client.resolve_account.assert_awaited_once_with("123456789", "058")

    def test_malformed_json_body_is_500(self, client, paystack_client):
        response = client.post(
            VERIFY_URL,
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["error"]
        paystack_client.resolve_account.assert_not_called()


class TestVerifiedAccount:
    """Paystack resolves the account."""

    def test_verified_response(self, client, paystack_client, verification_body):
        paystack_client.resolve_account.return_value = RESOLVED

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "verified": True,
            "account_name": "Jane Doe",
        }

    def test_record_marked_verified(self, client, paystack_client, record_store, verification_body):
        paystack_client.resolve_account.return_value = RESOLVED

        client.post(VERIFY_URL, json=verification_body)

        record_store.mark_verified.assert_called_once()
        args, kwargs = record_store.mark_verified.call_args
        assert args[0] == verification_body["bank_account_id"]
        assert kwargs["account_name"] == "Jane Doe"
        assert kwargs["details"] == RESOLVED["data"]
        record_store.mark_rejected.assert_not_called()

    def test_update_failure_does_not_change_response(
        self, client, paystack_client, record_store, verification_body
    ):
        paystack_client.resolve_account.return_value = RESOLVED
        record_store.mark_verified.side_effect = OperationalError(
            "UPDATE driver_bank_accounts", {}, Exception("connection reset")
        )

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["verified"] is True
        record_store.send_notification_with_preferences.assert_called_once()
        record_store.notify_all_admins.assert_called_once()

    def test_unknown_driver_still_completes(
        self, client, paystack_client, record_store, verification_body
    ):
        paystack_client.resolve_account.return_value = RESOLVED
        record_store.get_driver_identity.return_value = None

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 200
        assert response.json()["verified"] is True
        message = record_store.notify_all_admins.call_args.kwargs["message"]
        assert message == "Bank verified for Unknown: Jane Doe at 058"


class TestRejectedAccount:
    """Paystack cannot resolve the account."""

    def test_rejected_response(self, client, paystack_client, verification_body):
        paystack_client.resolve_account.return_value = UNRESOLVED

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "verified": False,
            "error": "Could not resolve account name",
        }

    def test_record_marked_rejected(self, client, paystack_client, record_store, verification_body):
        paystack_client.resolve_account.return_value = UNRESOLVED

        client.post(VERIFY_URL, json=verification_body)

        record_store.mark_rejected.assert_called_once()
        args, kwargs = record_store.mark_rejected.call_args
        assert args[0] == verification_body["bank_account_id"]
        assert kwargs["reason"] == "Could not resolve account name"
        assert kwargs["details"] == UNRESOLVED
        record_store.mark_verified.assert_not_called()

    def test_unknown_driver_still_completes(
        self, client, paystack_client, record_store, verification_body
    ):
        paystack_client.resolve_account.return_value = UNRESOLVED
        record_store.get_driver_identity.return_value = None

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 200
        assert response.json()["verified"] is False
        message = record_store.notify_all_admins.call_args.kwargs["message"]
        assert message == "Bank verification FAILED for Unknown: Could not resolve account name"


class TestPaystackFaults:
    """Faults before the workflow can run surface as 500."""

    def test_network_fault_is_500(self, client, paystack_client, record_store, verification_body):
        paystack_client.resolve_account.side_effect = PaystackApiError(
            "Request failed: connection refused"
        )

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Paystack API error: Request failed: connection refused",
        }
        record_store.mark_verified.assert_not_called()
        record_store.mark_rejected.assert_not_called()

    def test_non_json_response_is_500(self, client, paystack_client, verification_body):
        paystack_client.resolve_account.side_effect = PaystackApiError(
            "Invalid JSON response (HTTP 502): Expecting value: line 1 column 1 (char 0)"
        )

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert "Invalid JSON response" in response.json()["error"]

    def test_null_response_is_500_without_writes(self, client, record_store, verification_body):
        def handler(request):
            return httpx.Response(
                200, content=b"null", headers={"Content-Type": "application/json"}
            )

        service = VerificationService(
            record_store=record_store,
            paystack_client=PaystackClient(
                secret_key="sk_test_abc",
                base_url="https://paystack.test",
                transport=httpx.MockTransport(handler),
            ),
        )
        app.dependency_overrides[get_verification_service] = lambda: service

        response = client.post(VERIFY_URL, json=verification_body)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Paystack API error: Empty response body",
        }
        record_store.mark_verified.assert_not_called()
        record_store.mark_rejected.assert_not_called()
        record_store.notify_all_admins.assert_not_called()


class TestRequestTracing:
    """Request ids are propagated to the response."""

    def test_request_id_is_echoed(self, client, paystack_client, verification_body):
        paystack_client.resolve_account.return_value = RESOLVED

        response = client.post(
            VERIFY_URL, json=verification_body, headers={"X-Request-ID": "req-123"}
        )

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_is_generated(self, client):
        response = client.get(VERIFY_URL)

        assert response.headers["X-Request-ID"]
