"""Record store gateway: bank account updates, user lookups and notification procedures."""
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bank_verification.logging import get_logger
from bank_verification.models import DriverBankAccount, User
from bank_verification.schemas import DriverIdentity

logger = get_logger(__name__)

SEND_NOTIFICATION_WITH_PREFERENCES = text(
    "SELECT send_notification_with_preferences("
    "p_user_id => :p_user_id, "
    "p_notification_type => :p_notification_type, "
    "p_message => :p_message, "
    "p_related_id => :p_related_id)"
)

NOTIFY_ALL_ADMINS = text(
    "SELECT notify_all_admins("
    "p_notification_type => :p_notification_type, "
    "p_message => :p_message, "
    "p_related_id => :p_related_id)"
)


class RecordStore:
    """
    Reads and writes against the platform database on behalf of the handler.

    Every write commits on its own. A failed statement is rolled back before
    the error is re-raised so the session stays usable for the next step.
    """

    def __init__(self, db: Session):
        self.db = db

    def mark_verified(
        self,
        bank_account_id: str,
        account_name: str,
        details: Any,
        verified_at: Optional[datetime] = None,
    ) -> int:
        """
        Flag a bank account as verified through the API.

        Returns:
            Number of rows updated (0 when the row does not exist)
        """
        return self._update_bank_account(bank_account_id, {
            "is_verified": True,
            "verified_at": verified_at or datetime.now(timezone.utc),
            "verification_method": "api",
            "verification_details": details,
            "account_name": account_name,
            "verification_notes": f"Paystack verified: {account_name}",
        })

    def mark_rejected(
        self,
        bank_account_id: str,
        reason: str,
        details: Any,
        rejected_at: Optional[datetime] = None,
    ) -> int:
        """
        Flag a bank account as rejected with the upstream reason.

        Returns:
            Number of rows updated (0 when the row does not exist)
        """
        return self._update_bank_account(bank_account_id, {
            "is_verified": False,
            "verification_notes": f"Paystack verification failed: {reason}",
            "rejection_reason": reason,
            "rejected_at": rejected_at or datetime.now(timezone.utc),
            "verification_details": details,
        })

    def _update_bank_account(self, bank_account_id: str, values: dict) -> int:
        try:
            updated = (
                self.db.query(DriverBankAccount)
                .filter(DriverBankAccount.id == bank_account_id)
                .update(values, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        if not updated:
            logger.warning("bank_account_not_found", bank_account_id=bank_account_id)

        return updated

    def get_driver_identity(self, driver_id: str) -> Optional[DriverIdentity]:
        """Fetch a driver's first and last name, or None if there is no such user."""
        try:
            row = (
                self.db.query(User.first_name, User.last_name)
                .filter(User.id == driver_id)
                .first()
            )
        except SQLAlchemyError:
            self.db.rollback()
            raise

        if row is None:
            return None
        return DriverIdentity(first_name=row.first_name, last_name=row.last_name)

    def send_notification_with_preferences(
        self,
        user_id: str,
        notification_type: str,
        message: str,
        related_id: str,
    ) -> None:
        """Notify one user through the channels their preferences allow."""
        self._call(SEND_NOTIFICATION_WITH_PREFERENCES, {
            "p_user_id": user_id,
            "p_notification_type": notification_type,
            "p_message": message,
            "p_related_id": related_id,
        })

    def notify_all_admins(self, notification_type: str, message: str, related_id: str) -> None:
        """Notify every administrator, regardless of preferences."""
        self._call(NOTIFY_ALL_ADMINS, {
            "p_notification_type": notification_type,
            "p_message": message,
            "p_related_id": related_id,
        })

    def _call(self, statement, params: dict) -> None:
        try:
            self.db.execute(statement, params)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
