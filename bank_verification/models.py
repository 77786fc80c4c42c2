"""SQLAlchemy ORM mappings for the tables the verification handler touches.

The schema itself is owned by the platform's migrations; these classes only
map the columns read or written here.
"""
from sqlalchemy import Column, Boolean, DateTime, Text
from sqlalchemy.dialects.postgresql import UUID, JSONB

from bank_verification.database import Base


class DriverBankAccount(Base):
    """A bank account registered by a driver for payouts."""
    __tablename__ = "driver_bank_accounts"

    id = Column(UUID(as_uuid=False), primary_key=True)
    driver_id = Column(UUID(as_uuid=False), nullable=False, index=True)
    account_number = Column(Text)
    bank_code = Column(Text)
    account_name = Column(Text)

    # Verification state
    is_verified = Column(Boolean, nullable=False, default=False)
    verified_at = Column(DateTime(timezone=True))
    verification_method = Column(Text)
    verification_details = Column(JSONB)
    verification_notes = Column(Text)

    # Rejection state
    rejection_reason = Column(Text)
    rejected_at = Column(DateTime(timezone=True))


class User(Base):
    """Platform user; only the display-name columns are mapped."""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=False), primary_key=True)
    first_name = Column(Text)
    last_name = Column(Text)
