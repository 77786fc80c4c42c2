"""Configuration settings for the Bank Verification Service."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Paystack resolve-account API
    paystack_secret_key: str
    paystack_api_base: str = "https://api.paystack.co"
    paystack_timeout_seconds: float = 30.0

    # Record store (connection URL + privileged credential)
    database_url: str
    database_service_role_key: str

    # Service identification
    service_name: str = "bank-verification"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
