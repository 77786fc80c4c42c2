"""
JSON logging for the Bank Verification Service.

Each line carries a ``timestamp`` and the ``event`` name. Lines emitted
while a request is in flight also carry ``request_id``, and ``driver_id``
once the body has been parsed. Timed steps add ``duration_ms``. Account
numbers are never logged in full; pass them through ``mask_account_number``.
"""
import time
import uuid
from contextvars import ContextVar
from typing import Any, Optional

import structlog

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
driver_id_ctx: ContextVar[str] = ContextVar("driver_id", default="")


def add_context_vars(
    logger: structlog.typing.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Stamp the current request id and driver id onto the event."""
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id

    driver_id = driver_id_ctx.get()
    if driver_id:
        event_dict.setdefault("driver_id", driver_id)

    return event_dict


def configure_logging() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            add_context_vars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def set_request_context(request_id: str, driver_id: Optional[str] = None) -> None:
    request_id_ctx.set(request_id)
    if driver_id:
        driver_id_ctx.set(driver_id)


def clear_request_context() -> None:
    request_id_ctx.set("")
    driver_id_ctx.set("")


def generate_request_id() -> str:
    return str(uuid.uuid4())


def mask_account_number(account_number: str) -> str:
    """Keep only the last four digits of an account number for log output."""
    if len(account_number) <= 4:
        return "*" * len(account_number)
    return "*" * (len(account_number) - 4) + account_number[-4:]


class TimedOperation:
    """
    Log ``<event>_started`` on entry and ``<event>_completed`` or
    ``<event>_failed`` on exit, with the elapsed ``duration_ms``.

    Exceptions are logged and then left to propagate.
    """

    def __init__(
        self,
        event: str,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        **extra_fields: Any,
    ):
        self.event = event
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.start_time: float = 0
        self.duration_ms: float = 0

    def __enter__(self) -> "TimedOperation":
        self.start_time = time.perf_counter()
        self.logger.info(f"{self.event}_started", **self.extra_fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        duration_ms = round(self.duration_ms, 2)

        if exc_type is None:
            self.logger.info(f"{self.event}_completed", duration_ms=duration_ms, **self.extra_fields)
            return

        self.logger.error(
            f"{self.event}_failed",
            duration_ms=duration_ms,
            error=str(exc_val),
            **self.extra_fields,
        )


def log_verification_outcome(
    logger: structlog.stdlib.BoundLogger,
    bank_account_id: str,
    driver_id: str,
    verified: bool,
    failed_steps: list[str],
    duration_ms: float,
) -> None:
    """Emit the single ``verification_completed`` line for a run."""
    logger.info(
        "verification_completed",
        bank_account_id=bank_account_id,
        driver_id=driver_id,
        outcome="verified" if verified else "rejected",
        verified=verified,
        failed_steps=failed_steps,
        duration_ms=round(duration_ms, 2),
    )
