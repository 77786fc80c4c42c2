"""
Bank Verification Service

A FastAPI-based service that verifies a driver's bank account with the
Paystack resolve-account API. It is called once per bank account
registration (the platform fires it after a driver_bank_accounts row is
inserted), records the outcome on that row and notifies the driver and the
administrators.

Outcome handling:
-----------------
1. Paystack resolves the account: the row is marked verified and the
   resolved account name is stored
2. Paystack cannot resolve it: the row is marked rejected with the reason
3. Paystack is unreachable or answers garbage: nothing is recorded and the
   caller gets a 500

Recording and notifying are best effort. A failed update or notification is
logged and the remaining steps still run.
"""
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from bank_verification.api import router
from bank_verification.config import settings
from bank_verification.logging import (
    configure_logging,
    get_logger,
    set_request_context,
    clear_request_context,
    generate_request_id,
)
from bank_verification import metrics

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "service_starting",
        service_name=settings.service_name,
        paystack_api_base=settings.paystack_api_base,
    )

    yield

    logger.info("service_stopping", service_name=settings.service_name)


app = FastAPI(
    title="Bank Verification Service",
    description="Verifies driver bank accounts with Paystack and notifies drivers and admins",
    version="0.1.0",
    lifespan=lifespan,
)


UNTRACED_PATHS = ("/health", "/metrics")
REQUEST_ID_HEADER = "X-Request-ID"


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """
    Give every traced request an id (taken from ``X-Request-ID`` when the
    caller sends one), log its start and end, and count it in the HTTP
    metrics. The id is echoed back on the response.
    """
    if request.url.path in UNTRACED_PATHS:
        return await call_next(request)

    method, path = request.method, request.url.path
    request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
    set_request_context(request_id)
    request.state.request_id = request_id

    logger.info("request_received", method=method, path=path)
    start_time = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception as e:
        elapsed = time.perf_counter() - start_time
        logger.error(
            "request_failed",
            method=method,
            path=path,
            duration_ms=round(elapsed * 1000, 2),
            error=str(e),
        )
        metrics.record_http_request(method=method, endpoint=path, status=500)
        raise
    else:
        elapsed = time.perf_counter() - start_time
        logger.info(
            "request_completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=round(elapsed * 1000, 2),
        )
        metrics.record_http_request(
            method=method, endpoint=path, status=response.status_code, latency_seconds=elapsed
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        clear_request_context()


app.include_router(router)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": settings.service_name}


@app.get("/metrics")
async def metrics_endpoint():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
