import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payview.config import settings
from payview.database import create_db_and_tables
from payview.exceptions import PaywallError
from payview.logging_config import configure_logging
from payview.routes import (
    checkout,
    content,
    files,
    health,
    me,
    notifications,
    payouts,
    webhooks,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Run DB creation ONLY in local
    if settings.env == "local":
        create_db_and_tables()
    yield


app = FastAPI(title="PayView API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type", "stripe-signature"],
)


@app.exception_handler(PaywallError)
async def paywall_error_handler(request: Request, exc: PaywallError):
    if exc.retryable:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"error": message})


@app.options("/{rest_of_path:path}", include_in_schema=False)
def preflight(rest_of_path: str):
    return Response(status_code=200)


app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
app.include_router(content.router, prefix="/content", tags=["Content"])
app.include_router(files.router, prefix="/files", tags=["Files"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
app.include_router(payouts.router, prefix="/payouts", tags=["Payouts"])
app.include_router(me.router, prefix="/me", tags=["Me"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "checkout_endpoints": ["/checkout/start", "/checkout/status"],
        "webhook_endpoints": ["/webhooks/stripe"],
        "content_endpoints": ["/content/signed-url", "/content/{file_id}/access"],
        "file_endpoints": [
            "/files", "/files/upload", "/files/{file_id}", "/files/{file_id}/price"
        ],
        "notification_endpoints": ["/notifications/purchase"],
        "payout_endpoints": ["/payouts/onboard"],
        "me_endpoints": ["/me/profile", "/me/transactions"],
    }
