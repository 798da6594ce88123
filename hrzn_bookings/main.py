# hrzn_bookings/main.py

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hrzn_bookings.config import ALLOWED_ORIGINS
from hrzn_bookings.errors import BookingServiceError
from hrzn_bookings.logging_config import setup_logging
from hrzn_bookings.middleware import RequestIDMiddleware
from hrzn_bookings.routes.bookings import router as bookings_router
from hrzn_bookings.routes.calendar import router as calendar_router
from hrzn_bookings.routes.health import router as health_router
from hrzn_bookings.routes.metrics import router as metrics_router
from hrzn_bookings.routes.payments import router as payments_router
from hrzn_bookings.routes.webhook import router as webhook_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="HRZN Direct Bookings API",
    description="Stripe payments, booking storage and iCalendar feeds for direct bookings",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(payments_router, tags=["Payments"])
app.include_router(webhook_router, tags=["Webhooks"])
app.include_router(calendar_router, tags=["Calendar"])
app.include_router(bookings_router, tags=["Bookings"])


@app.exception_handler(BookingServiceError)
async def booking_service_error_handler(request: Request, exc: BookingServiceError) -> JSONResponse:
    """Render service errors as ``{"error": message}`` with their HTTP status."""
    logger.warning(
        "request_failed",
        error_type=type(exc).__name__,
        error=exc.message,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies are a 400, not FastAPI's default 422."""
    logger.warning("request_body_invalid", errors=exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body", "details": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]


@app.on_event("startup")
def startup_event() -> None:
    """Load bookings from disk on startup."""
    from hrzn_bookings.db.store import booking_store
    from hrzn_bookings.errors import PersistenceError
    from hrzn_bookings.network.notifications import notifier

    logger.info("FastAPI application starting up...")

    try:
        booking_store.load()
    except PersistenceError as e:
        # Serve from an empty store rather than refusing to start
        notifier.alert_error("FILE_LOAD_FAILED", {"error": e.message, "file": str(booking_store.path)})

    logger.info("FastAPI application initialized")
