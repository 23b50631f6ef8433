import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import BANK_API_DOMAIN, CORS_ORIGINS
from app.logging_setup import configure_logging
from app.routers import transactions
from app.services.errors import TransactionFetchError

configure_logging()
logger = logging.getLogger(__name__)

# ── App ────────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="TxSync API",
    description="Fetches a bank account's paginated transaction history back to a cutoff date.",
    version="1.0.0",
)

# ── CORS ───────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ────────────────────────────────────────────────────────────────────
app.include_router(transactions.router, prefix="/api/accounts", tags=["transactions"])


# ── Exception handlers ─────────────────────────────────────────────────────────
@app.exception_handler(TransactionFetchError)
async def transaction_fetch_error_handler(request: Request, exc: TransactionFetchError):
    logger.warning(
        "transaction_fetch_failed",
        extra={"path": request.url.path, "kind": exc.kind.value, "error": str(exc.cause)},
    )
    return JSONResponse(status_code=502, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
            "type": type(exc).__name__,
        },
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. It has been logged."},
    )


# ── Health check ───────────────────────────────────────────────────────────────
@app.get("/health", tags=["health"])
def health():
    """Used by Cloud Run health checks."""
    return {"status": "ok"}


logger.info("txsync_api_started", extra={"cors_origins": CORS_ORIGINS, "bank_domain": BANK_API_DOMAIN})
