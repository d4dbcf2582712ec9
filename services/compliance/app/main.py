import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from app.database import close_db, init_db
from app.dependencies import get_settings
from app.documents.admin_router import router as documents_admin_router
from app.documents.router import router as documents_router
from app.exceptions import DatabaseUnavailable
from app.expiry.router import router as expiry_router
from app.rate_limit import limiter
from app.verification.router import router as verification_router
from shared.middleware.error_handler import error_body, install_error_handlers
from shared.middleware.error_handler import error_envelope_middleware
from shared.middleware.request_id import request_id_middleware

logger = logging.getLogger(__name__)


# ── OpenAPI metadata ──────────────────────────────────────────────────────────

_DESCRIPTION = """
## Ride-hail Driver Compliance Service

Owns the documents a driver must hold before going online:

* **Upload** — presigned S3 PUT grant; the document is registered as `pending`.
* **Review** — admins approve, reject (with a reason) or re-queue documents.
* **Verification** — a driver is complete once every required document type
  has an approved copy; the driver profile is kept in sync.
* **Expiry** — a scheduled sweep expires lapsed documents and notifies
  drivers ahead of expiry.

### Authentication
All protected endpoints require:
```
Authorization: Bearer <access_token>
```
Admin endpoints additionally require the `admin` or `super_admin` role in the token.

### Error shape
All errors return a consistent JSON envelope:
```json
{ "error": "Human-readable message", "kind": "not_found", "request_id": "…" }
```
"""

_TAGS_METADATA = [
    {
        "name": "documents",
        "description": (
            "Driver document uploads. "
            "Step 1: `POST /upload` — get a presigned S3 PUT URL. "
            "Step 2: PUT the file directly to S3. "
            "The document enters the admin review queue."
        ),
    },
    {
        "name": "admin-documents",
        "description": "**Admin only.** Review queue, document viewing and review decisions.",
    },
    {
        "name": "verification",
        "description": "Per-driver document completeness, readable by the driver or an admin.",
    },
    {
        "name": "admin-expiry",
        "description": "**Admin only.** On-demand run of the document expiry sweep.",
    },
]


# ── Health schema ─────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    service: str


# ── App factory ───────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(get_settings())
    yield
    await close_db()


async def database_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Database unavailable: %s", exc)
    err = DatabaseUnavailable()
    extra = {"message": str(exc)} if request.app.state.debug_errors else {}
    return JSONResponse(
        status_code=err.status_code,
        content=error_body(request, err.detail, err.kind, **extra),
    )


def create_app() -> FastAPI:
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    app = FastAPI(
        title="Ride-hail Compliance Service",
        version="1.0.0",
        description=_DESCRIPTION,
        openapi_tags=_TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.debug_errors = settings.debug_errors

    # Attach rate limiter state before middleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    install_error_handlers(app)
    app.add_exception_handler(OperationalError, database_unavailable_handler)
    app.add_exception_handler(PoolTimeoutError, database_unavailable_handler)

    # Middleware is applied in reverse-registration order (last added = outermost).
    # CORS must be outermost so ALL responses (including 429s) carry CORS headers.
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(error_envelope_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(documents_router, prefix="/api/v1")
    app.include_router(documents_admin_router, prefix="/api/v1")
    app.include_router(verification_router, prefix="/api/v1")
    app.include_router(expiry_router, prefix="/api/v1")

    @app.get("/health", response_model=HealthResponse, tags=["health"], include_in_schema=True)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="compliance")

    return app


app = create_app()
