"""
Audit Trail API -- Application entry point.

Run with:
    uvicorn audit_api.main:app --reload

Then open http://localhost:8000/docs for the interactive Swagger UI.

This file:
  1. Configures logging
  2. Creates the FastAPI application (create_app)
  3. Builds the ledger backend at startup and closes it at shutdown
  4. Adds CORS middleware and mounts the route modules (users, audit, reports)
  5. Maps AuditTrailError, request validation errors and malformed stored
     records to {"error": message}
  6. Defines the health check endpoint
"""

import logging
from contextlib import asynccontextmanager

import pydantic
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from audit_api.config import VERSION, Settings
from audit_api.dependencies import build_backend
from audit_api.errors import AuditTrailError, StorageError
from audit_api.routes import audit, reports, users

logger = logging.getLogger(__name__)


def _validation_message(errors: list) -> str:
    """Flatten pydantic errors into one line: 'body.email: Field required; ...'."""
    parts = []
    for err in errors:
        location = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{location}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    # -----------------------------------------------------------------------
    # Backend lifecycle
    #
    # One backend per application, built when the app starts serving and
    # closed when it stops. Handlers get it through dependencies.get_backend.
    # -----------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.backend = build_backend(settings)
        logger.info("Audit Trail API %s started with '%s' backend", VERSION, app.state.backend.name)
        try:
            yield
        finally:
            await app.state.backend.close()
            logger.info("Ledger backend closed")

    app = FastAPI(
        title="Audit Trail API",
        version=VERSION,
        description=(
            "Register users, log audit entries and generate compliance reports.\n\n"
            "| Endpoint | Purpose |\n"
            "|----------|--------|\n"
            "| `POST /api/users` | Register a user |\n"
            "| `POST /api/audit` | Append an audit entry |\n"
            "| `GET /api/audit/daterange` | Audit entries in a time window |\n"
            "| `POST /api/reports` | Generate a SOC2 / HIPAA / GDPR report |\n\n"
            "The ledger is either local JSON files or a Hyperledger Fabric "
            "chaincode, selected with `AUDIT_BACKEND`."
        ),
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(users.router)
    app.include_router(audit.router)
    app.include_router(reports.router)

    # -----------------------------------------------------------------------
    # Error handlers
    #
    # Every failure leaves the API as {"error": message} with the status
    # carried by the exception class. Bad request bodies and query
    # parameters are 400s, not FastAPI's default 422. A stored record that
    # fails its model is a StorageError.
    # -----------------------------------------------------------------------

    @app.exception_handler(AuditTrailError)
    async def audit_trail_error(request: Request, exc: AuditTrailError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": _validation_message(exc.errors())})

    @app.exception_handler(pydantic.ValidationError)
    async def invalid_stored_record(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
        # A record read back from a collection no longer fits its model
        error = StorageError(f"Invalid stored {exc.title} record: {_validation_message(exc.errors())}")
        return await audit_trail_error(request, error)

    # -----------------------------------------------------------------------
    # Health check
    # -----------------------------------------------------------------------

    @app.get(
        "/api/health",
        summary="Health check",
        description="Returns the API status and which ledger backend is in use.",
        tags=["System"],
    )
    async def health(request: Request):
        return {
            "status": "healthy",
            "backend": request.app.state.backend.name,
            "version": VERSION,
        }

    return app


app = create_app()
