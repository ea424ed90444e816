"""Application entry point for the CollabHub API.

Configures:
- **structlog** with JSON rendering (production) or colored console (development),
  forwarding ERROR events to Sentry when a DSN is set
- **Shared services** (SQLite stores, Anthropic client, Gmail sender, HTTP
  client) stored on ``app.state.services``
- **Domain error handlers** rendering every error as ``{"message": ...}``
- **Request IDs** and **Prometheus metrics** on every HTTP request
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from collabhub.accounts import router as accounts_router
from collabhub.campaign import CampaignService
from collabhub.campaign import router as campaign_router
from collabhub.config import Settings, get_settings, validate_credentials
from collabhub.domain.errors import CollabHubError
from collabhub.health import register_health_routes
from collabhub.inquiry import InquiryService
from collabhub.inquiry import router as inquiry_router
from collabhub.observability.metrics import setup_metrics
from collabhub.observability.middleware import RequestIdMiddleware
from collabhub.observability.sentry import get_sentry_processor, init_sentry
from collabhub.social import SocialAccountService
from collabhub.social import router as social_router
from collabhub.social.lookup import SocialBladeClient
from collabhub.social.platforms import load_platform_configs
from collabhub.storage import (
    CampaignStore,
    InquiryStore,
    SocialAccountStore,
    UserStore,
    close_db,
    init_db,
)

logger = structlog.get_logger()

HTTP_TIMEOUT_SECONDS = 15.0


def configure_logging(production: bool = False, sentry_enabled: bool = False) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.

    Args:
        production: Enable production mode if ``True``.
        sentry_enabled: Forward ERROR events to Sentry if ``True``.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if sentry_enabled:
        shared_processors.append(get_sentry_processor())

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service="collabhub")


def _build_gmail_client(settings: Settings) -> Any:
    if not settings.gmail_token_path.exists():
        logger.info("Gmail token file not found, decision emails disabled")
        return None
    try:
        from collabhub.notifications.gmail import (
            GmailClient,
            get_gmail_credentials,
            get_gmail_service,
        )

        credentials = get_gmail_credentials(
            settings.gmail_token_path, settings.gmail_credentials_path
        )
        client = GmailClient(get_gmail_service(credentials), settings.notification_sender)
        logger.info("GmailClient initialized")
        return client
    except Exception:
        logger.warning("Failed to initialize GmailClient", exc_info=True)
        return None


def initialize_services(settings: Settings | None = None) -> dict[str, Any]:
    """Set up all shared services for the application.

    Opens the SQLite database, builds the stores, the Anthropic client (if
    an API key is set), the Gmail sender (if a token file exists), the
    SocialBlade client (if credentials are set), and the domain services
    that tie them together.

    Args:
        settings: Application settings.  If ``None``, ``get_settings()`` is used.

    Returns:
        A dict of initialized service instances keyed by name.
    """
    if settings is None:
        settings = get_settings()

    services: dict[str, Any] = {"_settings": settings}

    # a. SQLite database and stores
    db_path = settings.database_path
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = init_db(db_path)
    services["db_conn"] = conn
    users = UserStore(conn)
    inquiries = InquiryStore(conn)
    campaigns = CampaignStore(conn)
    accounts = SocialAccountStore(conn)
    services["user_store"] = users
    services["inquiry_store"] = inquiries
    services["campaign_store"] = campaigns
    services["social_store"] = accounts

    # b. Anthropic client (if anthropic_api_key is set)
    anthropic_client = None
    api_key = settings.anthropic_api_key.get_secret_value()
    if api_key:
        try:
            from collabhub.llm.client import get_anthropic_client

            anthropic_client = get_anthropic_client(api_key)
            logger.info("Anthropic client initialized")
        except Exception:
            logger.warning("Failed to initialize Anthropic client", exc_info=True)
    else:
        logger.info("ANTHROPIC_API_KEY not set, agent replies use fallbacks")
    services["anthropic_client"] = anthropic_client

    # c. Gmail sender (if gmail token file exists)
    gmail_client = _build_gmail_client(settings)
    services["gmail_client"] = gmail_client

    # d. Shared HTTP client for social platforms and SocialBlade
    http_client = httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)
    services["http_client"] = http_client

    socialblade = None
    sb_token = settings.socialblade_access_token.get_secret_value()
    if settings.socialblade_client_id and sb_token:
        socialblade = SocialBladeClient(http_client, settings.socialblade_client_id, sb_token)
    else:
        logger.info("SocialBlade credentials not set, profile lookup disabled")

    # e. Domain services
    inquiry_service = InquiryService(
        users=users,
        inquiries=inquiries,
        campaigns=campaigns,
        llm_client=anthropic_client,
        gmail_client=gmail_client,
        idle_minutes=settings.idle_minutes,
    )
    services["inquiry_service"] = inquiry_service
    services["campaign_service"] = CampaignService(
        users=users,
        campaigns=campaigns,
        inquiries=inquiries,
        inquiry_service=inquiry_service,
        llm_client=anthropic_client,
        candidate_limit=settings.candidate_limit,
        outreach_limit=settings.outreach_limit,
    )
    services["social_service"] = SocialAccountService(
        accounts=accounts,
        settings=settings,
        platforms=load_platform_configs(settings.social_platforms_config),
        http=http_client,
        socialblade=socialblade,
    )

    purged = users.purge_expired_sessions()
    if purged:
        logger.info("Expired sessions purged", count=purged)

    return services


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Lifespan context manager for FastAPI startup and shutdown.

    On shutdown: closes the shared HTTP client and the database connection.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application.
    """
    services = app.state.services
    logger.info("FastAPI application starting")
    yield
    http_client = services.get("http_client")
    if http_client is not None:
        await http_client.aclose()
    conn = services.get("db_conn")
    if conn is not None:
        close_db(conn)
        logger.info("Database connection closed")


async def handle_domain_error(request: Request, exc: CollabHubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation errors as 400 with the first problem as message."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first['msg']}" if location else str(first["msg"])
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(services: dict[str, Any]) -> FastAPI:
    """Create the FastAPI app with routers, error handlers, and middleware.

    Args:
        services: The initialized services dict from ``initialize_services``.

    Returns:
        The configured FastAPI application.
    """
    fastapi_app = FastAPI(
        title="CollabHub",
        lifespan=lifespan,
        exception_handlers={
            CollabHubError: handle_domain_error,
            RequestValidationError: handle_validation_error,
            Exception: handle_unexpected_error,
        },
    )
    fastapi_app.state.services = services
    fastapi_app.state.settings = services.get("_settings") or get_settings()

    fastapi_app.add_middleware(RequestIdMiddleware)
    setup_metrics(fastapi_app)

    fastapi_app.include_router(accounts_router)
    fastapi_app.include_router(inquiry_router)
    fastapi_app.include_router(campaign_router)
    fastapi_app.include_router(social_router)
    register_health_routes(fastapi_app)

    return fastapi_app


def main() -> None:
    """Main entry point: configure logging and Sentry, then serve with uvicorn."""
    settings = get_settings()
    sentry_enabled = init_sentry(
        settings.sentry_dsn, "production" if settings.production else "development"
    )
    configure_logging(production=settings.production, sentry_enabled=sentry_enabled)
    logger.info("Application starting")

    validate_credentials(settings)

    services = initialize_services(settings)
    fastapi_app = create_app(services)

    uvicorn.run(fastapi_app, host="0.0.0.0", port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
