import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.core.errors import ConfigError, DependencyFailure, QuotationError, ValidationError
from src.server.api import auth, health, images, quotations
from src.server.deps import (
    get_authenticator,
    get_notifier,
    get_repository,
    get_token_service,
    get_upload_store,
)
from src.server.logging_config import setup_logging
from src.server.settings.config import get_settings

logger = logging.getLogger(__name__)

STARTUP_PROVIDERS = (get_repository, get_upload_store, get_notifier, get_authenticator, get_token_service)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Saknad konfiguration ska stoppa uppstarten, inte ge 500 senare
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json, settings.log_dir)
    logger.info("Startar %s (%s)", settings.app_name, settings.environment)
    built = {
        provider: app.dependency_overrides.get(provider, provider)()
        for provider in STARTUP_PROVIDERS
    }
    if not built[get_notifier].enabled:
        logger.warning("EMAIL_HOST saknas: notifieringar per mejl är avstängda")
    yield
    logger.info("Avslutar appen...")


async def quotation_error_handler(request: Request, exc: QuotationError):
    message = exc.message
    if isinstance(exc, (DependencyFailure, ConfigError)):
        logger.error("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    if isinstance(exc, ConfigError):
        # Detaljerna (vilken variabel) stannar i loggen
        message = ConfigError.message
    body = {"message": message}
    if isinstance(exc, ValidationError):
        body["fields"] = exc.fields
    return JSONResponse(status_code=exc.status_code, content=body)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = [str(err["loc"][-1]) for err in exc.errors() if err.get("loc")]
    return JSONResponse(
        status_code=400,
        content={"message": "Requisição inválida.", "fields": fields},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Ohanterat fel i %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Erro interno do servidor."})


def _cors_origins() -> list:
    try:
        return get_settings().cors_origins
    except ConfigError:
        # lifespan stoppar uppstarten ändå; här räcker standardvärdet
        return ["*"]


def create_app() -> FastAPI:
    app = FastAPI(
        title="Painel Sou Energy - Cotações",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(QuotationError, quotation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(auth.router)                   # /api/login
    app.include_router(quotations.router)             # POST /api/cotacao, offentlig
    app.include_router(quotations.admin_router)       # /api/cotacoes..., kräver token
    app.include_router(images.router)                 # /api/images/{filename}, offentlig

    return app


app = create_app()
