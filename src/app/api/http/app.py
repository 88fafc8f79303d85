"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.app.api.http.app_data import ApplicationDependencies
from src.app.api.http.routers.health import router as health_router
from src.app.api.http.routers.service.book import router as book_router
from src.app.api.utils.app_startup import configure_logging
from src.app.core.services.identity import InvalidIdentityError
from src.app.core.services.registry import RegistryError
from src.app.runtime.context import get_config

__all__ = ["app", "create_app"]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        if get_config().app.environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response


async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": request.client.host if request.client else "unknown",
    }

    start = time.perf_counter()
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")
            response.headers.setdefault("X-Request-ID", request_id)
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )


def _error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "-")
    return JSONResponse(
        status_code=status_code,
        content={**content, "request_id": request_id},
        headers={"X-Request-ID": request_id},
    )


async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    return _error_response(request, exc.http_status, exc.to_dict())


async def invalid_identity_handler(request: Request, exc: InvalidIdentityError) -> JSONResponse:
    return _error_response(
        request, exc.http_status, {"error": exc.code, "detail": str(exc)}
    )


def create_app(dependencies: ApplicationDependencies | None = None) -> FastAPI:
    """Build the application.

    When ``dependencies`` is omitted, the services are built from the
    current configuration at start-up and released at shutdown.
    """
    config = get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = dependencies is None
        app_deps = ApplicationDependencies.from_config(get_config()) if owned else dependencies
        app.state.app_dependencies = app_deps
        logger.info("Book registry started with {} store", get_config().registry.store)
        try:
            yield
        finally:
            if owned:
                app_deps.close()
            logger.info("Book registry stopped")

    app = FastAPI(
        title="Book Registry",
        lifespan=lifespan,
        docs_url=None if config.app.environment == "production" else "/docs",
        redoc_url=None if config.app.environment == "production" else "/redoc",
    )

    if config.app.environment == "production" and "*" in config.app.cors.origins:
        raise RuntimeError(
            "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
        )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors.origins,
        allow_credentials=config.app.cors.allow_credentials,
        allow_methods=config.app.cors.allow_methods,
        allow_headers=config.app.cors.allow_headers,
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(RegistryError, registry_error_handler)
    app.add_exception_handler(InvalidIdentityError, invalid_identity_handler)

    app.include_router(health_router)
    app.include_router(book_router, prefix="/api/v1/books", tags=["books"])
    return app


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _app_config = get_config().app
    uvicorn.run(
        app,
        host=_app_config.host,
        port=_app_config.port,
        access_log=False,  # Access logging happens in the request middleware
        log_config=None,
    )
