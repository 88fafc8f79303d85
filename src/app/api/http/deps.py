"""FastAPI dependency implementations."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from loguru import logger

from src.app.api.http.app_data import ApplicationDependencies
from src.app.core.services import BookRegistryService, JwtIdentitySource


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_registry_service(request: Request) -> BookRegistryService:
    """Get the book registry service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.registry_service


def get_identity_source(request: Request) -> JwtIdentitySource:
    """Get the identity source instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.identity_source


def get_caller(
    request: Request,
    identity_source: JwtIdentitySource = Depends(get_identity_source),
) -> str:
    """Authenticate the request using a Bearer token and return the caller identity."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")

    token = auth_header.split(" ", 1)[1].strip()
    caller = identity_source.authenticate(token)
    request.state.caller = caller
    logger.debug("Authenticated caller {}", caller)
    return caller
