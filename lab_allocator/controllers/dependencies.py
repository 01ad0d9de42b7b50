"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lab_allocator.services.allocation_service import LabAllocationService
from lab_allocator.services.auth_service import AuthService, InvalidAdminTokenError
from lab_allocator.services.roster_service import RosterService
from lab_allocator.utils.config import get_settings


bearer_scheme = HTTPBearer(auto_error=False)


def _service_from_state(request: Request, attribute: str, label: str):
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        service = AuthService(settings=get_settings())
        request.app.state.auth_service = service
    return service


def get_roster_service(request: Request) -> RosterService:
    return _service_from_state(request, "roster_service", "Roster")


def get_allocation_service(request: Request) -> LabAllocationService:
    return _service_from_state(request, "allocation_service", "Allocation")


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    if not auth_service.auth_enabled:
        return
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header with Bearer token is required",
        )
    try:
        auth_service.validate_bearer_token(credentials.credentials)
    except InvalidAdminTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
