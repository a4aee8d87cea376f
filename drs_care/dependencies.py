"""FastAPI dependency injection functions.

Long-lived collaborators are built once in the app lifespan and kept on
app.state; these functions hand them to route handlers.
"""
from typing import Any, Dict, Optional
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from drs_care.auth import TokenService
from drs_care.availability import AvailabilityCalculator
from drs_care.booking import BookingRegistrar
from drs_care.config import Settings
from drs_care.errors import ForbiddenError, InvalidTokenError, UnauthenticatedError
from drs_care.logging_config import get_logger
from drs_care.store import RecordStore

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_registrar(request: Request) -> BookingRegistrar:
    return request.app.state.registrar


def get_calculator(request: Request) -> AvailabilityCalculator:
    return request.app.state.calculator


def verify_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """
    Credential check for protected routes.

    Returns:
        Decoded token claims (contains "email")

    Raises:
        UnauthenticatedError: No Authorization header
        ForbiddenError: Header present but not a valid bearer token
    """
    if credentials is None:
        if request.headers.get("Authorization"):
            raise ForbiddenError()
        raise UnauthenticatedError()

    try:
        return tokens.verify(credentials.credentials)
    except InvalidTokenError as e:
        logger.info("token_rejected", reason=str(e))
        raise ForbiddenError() from e


def require_admin(
    identity: Dict[str, Any] = Depends(verify_token),
    store: RecordStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    Role check for admin-only routes. A requester with no user record is denied.

    Raises:
        ForbiddenError: Requester is unknown or not an admin
    """
    requester = store.find_user(identity["email"])
    if requester is None or requester.get("role") != "admin":
        logger.warning("admin_denied", email=identity["email"])
        raise ForbiddenError()
    return identity
