"""Bearer-token authentication for mutating endpoints."""

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tasktracker.core.config import Settings
from tasktracker.core.errors import InternalFailure, TaskTrackerError, Unauthorized
from tasktracker.interface.dependencies import get_app_settings


logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="API token")


async def require_api_token(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    app_settings: Annotated[Settings, Depends(get_app_settings)],
) -> None:
    """Reject the request unless it carries the configured bearer token.

    Raises:
        TaskTrackerError: Unauthorized for a missing or wrong token, InternalFailure
            if no token is configured on the server
    """
    try:
        expected_token = app_settings.require_credential("api_token", "API token")
    except ValueError as e:
        logger.error("api_token_not_configured", extra={"path": request.url.path})
        raise TaskTrackerError(InternalFailure(message=str(e))) from e

    if credentials is None:
        logger.warning("auth_missing_bearer", extra={"path": request.url.path})
        raise TaskTrackerError(Unauthorized(message="Missing or invalid Authorization header"))

    if not secrets.compare_digest(credentials.credentials.encode(), expected_token.encode()):
        logger.warning("auth_invalid_token", extra={"path": request.url.path})
        raise TaskTrackerError(Unauthorized(message="Invalid API token"))
