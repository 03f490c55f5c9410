"""HTTP Basic Auth for the quotes API.

Single shared password from the API_PASSWORD env var; the username is kept
as the actor id on emitted events.
"""

from __future__ import annotations

import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from quoteflow.config import settings

security = HTTPBasic()


async def verify_api_user(
    credentials: HTTPBasicCredentials = Depends(security),  # noqa: B008
) -> str:
    """FastAPI dependency: verify HTTP Basic credentials.

    Returns the username on success, raises 401 on failure.
    """
    expected = settings.security.api_password
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API_PASSWORD not configured",
        )

    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"),
        expected.encode("utf-8"),
    )
    if not password_ok:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username
