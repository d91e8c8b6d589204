"""
Admin API Key Authentication

Validates API keys for service-to-service endpoints: maintenance jobs and
the upstream identity-provider exchange that reports OAuth callbacks.
"""

import secrets

from fastapi import Depends, Header, status

from authsentinel.api.error import ClientError
from authsentinel.bootstrap import Container
from authsentinel.depends import get_container
from authsentinel.libs.result import Error


async def verify_admin_api_key(
    x_admin_api_key: str = Header(None),
    container: Container = Depends(get_container),
):
    """
    Verify admin API key from X-Admin-API-Key header.

    Different from user token authentication - this is service-to-service auth.

    Args:
        x_admin_api_key: API key from X-Admin-API-Key header
        container: Application container holding the configured key

    Raises:
        ClientError: 401 if key is missing or invalid

    Returns:
        True if valid
    """
    if not x_admin_api_key:
        raise ClientError(
            Error("UNAUTHORIZED", "Admin API key required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    valid_admin_key = container.config.ADMIN_API_KEY
    if not valid_admin_key or not secrets.compare_digest(x_admin_api_key, valid_admin_key):
        raise ClientError(
            Error("INVALID_API_KEY", "Invalid admin API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return True
