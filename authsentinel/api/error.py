from typing import NoReturn

from fastapi import status

from authsentinel.libs.result import Error

# Use-case error codes that are the caller's fault. Anything else is a 500.
CLIENT_ERROR_STATUS = {
    "EMAIL_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
    "INVALID_TOKEN": status.HTTP_400_BAD_REQUEST,
    "TOKEN_EXPIRED": status.HTTP_400_BAD_REQUEST,
    "INVALID_LIMIT": status.HTTP_400_BAD_REQUEST,
    "SESSION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PRINCIPAL_NOT_FOUND": status.HTTP_404_NOT_FOUND,
}


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


def raise_for_error(error: Error) -> NoReturn:
    """Raise the HTTP error matching a failed use-case result"""
    status_code = CLIENT_ERROR_STATUS.get(error.code)
    if status_code is None:
        raise ServerError(error)
    raise ClientError(error, status_code=status_code)
