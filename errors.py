"""
Domain errors raised by the stores and services.

Routes never build error responses themselves: the exception handler registered
in main.py turns any AppError into a JSON body of the form
``{"message": ..., "code": ...}`` with the matching status code.
"""

from typing import Optional

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.code = self.__class__.__name__
        super().__init__(self.message)


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized Access"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden Access"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not Found"


class InvalidInput(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class UpstreamFailure(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Upstream service unavailable"
