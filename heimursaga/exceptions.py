"""
Heimursaga – service-layer exceptions.

Services raise these; ``heimursaga.main`` renders them as JSON responses
with the matching HTTP status code.
"""

import functools
import logging

from fastapi import status

logger = logging.getLogger(__name__)


class ServiceException(Exception):
    """Base class for errors a service method reports to its caller."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "", status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ServiceNotFoundException(ServiceException):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "not found"):
        super().__init__(message)


class ServiceForbiddenException(ServiceException):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "forbidden"):
        super().__init__(message)


class ServiceBadRequestException(ServiceException):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "bad request"):
        super().__init__(message)


class ServiceInternalException(ServiceException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "internal server error"):
        super().__init__(message)


def service_errors(func):
    """Let service exceptions through; log anything else and report it as Internal."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except ServiceException:
            raise
        except Exception as e:
            logger.exception(f"Unexpected failure in {func.__qualname__}")
            raise ServiceInternalException() from e

    return wrapper
