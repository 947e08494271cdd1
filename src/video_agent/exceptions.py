"""Common exception classes for the application.

All custom exceptions should inherit from these base classes to maintain
a consistent exception hierarchy across the codebase.

Exception classes support two patterns:
1. No-argument raise: raise ApplicationError()
2. Contextual attributes: err = ApplicationError(port=3000); raise err
"""

from typing import Any


class ApplicationError(Exception):
    """Base exception for all application errors.

    Supports keyword arguments that are stored as attributes for debugging.
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = self.__class__.__doc__ or "Application error occurred"
        super().__init__(message)
        for key, value in kwargs.items():
            setattr(self, key, value)


__all__ = ["ApplicationError"]
