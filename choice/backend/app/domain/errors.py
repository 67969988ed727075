# app/domain/errors.py
from __future__ import annotations


class ServiceError(Exception):
    """Expected, user-facing failure. Carries a message safe to show the caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    pass


class DuplicateError(ServiceError):
    pass


class NotFoundError(ServiceError):
    pass


class AuthorizationError(ServiceError):
    pass


class TransitionError(ServiceError):
    pass


class ConflictError(ServiceError):
    """The record changed between our read and our conditional write."""
