"""
Custom exceptions for keysetstore.
"""

from __future__ import annotations


class KeysetStoreError(Exception):
    """Base exception for all keysetstore errors."""
    pass


class ContractViolation(KeysetStoreError):
    """Raised when a caller misuses the pagination contract (bad count, cursor without direction)."""
    pass


class StoreError(KeysetStoreError):
    """
    Raised by a store adapter when it cannot run a query as given.

    Driver errors (sqlalchemy.exc.SQLAlchemyError) are not wrapped in this
    class; they reach the caller unchanged.
    """
    pass


class ValidationError(KeysetStoreError):
    """Raised when operation validation or field casting fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Validation failed: {errors}")


class NotFoundError(KeysetStoreError):
    """Raised when a single-record operation matches nothing."""

    def __init__(self, model: str, query: object = None):
        self.model = model
        self.query = query
        super().__init__(f"{model} not found")
