"""Custom exceptions for the repository layer."""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Base exception raised when a repository operation fails."""


class DuplicateKeyRepositoryError(RepositoryError):
    """Raised when an insert violates one of the unique indexes."""


class NotFoundRepositoryError(RepositoryError):
    """Raised when an expected document is missing."""


__all__ = [
    "DuplicateKeyRepositoryError",
    "NotFoundRepositoryError",
    "RepositoryError",
]
