"""Application-wide exception classes."""

from __future__ import annotations


class ApplicationError(Exception):
    """Base exception for all application errors."""
    pass


class ConfigurationError(ApplicationError):
    """Raised when configuration is invalid."""
    pass


class DatabaseError(ApplicationError):
    """Base exception for database-related errors."""
    pass


class ConnectionPoolError(DatabaseError):
    """Raised when database connection pool has issues."""
    pass


class TransientStoreError(DatabaseError):
    """Raised when the document store fails (I/O, locking, corruption).

    Never retried by the services; the caller decides whether to retry.
    """
    pass


class ServiceError(ApplicationError):
    """Base exception for service-level errors."""
    pass


class LotteryError(ServiceError):
    """Base exception for lottery operations."""
    pass


class InsufficientParticipantsError(LotteryError):
    """Raised when there are not enough participants for lottery."""
    pass


class MessagingError(ServiceError):
    """Raised when the WhatsApp gateway rejects or fails a request."""
    pass


class ValidationError(ApplicationError):
    """Raised when data validation fails."""
    pass


class CampaignClosedError(ValidationError):
    """Raised when a campaign is inactive or already ended."""
    pass


class NotFoundError(ApplicationError):
    """Raised when an identifier does not resolve to a document."""
    pass


class CampaignNotFoundError(NotFoundError):
    """Raised when a campaign does not exist."""
    pass


class ParticipantNotFoundError(NotFoundError):
    """Raised when a participant does not exist in a campaign."""
    pass


class AuthenticationError(ApplicationError):
    """Raised when authentication fails."""
    pass
