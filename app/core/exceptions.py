"""Custom exceptions for the Ridgeline CRM backend."""


class RidgelineException(Exception):
    """Base exception for the Ridgeline application."""

    pass


class DatabaseError(RidgelineException):
    """Raised when a database operation fails."""

    pass


class ServiceError(RidgelineException):
    """Raised when a service operation fails."""

    pass


class ConfigurationError(RidgelineException):
    """Raised when configuration is invalid."""

    pass


class AuthenticationError(RidgelineException):
    """Raised when authentication fails."""

    pass


class AuthorizationError(RidgelineException):
    """Raised when an authenticated caller lacks a required scope."""

    pass
