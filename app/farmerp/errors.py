"""
Domain exceptions shared by the platform layer and the feature modules.
"""
from __future__ import annotations


class FarmErpError(Exception):
    """Base application error."""


class DataServiceError(FarmErpError):
    """A row operation against the data service failed."""

    def __init__(self, resource: str, operation: str, message: str) -> None:
        super().__init__(f"{operation} on {resource} failed: {message}")
        self.resource = resource
        self.operation = operation


class UnknownResourceError(FarmErpError):
    pass


class AuthError(FarmErpError):
    pass


class InvalidCredentialsError(AuthError):
    pass


class IdentityExistsError(AuthError):
    pass


class UnknownModuleError(FarmErpError):
    """Raised for a module key that has no descriptor."""
