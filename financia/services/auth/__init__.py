"""Account directory package."""

from financia.services.auth.directory import (
    AuthError,
    InvalidCredentialsError,
    User,
    UserAlreadyExistsError,
    UserDirectory,
)

__all__ = [
    "AuthError",
    "InvalidCredentialsError",
    "User",
    "UserAlreadyExistsError",
    "UserDirectory",
]
