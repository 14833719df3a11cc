from __future__ import annotations


class DashboardError(Exception):
    """Base class for errors raised by the dashboard core."""


class FetchError(DashboardError):
    """Raised when a CSV resource cannot be reached or returns a non-OK status."""


class ParseError(DashboardError):
    """Raised when a fetched CSV is structurally unreadable or has no rows."""


class AuthError(DashboardError):
    reason = "AuthError"


class UserNotFound(AuthError):
    reason = "UserNotFound"


class InvalidPassword(AuthError):
    reason = "InvalidPassword"


class ValidationError(DashboardError):
    """Raised when required request fields are missing."""


class StoreError(DashboardError):
    """Raised when the credential/activity database fails."""


class DuplicateUsername(StoreError):
    pass
