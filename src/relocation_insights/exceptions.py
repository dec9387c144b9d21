"""
Custom exception hierarchy for Relocation Insights.

Provides specific exception types for each subsystem,
enabling targeted error handling throughout the application.
"""


class RelocationInsightsError(Exception):
    """Base exception for all Relocation Insights errors."""

    def __init__(self, message: str = "", details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# --- Provider Exceptions ---


class ProviderError(RelocationInsightsError):
    """Base exception for third-party data provider errors."""
    pass


class ProviderNotConfiguredError(ProviderError):
    """Raised when a provider is called without its API key."""

    def __init__(self, provider: str):
        super().__init__(
            message=f"{provider} API key is not configured",
            details={"provider": provider},
        )


class ProviderRequestError(ProviderError):
    """Raised when an upstream request fails or returns a non-2xx status."""
    pass


class ProviderParsingError(ProviderError):
    """Raised when an upstream payload does not have the expected shape."""
    pass


class GeographyNotFoundError(ProviderError):
    """Raised when a city/state cannot be resolved to Census FIPS codes."""

    def __init__(self, city: str, state: str):
        super().__init__(
            message=f"No Census place found for {city}, {state}",
            details={"city": city, "state": state},
        )


# --- Database Exceptions ---


class DatabaseError(RelocationInsightsError):
    """Base exception for storage errors."""
    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when the database connection fails."""
    pass


class LocationNotFoundError(DatabaseError):
    """Raised when a location id is not present in the store."""

    def __init__(self, location_id: int):
        super().__init__(
            message=f"Location {location_id} not found",
            details={"location_id": location_id},
        )


class UserNotFoundError(DatabaseError):
    """Raised when a user id is not present in the store."""

    def __init__(self, user_id: int):
        super().__init__(
            message=f"User {user_id} not found",
            details={"user_id": user_id},
        )


class DuplicateUserError(DatabaseError):
    """Raised when creating a user whose username is taken."""

    def __init__(self, username: str):
        super().__init__(
            message=f"Username '{username}' already exists",
            details={"username": username},
        )


# --- Validation Exceptions ---


class ValidationError(RelocationInsightsError):
    """Raised when request input cannot be interpreted."""
    pass
