"""Error taxonomy shared by services, adapters and the API."""


class NutritionCoachError(Exception):
    """Base class for application errors."""


class ValidationError(NutritionCoachError):
    """Caller input rejected before any store access."""


class InvalidTimezoneError(ValidationError):
    """The timezone is not a recognized IANA identifier."""

    def __init__(self, timezone_name: str) -> None:
        super().__init__(f"Invalid timezone: {timezone_name!r}")
        self.timezone_name = timezone_name


class StoreUnavailableError(NutritionCoachError):
    """The backing data store is unreachable or returned an error."""


class ExternalServiceDegradedError(NutritionCoachError):
    """A best-effort enrichment service failed or returned unusable data."""
