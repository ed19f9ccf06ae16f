"""Exception hierarchy for the modelviz engine."""

from typing import Any


class ModelVizError(Exception):
    """Base exception for engine errors."""

    pass


class InvalidConfigError(ModelVizError):
    """A blend or comparison request failed validation before any call."""

    pass


class ProviderError(ModelVizError):
    """A provider call failed."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ProviderTimeoutError(ProviderError):
    """A provider call exceeded the per-call timeout."""

    pass


class AggregationFailedError(ModelVizError):
    """Every model call of a blend errored or timed out."""

    def __init__(self, message: str, results: list[Any] | None = None):
        super().__init__(message)
        self.results = results or []


class NoResultsError(ModelVizError):
    """Analysis was requested for a session without results."""

    pass


class SessionNotFoundError(ModelVizError):
    """A saved comparison session does not exist."""

    pass
