"""Exception hierarchy for the dashboard core.

Provider and collaborator errors never escape the components that consume
them; they are folded into failed results, degraded metrics or
notifications. They exist so those components can tell failure modes apart
in logs and error strings.
"""

from __future__ import annotations


class MedNexusError(Exception):
    """Base class for every error raised by this package."""


class ProviderError(MedNexusError):
    """An analysis provider could not produce a result."""

    def __init__(self, provider_id: str, message: str):
        super().__init__(message)
        self.provider_id = provider_id


class ProviderNotConfiguredError(ProviderError):
    pass


class UnknownProviderError(ProviderError):
    def __init__(self, provider_id: str):
        super().__init__(provider_id, f"Unknown AI provider: {provider_id}")


class ProviderTimeoutError(ProviderError):
    pass


class ProviderResponseError(ProviderError):
    """The provider answered, but not with anything we can use."""


class CollaboratorUnavailableError(MedNexusError):
    """An external metrics collaborator is not configured or not reachable."""


class AnalysisStageError(MedNexusError):
    """A unit of work inside the case pipeline failed."""


class InvalidTransitionError(MedNexusError):
    pass


__all__ = [
    "AnalysisStageError",
    "CollaboratorUnavailableError",
    "InvalidTransitionError",
    "MedNexusError",
    "ProviderError",
    "ProviderNotConfiguredError",
    "ProviderResponseError",
    "ProviderTimeoutError",
    "UnknownProviderError",
]
