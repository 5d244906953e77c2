"""Cloud providers known to the estimator."""

from __future__ import annotations

import enum


class InvalidProviderError(ValueError):
    """Raised when a string names no known provider."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} is not a valid Provider")
        self.name = name


class UnsupportedProviderError(Exception):
    """Raised when a provider is known but not supported for an operation."""

    def __init__(self, provider: object) -> None:
        super().__init__(f"Unsupported Provider: {provider}")
        self.provider = provider


class Provider(enum.IntEnum):
    """A cloud provider."""

    AWS = 0
    AZURE = 1
    GCP = 2

    def __str__(self) -> str:
        return self.name

    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)


def parse_provider(name: str) -> Provider:
    """Return the provider called ``name``, ignoring case."""
    wanted = name.lower()
    for provider in Provider:
        if provider.name.lower() == wanted:
            return provider
    raise InvalidProviderError(name)