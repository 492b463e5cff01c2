from __future__ import annotations


class CompanionError(Exception):
    """Base class for errors raised by the companion engine."""


class ConfigurationError(CompanionError):
    """Raised before any request when the service credential is missing."""


class GenerationError(CompanionError):
    """The generation service failed, returned nothing, or returned undecodable data."""
