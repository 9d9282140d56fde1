"""Shared error types for bbqfeat."""

from __future__ import annotations


class BbqfeatError(Exception):
    """Base error type for bbqfeat."""


class InputError(BbqfeatError, ValueError):
    """Raised when user input is invalid or unsupported."""


class ConfigError(InputError):
    """Raised when a run configuration is invalid."""


class AdaptationError(BbqfeatError, RuntimeError):
    """Raised when a parsed structure cannot be turned into a usable Structure."""


class EmptyStructure(AdaptationError):
    """No usable chain remains after filtering."""


class UnsupportedChemistry(AdaptationError):
    """A chain's polymer type is outside the supported set."""


class IndexBuildError(BbqfeatError, RuntimeError):
    """Raised when a spatial index cannot be built (e.g. zero atoms)."""


class AssemblyError(BbqfeatError, RuntimeError):
    """Raised when feature records cannot be assembled."""


class InconsistentWindowConfig(AssemblyError, ConfigError):
    """The partner/sequence window settings cannot produce a fixed layout."""
