# scope_solar/errors.py

from __future__ import annotations

from typing import Iterable


class ScopeError(Exception):
    """Base class for engine errors."""


class InvalidInput(ScopeError):
    """Coordinates or area out of range. Carries every violated constraint."""

    def __init__(self, errors: Iterable[str]):
        self.errors = list(errors)
        super().__init__("Invalid input: " + ", ".join(self.errors))


class RemoteUnavailable(ScopeError):
    """Remote collaborator failed (transport, timeout, HTTP or decode error)."""

    def __init__(self, message: str, *, transient: bool = True):
        self.transient = transient
        super().__init__(message)


class ConfigError(ScopeError):
    pass
