"""Helpers for reading credentials from the environment without leaking them."""
from __future__ import annotations

import os
from typing import Final

__all__ = ["MissingSecretError", "require_secret", "has_secret", "is_placeholder"]


class MissingSecretError(RuntimeError):
    """Raised when a credential environment variable is absent or a placeholder."""


_PLACEHOLDER_VALUES: Final[set[str]] = {
    "changeme",
    "change-me",
    "placeholder",
    "example",
    "sample",
    "your-key-here",
    "your-secret-here",
}


def is_placeholder(value: str | None) -> bool:
    """Return True for empty values and the stock values shipped in sample .env files."""

    if not value:
        return True
    normalized = value.strip().lower()
    return not normalized or normalized in _PLACEHOLDER_VALUES


def require_secret(name: str) -> str:
    """Return the trimmed value of ``name`` or raise :class:`MissingSecretError`."""

    value = os.getenv(name)
    if value is None or is_placeholder(value):
        raise MissingSecretError(f"{name} must be set to a real value (placeholders are rejected)")
    return value.strip()


def has_secret(name: str) -> bool:
    """Whether ``name`` holds a usable value; lets callers skip optional integrations."""

    return not is_placeholder(os.getenv(name))
