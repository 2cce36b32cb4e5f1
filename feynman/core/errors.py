"""
Error taxonomy for the tutor.

Store-layer errors (NotFound, InvalidCredential, ValidationFailure) propagate
to the orchestrator and are rendered as messages by the CLI. Provider errors
are converted to degraded content at the provider boundary; ProviderFailure
only escapes for failures outside that boundary.
"""

from __future__ import annotations


class FeynmanError(Exception):
    """Base class for all tutor errors."""


class NotFound(FeynmanError):
    """A username or user id does not exist."""


class InvalidCredential(FeynmanError):
    """Password digest does not match the stored hash."""


class ValidationFailure(FeynmanError):
    """Input rejected before reaching a store (password rules, import rows)."""


class InvalidTransition(ValidationFailure):
    """Navigation event not legal in the current state."""

    def __init__(self, state: object, event: object):
        self.state = state
        self.event = event
        super().__init__(
            f"{type(event).__name__} is not allowed from {type(state).__name__}"
        )


class ProviderFailure(FeynmanError):
    """The AI provider failed or returned an empty response."""


class StorageError(FeynmanError):
    """Persisted data could not be decoded."""
