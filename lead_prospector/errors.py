"""Exception hierarchy shared by the discovery client, engine and console."""
from __future__ import annotations


class ProspectorError(RuntimeError):
    """Base class for every error raised by the lead prospector."""


class ValidationError(ProspectorError):
    """Raised synchronously when an operator command is rejected."""


class EmptyNicheError(ValidationError):
    """Raised when the engine is started without a search niche."""

    def __init__(self) -> None:
        super().__init__("A search niche is required to start the engine")


class EngineStateError(ValidationError):
    """Raised when a command is not valid for the engine's current state."""


class UnknownLeadError(ValidationError):
    """Raised when a command references a lead id that is not stored."""

    def __init__(self, lead_id: str) -> None:
        super().__init__(f"No lead with id '{lead_id}'")
        self.lead_id = lead_id


class InvalidTransitionError(ValidationError):
    """Raised when a status change would move a lead backwards."""


class ConfirmationRequired(ValidationError):
    """Raised when a destructive command was not confirmed."""


class DiscoveryFailed(ProspectorError):
    """Raised when the remote discovery call or its response parsing fails."""


class StorageCorrupt(ProspectorError):
    """Raised when the persisted working set cannot be decoded."""
