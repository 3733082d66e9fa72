"""Lead prospector: discover, deduplicate and manage business leads."""

from . import models  # noqa: F401
from .errors import (
    DiscoveryFailed,
    EmptyNicheError,
    ProspectorError,
    StorageCorrupt,
    ValidationError,
)
from .models import Candidate, EngineStatus, Lead, LeadStatus, ModeProfile, SearchCriteria
from .orchestrator import AcquisitionEngine, OperatorConsole
from .validation import AcceptancePolicy, is_degenerate_phone, normalise_phone

__all__ = [
    "AcceptancePolicy",
    "AcquisitionEngine",
    "Candidate",
    "DiscoveryFailed",
    "EmptyNicheError",
    "EngineStatus",
    "Lead",
    "LeadStatus",
    "ModeProfile",
    "OperatorConsole",
    "ProspectorError",
    "SearchCriteria",
    "StorageCorrupt",
    "ValidationError",
    "is_degenerate_phone",
    "normalise_phone",
    "discovery",
    "orchestrator",
]
