"""Data models shared by the discovery client, the engine and the exporters."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# --- Lead lifecycle ---

class LeadStatus(str, Enum):
    """Pipeline position of an accepted lead."""

    NEW = "new"
    CONTACTED = "contacted"
    NEGOTIATING = "negotiating"
    CLOSED = "closed"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: "str | LeadStatus") -> "LeadStatus":
        if isinstance(value, LeadStatus):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            allowed = ", ".join(status.value for status in cls)
            raise ValueError(f"Unknown lead status '{value}'. Expected one of: {allowed}") from exc

    def can_move_to(self, target: "LeadStatus") -> bool:
        """Return whether ``target`` is a forward move from this status."""

        if target is self:
            return True
        if target is LeadStatus.REJECTED:
            return self in (LeadStatus.NEW, LeadStatus.CONTACTED)
        if self is LeadStatus.REJECTED:
            return False
        return _PIPELINE.index(target) > _PIPELINE.index(self)


_PIPELINE = (LeadStatus.NEW, LeadStatus.CONTACTED, LeadStatus.NEGOTIATING, LeadStatus.CLOSED)


class EngineStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


# --- Search parameters ---

@dataclass(frozen=True)
class SearchCriteria:
    """What the engine is currently hunting for."""

    niche: str
    country: str = "Brazil"
    mode: str = "quantum"


@dataclass(frozen=True)
class ModeProfile:
    """Remote model variant and poll cadence selected by an operating mode."""

    name: str
    model: str
    batch_size: int
    success_delay: float
    failure_delay: float


# --- Records ---

@dataclass
class SourceReference:
    """A web page the model cited while discovering a lead."""

    title: str = ""
    url: str = ""


@dataclass
class Candidate:
    """Unvalidated lead returned by the remote discovery service."""

    name: str
    company: str
    phone_number: str
    integrity: float
    pitch: str
    headline: Optional[str] = None
    email: Optional[str] = None
    email_subject: Optional[str] = None
    sources: List[SourceReference] = field(default_factory=list)


@dataclass
class Lead:
    """A candidate that passed acceptance and was merged into the working set."""

    id: str
    name: str
    company: str
    phone_number: str
    integrity: float
    pitch: str
    niche: str
    country: str
    created_at: float
    status: LeadStatus = LeadStatus.NEW
    headline: Optional[str] = None
    email: Optional[str] = None
    email_subject: Optional[str] = None
    sources: List[SourceReference] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Lead":
        """Rebuild a lead from :meth:`to_dict` output.

        Raises ``AttributeError``, ``KeyError``, ``TypeError`` or ``ValueError`` when the payload
        does not describe a lead.
        """

        if not isinstance(data, dict):
            raise TypeError(f"Expected a mapping, got {type(data).__name__}")
        sources = [
            SourceReference(title=str(item.get("title", "")), url=str(item.get("url", "")))
            for item in data.get("sources") or []
        ]
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            company=str(data.get("company", "")),
            phone_number=str(data["phone_number"]),
            integrity=float(data.get("integrity", 0)),
            pitch=str(data.get("pitch", "")),
            niche=str(data.get("niche", "")),
            country=str(data.get("country", "")),
            created_at=float(data["created_at"]),
            status=LeadStatus.parse(data.get("status", LeadStatus.NEW.value)),
            headline=data.get("headline"),
            email=data.get("email"),
            email_subject=data.get("email_subject"),
            sources=sources,
        )


# --- Activity log ---

@dataclass(frozen=True)
class ActivityEntry:
    """One operator-visible line in the engine's activity log."""

    timestamp: float
    kind: str
    message: str
