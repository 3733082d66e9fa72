"""Durable working set of accepted leads on top of a single-blob store."""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from .errors import InvalidTransitionError, StorageCorrupt, UnknownLeadError, ValidationError
from .merge import MergeOutcome, merge_leads
from .models import Lead, LeadStatus
from .validation import normalise_phone

LOGGER = logging.getLogger(__name__)


# --- Blob stores ---

class BlobStore(Protocol):
    """A named slot holding one serialized document."""

    def load(self) -> Optional[str]:  # pragma: no cover - runtime protocol
        ...

    def save(self, text: str) -> None:  # pragma: no cover - runtime protocol
        ...

    def clear(self) -> None:  # pragma: no cover - runtime protocol
        ...


class MemoryBlobStore:
    def __init__(self, text: Optional[str] = None) -> None:
        self.text = text
        self.saves = 0

    def load(self) -> Optional[str]:
        return self.text

    def save(self, text: str) -> None:
        self.text = text
        self.saves += 1

    def clear(self) -> None:
        self.text = None


class FileBlobStore:
    """Keeps the blob in a JSON file, replaced atomically on every save."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageCorrupt(f"Cannot read lead store {self.path}: {exc}") from exc

    def save(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


# --- (De)serialisation ---

def dump_leads(leads: Iterable[Lead]) -> str:
    return json.dumps([lead.to_dict() for lead in leads], ensure_ascii=False, indent=2)


def parse_leads(text: str) -> List[Lead]:
    """Decode a persisted working set, raising :class:`StorageCorrupt` on bad data."""

    try:
        data = json.loads(text)
    except ValueError as exc:
        raise StorageCorrupt(f"Stored leads are not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise StorageCorrupt(f"Stored leads must be a list, got {type(data).__name__}")
    try:
        return [Lead.from_dict(item) for item in data]
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise StorageCorrupt(f"Stored lead record is invalid: {exc!r}") from exc


# --- Repository ---

@dataclass
class LeadStats:
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    average_integrity: float = 0.0
    countries: List[str] = field(default_factory=list)


class LeadRepository:
    """Owns the deduplicated working set and persists it after every change."""

    def __init__(self, blob_store: BlobStore) -> None:
        self._blob_store = blob_store
        self._lock = threading.RLock()
        self._leads: List[Lead] = self._load()

    def _load(self) -> List[Lead]:
        try:
            text = self._blob_store.load()
            leads = parse_leads(text) if text else []
        except StorageCorrupt as exc:
            LOGGER.warning("Discarding corrupt lead store: %s", exc)
            return []
        if not leads:
            return []

        unreachable = [lead for lead in leads if not normalise_phone(lead.phone_number)]
        if unreachable:
            LOGGER.warning("Dropped %s stored leads without a phone number", len(unreachable))
            leads = [lead for lead in leads if normalise_phone(lead.phone_number)]

        # Older blobs may predate phone normalisation; keep first-seen priority.
        outcome = merge_leads([], leads)
        if outcome.duplicates:
            LOGGER.warning("Dropped %s duplicate leads while loading the store", outcome.duplicates)
        LOGGER.debug("Loaded %s leads from store", len(outcome.added))
        return outcome.added

    def _persist(self) -> None:
        self._blob_store.save(dump_leads(self._leads))

    # ------------------------------------------------------------------
    def __len__(self) -> int:
        with self._lock:
            return len(self._leads)

    def leads(self) -> List[Lead]:
        with self._lock:
            return list(self._leads)

    def get(self, lead_id: str) -> Lead:
        with self._lock:
            for lead in self._leads:
                if lead.id == lead_id:
                    return lead
        raise UnknownLeadError(lead_id)

    # ------------------------------------------------------------------
    def merge(self, incoming: Iterable[Lead]) -> MergeOutcome:
        with self._lock:
            outcome = merge_leads(self._leads, incoming)
            if outcome.added:
                self._leads = outcome.leads
                self._persist()
            return outcome

    def delete(self, lead_id: str) -> Lead:
        with self._lock:
            lead = self.get(lead_id)
            self._leads = [item for item in self._leads if item.id != lead_id]
            self._persist()
            return lead

    def set_status(self, lead_id: str, status: "str | LeadStatus") -> Lead:
        try:
            target = LeadStatus.parse(status)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        with self._lock:
            lead = self.get(lead_id)
            if lead.status is target:
                return lead
            if not lead.status.can_move_to(target):
                raise InvalidTransitionError(
                    f"Cannot move lead '{lead_id}' from {lead.status.value} to {target.value}"
                )
            lead.status = target
            self._persist()
            return lead

    def clear(self) -> int:
        with self._lock:
            removed = len(self._leads)
            self._leads = []
            self._blob_store.clear()
            return removed

    # ------------------------------------------------------------------
    def search(self, term: str = "", status: "str | LeadStatus | None" = None) -> List[Lead]:
        """Case-insensitive match on name, company or phone, newest first."""

        needle = term.strip().lower()
        digits = "" if any(c.isalpha() for c in needle) else normalise_phone(needle)
        wanted = LeadStatus.parse(status) if status else None
        with self._lock:
            leads = list(self._leads)

        matches = [
            lead
            for lead in leads
            if (wanted is None or lead.status is wanted)
            and (
                not needle
                or needle in lead.name.lower()
                or needle in lead.company.lower()
                or (digits and digits in lead.phone_number)
            )
        ]
        return sorted(matches, key=lambda lead: lead.created_at, reverse=True)

    def stats(self) -> LeadStats:
        leads = self.leads()
        by_status = {status.value: 0 for status in LeadStatus}
        for lead in leads:
            by_status[lead.status.value] += 1
        average = sum(lead.integrity for lead in leads) / len(leads) if leads else 0.0
        countries = sorted({lead.country for lead in leads if lead.country})
        return LeadStats(total=len(leads), by_status=by_status, average_integrity=average, countries=countries)
