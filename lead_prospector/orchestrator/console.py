"""Operator-facing commands over the engine and the working set."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from ..activity import ActivityLog
from ..errors import ConfirmationRequired, EngineStateError, ValidationError
from ..io import EXPORT_FORMATS, export_leads, leads_to_csv, phones_to_text
from ..models import Lead, LeadStatus, SearchCriteria
from ..store import LeadRepository, LeadStats
from .service import AcquisitionEngine

LOGGER = logging.getLogger(__name__)


class OperatorConsole:
    """Single entry point for the commands an operator can issue.

    Every command either succeeds or raises a :class:`ValidationError`
    subclass describing why it was refused.
    """

    def __init__(self, repository: LeadRepository, engine: Optional[AcquisitionEngine] = None) -> None:
        self._repository = repository
        self._engine = engine
        self._activity = engine.activity if engine is not None else ActivityLog()

    @property
    def engine(self) -> Optional[AcquisitionEngine]:
        return self._engine

    @property
    def repository(self) -> LeadRepository:
        return self._repository

    @property
    def activity(self) -> ActivityLog:
        return self._activity

    def _require_engine(self) -> AcquisitionEngine:
        if self._engine is None:
            raise EngineStateError("No acquisition engine is attached to this console")
        return self._engine

    # --- run control ---

    def start(self, niche: str, country: Optional[str] = None, mode: Optional[str] = None) -> SearchCriteria:
        return self._require_engine().start(niche, country, mode)

    def stop(self) -> bool:
        return self._require_engine().stop()

    # --- working set ---

    def list_leads(self, search: str = "", status: Optional[str] = None) -> List[Lead]:
        if status:
            try:
                LeadStatus.parse(status)
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
        return self.repository.search(search, status)

    def get_lead(self, lead_id: str) -> Lead:
        return self.repository.get(lead_id)

    def delete_record(self, lead_id: str) -> Lead:
        lead = self.repository.delete(lead_id)
        self._activity.info(f"Deleted lead {lead.name} ({lead.phone_number})")
        return lead

    def set_status(self, lead_id: str, status: str) -> Lead:
        lead = self.repository.set_status(lead_id, status)
        LOGGER.info("Lead %s is now %s", lead_id, lead.status.value)
        return lead

    def clear_all(self, confirm: bool = False) -> int:
        if not confirm:
            raise ConfirmationRequired("Clearing every lead requires confirmation")
        removed = self.repository.clear()
        self._activity.warning(f"Lead database cleared ({removed} leads removed)")
        return removed

    def stats(self) -> LeadStats:
        return self.repository.stats()

    # --- exports ---

    def export(self, fmt: str, path: "str | Path | None" = None) -> "str | Path":
        """Export the working set.

        Without ``path`` the text formats are returned as a string; ``xlsx``
        always needs a destination file.
        """

        fmt = fmt.strip().lower()
        if fmt not in EXPORT_FORMATS:
            raise ValidationError(f"Unsupported export format '{fmt}'. Use one of: {', '.join(EXPORT_FORMATS)}")
        leads = self.repository.leads()
        if path is None:
            if fmt == "phones":
                return phones_to_text(leads)
            if fmt == "csv":
                return leads_to_csv(leads)
            raise ValidationError("Excel exports need an output path")
        output = export_leads(leads, fmt, path)
        LOGGER.info("Exported %s leads to %s", len(leads), output)
        return output
