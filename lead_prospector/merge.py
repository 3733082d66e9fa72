"""Helpers for turning accepted candidates into leads and merging them."""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Sequence

from .models import Candidate, Lead, LeadStatus, SearchCriteria
from .validation import normalise_phone


def new_lead_id() -> str:
    return str(uuid.uuid4())


def stamp_candidate(
    candidate: Candidate,
    criteria: SearchCriteria,
    *,
    id_factory: Callable[[], str] = new_lead_id,
    clock: Callable[[], float] = time.time,
) -> Lead:
    """Promote a candidate to a lead owned by the local working set."""

    return Lead(
        id=id_factory(),
        name=candidate.name.strip(),
        company=candidate.company.strip(),
        phone_number=normalise_phone(candidate.phone_number),
        integrity=candidate.integrity,
        pitch=candidate.pitch,
        niche=criteria.niche,
        country=criteria.country,
        created_at=clock(),
        status=LeadStatus.NEW,
        headline=candidate.headline,
        email=candidate.email,
        email_subject=candidate.email_subject,
        sources=list(candidate.sources),
    )


@dataclass
class MergeOutcome:
    """Result of merging one batch of leads into the working set."""

    leads: List[Lead]
    added: List[Lead] = field(default_factory=list)
    duplicates: int = 0


def merge_leads(existing: Sequence[Lead], incoming: Iterable[Lead]) -> MergeOutcome:
    """Merge ``incoming`` into ``existing``, deduplicating by canonical phone.

    Existing leads always win, and so does the first of two incoming leads
    sharing a number. New leads are placed ahead of the existing ones so the
    working set stays newest-first.
    """

    seen = {normalise_phone(lead.phone_number) for lead in existing}
    added: List[Lead] = []
    duplicates = 0

    for lead in incoming:
        key = normalise_phone(lead.phone_number)
        if not key or key in seen:
            duplicates += 1
            continue
        lead.phone_number = key
        seen.add(key)
        added.append(lead)

    return MergeOutcome(leads=added + list(existing), added=added, duplicates=duplicates)
