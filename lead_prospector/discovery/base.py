"""Provider interface and parsing of untrusted discovery responses."""
from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, List, Optional, Protocol, Union

from ..errors import DiscoveryFailed
from ..models import Candidate, ModeProfile, SearchCriteria, SourceReference

LOGGER = logging.getLogger(__name__)

RawPayload = Union[str, bytes, list, dict, None]

REQUIRED_FIELDS = ("name", "company", "phoneNumber", "integrity", "localizedPitch")

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


class DiscoveryProvider(Protocol):
    """A remote service that proposes leads for a niche and country."""

    name: str

    def fetch(self, criteria: SearchCriteria, profile: ModeProfile) -> RawPayload:  # pragma: no cover - runtime protocol
        """Return the raw response body (text or decoded JSON)."""


def _decode(payload: RawPayload) -> Any:
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    if not isinstance(payload, str):
        return payload

    text = payload.strip()
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1).strip()
    if not text:
        raise DiscoveryFailed("Discovery response was empty")
    try:
        return json.loads(text)
    except ValueError as exc:
        raise DiscoveryFailed(f"Discovery response is not valid JSON: {exc}") from exc


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


def _integrity(value: Any, index: int) -> float:
    if isinstance(value, bool):
        raise DiscoveryFailed(f"Candidate {index} has a boolean integrity score")
    if isinstance(value, (int, float)):
        score = float(value)
    elif isinstance(value, str):
        try:
            score = float(value.strip().rstrip("%"))
        except ValueError as exc:
            raise DiscoveryFailed(f"Candidate {index} has a non-numeric integrity score {value!r}") from exc
    else:
        raise DiscoveryFailed(f"Candidate {index} has an integrity score of type {type(value).__name__}")
    if not math.isfinite(score):
        raise DiscoveryFailed(f"Candidate {index} has a non-finite integrity score")
    return score


def _sources(value: Any) -> List[SourceReference]:
    if not isinstance(value, list):
        return []
    sources: List[SourceReference] = []
    for item in value:
        if isinstance(item, dict):
            url = _optional_text(item.get("url") or item.get("uri"))
            if url:
                sources.append(SourceReference(title=_optional_text(item.get("title")) or "", url=url))
        elif isinstance(item, str) and item.strip():
            sources.append(SourceReference(url=item.strip()))
    return sources


def _candidate(item: Any, index: int) -> Candidate:
    if not isinstance(item, dict):
        raise DiscoveryFailed(f"Candidate {index} is a {type(item).__name__}, expected an object")
    missing = [key for key in REQUIRED_FIELDS if key not in item]
    if missing:
        raise DiscoveryFailed(f"Candidate {index} is missing required fields: {', '.join(missing)}")
    for key in ("name", "company", "localizedPitch"):
        if not isinstance(item[key], str):
            raise DiscoveryFailed(f"Candidate {index} field '{key}' must be a string")
    phone = item["phoneNumber"]
    if isinstance(phone, (int, float)) and not isinstance(phone, bool):
        if isinstance(phone, float) and not math.isfinite(phone):
            raise DiscoveryFailed(f"Candidate {index} has a non-finite phone number")
        phone = str(int(phone))
    if not isinstance(phone, str):
        raise DiscoveryFailed(f"Candidate {index} field 'phoneNumber' must be a string")

    return Candidate(
        name=item["name"].strip(),
        company=item["company"].strip(),
        phone_number=phone.strip(),
        integrity=_integrity(item["integrity"], index),
        pitch=item["localizedPitch"].strip(),
        headline=_optional_text(item.get("headline")),
        email=_optional_text(item.get("email")),
        email_subject=_optional_text(item.get("emailSubject")),
        sources=_sources(item.get("sources") or item.get("proof")),
    )


def parse_candidates(payload: RawPayload) -> List[Candidate]:
    """Decode a discovery response into candidates.

    Accepts a JSON array of lead objects, or an object carrying that array
    under ``leads``. Any structural problem rejects the whole batch with
    :class:`DiscoveryFailed`.
    """

    data = _decode(payload)
    if isinstance(data, dict) and "leads" in data:
        data = data["leads"]
    if not isinstance(data, list):
        raise DiscoveryFailed(f"Discovery response must be a list of leads, got {type(data).__name__}")
    return [_candidate(item, index) for index, item in enumerate(data)]
