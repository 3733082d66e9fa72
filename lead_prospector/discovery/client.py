"""Discovery client wrapping a provider with parsing and acceptance rules."""
from __future__ import annotations

import logging
from typing import List, Optional

from ..errors import DiscoveryFailed
from ..models import Candidate, ModeProfile, SearchCriteria
from ..validation import AcceptancePolicy
from .base import DiscoveryProvider, parse_candidates

LOGGER = logging.getLogger(__name__)


class DiscoveryClient:
    """Fetches candidates from a provider and keeps only plausible ones.

    The client is stateless between calls. Every provider error, including
    unexpected exceptions raised by third-party SDKs, is reported as
    :class:`DiscoveryFailed`; an empty list is a normal result.
    """

    def __init__(self, provider: DiscoveryProvider, *, policy: Optional[AcceptancePolicy] = None) -> None:
        self._provider = provider
        self._policy = policy or AcceptancePolicy()

    @property
    def provider(self) -> DiscoveryProvider:
        return self._provider

    @property
    def policy(self) -> AcceptancePolicy:
        return self._policy

    @property
    def name(self) -> str:
        return getattr(self._provider, "name", self._provider.__class__.__name__)

    def discover(self, criteria: SearchCriteria, profile: ModeProfile) -> List[Candidate]:
        if not criteria.niche.strip():
            raise ValueError("Discovery requires a non-empty niche")

        LOGGER.debug("Requesting %s leads from %s for %s", profile.batch_size, self.name, criteria)
        try:
            payload = self._provider.fetch(criteria, profile)
        except DiscoveryFailed:
            raise
        except Exception as exc:
            LOGGER.debug("Provider %s raised", self.name, exc_info=True)
            raise DiscoveryFailed(f"{self.name} request failed: {exc}") from exc

        try:
            candidates = parse_candidates(payload)
        except DiscoveryFailed:
            raise
        except Exception as exc:
            LOGGER.debug("Could not parse response from %s", self.name, exc_info=True)
            raise DiscoveryFailed(f"{self.name} returned an unreadable response: {exc}") from exc
        accepted = self._policy.filter(candidates)
        LOGGER.info(
            "%s returned %s candidates for %r in %s, %s accepted",
            self.name,
            len(candidates),
            criteria.niche,
            criteria.country,
            len(accepted),
        )
        return accepted
