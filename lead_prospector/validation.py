"""Plausibility checks applied to candidates before they become leads."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .models import Candidate

LOGGER = logging.getLogger(__name__)

DEFAULT_MIN_INTEGRITY = 75.0
DEFAULT_MIN_PHONE_DIGITS = 10
# Subscriber part checked for fake patterns behind a real country/area prefix.
DEGENERATE_TAIL_DIGITS = 8


def normalise_phone(value: Optional[str]) -> str:
    """Strip every non-digit character, keeping digit order."""

    if not value:
        return ""
    return "".join(c for c in str(value) if c.isdigit())


def _is_repeated(digits: str) -> bool:
    return len(set(digits)) == 1


def _is_sequential(digits: str) -> bool:
    if len(digits) < 3:
        return False
    steps = {(int(b) - int(a)) % 10 for a, b in zip(digits, digits[1:])}
    return steps == {1} or steps == {9}


def is_degenerate_phone(digits: str, tail_digits: int = DEGENERATE_TAIL_DIGITS) -> bool:
    """Return ``True`` for numbers that look made up.

    A number is degenerate when the whole digit string, or its last
    ``tail_digits`` digits, is one repeated digit (``9999999999``) or a strictly
    ascending or descending run (``1234567890``, ``9876543210``). A
    ``tail_digits`` of zero checks the whole number only.
    """

    if not digits:
        return True
    parts = [digits]
    if 0 < tail_digits < len(digits):
        parts.append(digits[-tail_digits:])
    for part in parts:
        if _is_repeated(part) or _is_sequential(part):
            return True
    return False


@dataclass(frozen=True)
class AcceptancePolicy:
    """Thresholds a candidate must meet before it can be merged."""

    min_integrity: float = DEFAULT_MIN_INTEGRITY
    min_phone_digits: int = DEFAULT_MIN_PHONE_DIGITS
    require_full_name: bool = False
    degenerate_tail_digits: int = DEGENERATE_TAIL_DIGITS

    def rejection_reason(self, candidate: Candidate) -> Optional[str]:
        """Return why ``candidate`` fails the policy, or ``None`` if it passes."""

        if candidate.integrity < self.min_integrity:
            return f"integrity {candidate.integrity:g} below {self.min_integrity:g}"
        digits = normalise_phone(candidate.phone_number)
        if not digits:
            return "missing phone number"
        if len(digits) < self.min_phone_digits:
            return f"phone number shorter than {self.min_phone_digits} digits"
        if is_degenerate_phone(digits, self.degenerate_tail_digits):
            return "degenerate phone number"
        if self.require_full_name and len(candidate.name.split()) < 2:
            return "single-token name"
        return None

    def accepts(self, candidate: Candidate) -> bool:
        return self.rejection_reason(candidate) is None

    def filter(self, candidates: Iterable[Candidate]) -> List[Candidate]:
        accepted: List[Candidate] = []
        for candidate in candidates:
            reason = self.rejection_reason(candidate)
            if reason:
                LOGGER.debug("Discarding candidate %r: %s", candidate.name, reason)
                continue
            accepted.append(candidate)
        return accepted
