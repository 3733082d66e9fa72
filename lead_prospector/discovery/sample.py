"""Example provider that replays a fixed payload instead of calling a service."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

from ..models import ModeProfile, SearchCriteria
from .base import RawPayload


class StaticDiscoveryProvider:
    """Returns the same leads on every call.

    The payload can be given inline or read from a JSON file, which makes the
    provider usable from configuration files for demos and dry runs.
    """

    name = "static"

    def __init__(self, leads: Optional[List[Any]] = None, path: Optional[str] = None) -> None:
        if path is not None:
            self._payload: RawPayload = Path(path).read_text(encoding="utf-8")
        else:
            self._payload = json.dumps(leads or [])
        self.calls = 0

    def fetch(self, criteria: SearchCriteria, profile: ModeProfile) -> RawPayload:
        self.calls += 1
        return self._payload
