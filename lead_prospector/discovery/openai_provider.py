"""Discovery provider backed by an OpenAI-compatible chat completions API."""
from __future__ import annotations

import logging
import os
from typing import Any, Optional

from openai import OpenAI

from ..config import ConfigurationError
from ..errors import DiscoveryFailed
from ..models import ModeProfile, SearchCriteria

LOGGER = logging.getLogger(__name__)

SYSTEM_PROMPT = """
You are a real-time B2B lead research agent. You only report people and
companies you are confident exist, with contact numbers taken from real
public sources (company websites, business directories). Never invent data.

Return JSON ONLY. No markdown. No extra text.
""".strip()

USER_PROMPT_TEMPLATE = """
Find {count} REAL business leads for the niche "{niche}" in "{country}".

Rules:
1. Only include a lead if the person verifiably works at the company and the
   phone number is published somewhere real.
2. Detect the predominant language of "{country}" and write "localizedPitch"
   and "emailSubject" in THAT language.
3. "localizedPitch" is a short, persuasive outreach message asking for a
   15 minute call.{call_to_action}
4. "integrity" is your 0-100 certainty that the record is real and current.

Return a JSON array. Each element has exactly these fields:
- name: full real name
- company: real company name
- headline: job title (optional)
- email: professional email (optional)
- phoneNumber: DIGITS ONLY, including country code (e.g. 5511...)
- emailSubject: compelling subject line in the local language
- localizedPitch: outreach message in the local language
- integrity: number 0-100
- sources: array of {{"title": string, "url": string}} you relied on (optional)
""".strip()


def build_prompt(criteria: SearchCriteria, profile: ModeProfile, call_to_action_url: Optional[str] = None) -> str:
    call_to_action = f" Include this booking link: {call_to_action_url}" if call_to_action_url else ""
    return USER_PROMPT_TEMPLATE.format(
        count=profile.batch_size,
        niche=criteria.niche.strip(),
        country=criteria.country.strip(),
        call_to_action=call_to_action,
    )


class OpenAIDiscoveryProvider:
    """Ask a hosted language model for leads.

    ``base_url`` points the SDK at any OpenAI-compatible endpoint. The model
    name comes from the active :class:`ModeProfile`.
    """

    name = "openai"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        api_key_env: str = "OPENAI_API_KEY",
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        max_retries: int = 2,
        temperature: float = 0.2,
        call_to_action_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self._temperature = temperature
        self._call_to_action_url = call_to_action_url
        if client is not None:
            self._client = client
            return

        key = api_key or os.getenv(api_key_env)
        if not key:
            raise ConfigurationError(f"Missing API key: set {api_key_env} or provider.options.api_key")
        self._client = OpenAI(api_key=key, base_url=base_url, timeout=timeout, max_retries=max_retries)

    def fetch(self, criteria: SearchCriteria, profile: ModeProfile) -> str:
        prompt = build_prompt(criteria, profile, self._call_to_action_url)
        LOGGER.debug("Calling model %s for %r", profile.model, criteria.niche)
        response = self._client.chat.completions.create(
            model=profile.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self._temperature,
        )
        if not response.choices:
            raise DiscoveryFailed(f"Model {profile.model} returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise DiscoveryFailed(f"Model {profile.model} returned an empty message")
        return content
