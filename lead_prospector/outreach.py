"""Click-to-message links for contacting a lead with its generated pitch."""
from __future__ import annotations

from typing import Optional
from urllib.parse import quote, urlencode

from .models import Lead
from .validation import normalise_phone


def whatsapp_link(lead: Lead, message: Optional[str] = None) -> str:
    """Return a ``wa.me`` URL that opens a chat pre-filled with the pitch."""

    digits = normalise_phone(lead.phone_number)
    if not digits:
        raise ValueError(f"Lead '{lead.id}' has no phone number")
    text = lead.pitch if message is None else message
    if not text:
        return f"https://wa.me/{digits}"
    return f"https://wa.me/{digits}?{urlencode({'text': text}, quote_via=quote)}"


def mailto_link(lead: Lead) -> Optional[str]:
    """Return a ``mailto:`` URL with subject and body, or ``None`` without an email."""

    if not lead.email:
        return None
    params = {}
    if lead.email_subject:
        params["subject"] = lead.email_subject
    if lead.pitch:
        params["body"] = lead.pitch
    query = urlencode(params, quote_via=quote)
    return f"mailto:{lead.email}" + (f"?{query}" if query else "")
