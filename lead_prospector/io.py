"""Export helpers projecting the working set into files for other tools."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

import pandas as pd

from .models import Lead

PathLike = Union[str, Path]

EXPORT_COLUMNS = ["name", "company", "email", "phone", "country", "status", "niche"]
EXPORT_FORMATS = ("phones", "csv", "xlsx")

_DEFAULT_FILENAMES = {
    "phones": "lead_phones.txt",
    "csv": "leads_export.csv",
    "xlsx": "leads_export.xlsx",
}


def default_filename(fmt: str) -> str:
    return _DEFAULT_FILENAMES[_check_format(fmt)]


def _check_format(fmt: str) -> str:
    fmt = fmt.strip().lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'. Use one of: {', '.join(EXPORT_FORMATS)}")
    return fmt


def phones_to_text(leads: Iterable[Lead]) -> str:
    """Plain list of phone numbers, one per line."""

    return "\n".join(lead.phone_number for lead in leads if lead.phone_number)


def leads_to_dataframe(leads: Sequence[Lead]) -> pd.DataFrame:
    """Convert leads into a :class:`pandas.DataFrame` with the export columns."""

    rows = [
        {
            "name": lead.name,
            "company": lead.company,
            "email": lead.email or "",
            "phone": lead.phone_number,
            "country": lead.country,
            "status": lead.status.value,
            "niche": lead.niche,
        }
        for lead in leads
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS, dtype=str)


def leads_to_csv(leads: Sequence[Lead]) -> str:
    return leads_to_dataframe(leads).to_csv(index=False)


def export_leads(leads: Sequence[Lead], fmt: str, path: Optional[PathLike] = None) -> Path:
    """Write ``leads`` to ``path`` in the requested format and return the path."""

    fmt = _check_format(fmt)
    output_path = Path(path) if path is not None else Path(default_filename(fmt))
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "phones":
        text = phones_to_text(leads)
        output_path.write_text(text + ("\n" if text else ""), encoding="utf-8")
    elif fmt == "csv":
        leads_to_dataframe(leads).to_csv(output_path, index=False)
    else:
        leads_to_dataframe(leads).to_excel(output_path, index=False, sheet_name="Leads", engine="openpyxl")
    return output_path


__all__ = [
    "EXPORT_COLUMNS",
    "EXPORT_FORMATS",
    "default_filename",
    "export_leads",
    "leads_to_csv",
    "leads_to_dataframe",
    "phones_to_text",
]
