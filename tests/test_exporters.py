from urllib.parse import parse_qs, urlparse

import pandas as pd
import pytest

from lead_prospector.io import EXPORT_COLUMNS, export_leads, leads_to_csv, phones_to_text
from lead_prospector.models import Lead, LeadStatus
from lead_prospector.outreach import mailto_link, whatsapp_link


def _sample_leads() -> list:
    return [
        Lead(
            id="a",
            name="Ana Souza",
            company="Clinica Sorriso",
            phone_number="5511988887777",
            integrity=96,
            pitch="Olá Ana, podemos falar 15 min?",
            niche="dentists",
            country="Brazil",
            created_at=1.0,
            email="ana@sorriso.com.br",
            email_subject="Mais pacientes & agenda cheia",
        ),
        Lead(
            id="b",
            name="Bruno Lima",
            company="Odonto, Lima & Filhos",
            phone_number="0551197777666",
            integrity=88,
            pitch="",
            niche="dentists",
            country="Brazil",
            created_at=2.0,
            status=LeadStatus.CONTACTED,
        ),
    ]


def test_phone_list_has_one_number_per_line() -> None:
    assert phones_to_text(_sample_leads()) == "5511988887777\n0551197777666"
    assert phones_to_text([]) == ""


def test_csv_export_uses_fixed_columns(tmp_path) -> None:
    path = export_leads(_sample_leads(), "csv", tmp_path / "out" / "leads.csv")

    frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    assert list(frame.columns) == EXPORT_COLUMNS
    assert frame.loc[0, "phone"] == "5511988887777"
    assert frame.loc[1, "phone"] == "0551197777666"
    assert frame.loc[1, "company"] == "Odonto, Lima & Filhos"
    assert frame.loc[1, "email"] == ""
    assert frame.loc[1, "status"] == "contacted"


def test_csv_text_for_empty_working_set_has_header_only() -> None:
    assert leads_to_csv([]).strip() == ",".join(EXPORT_COLUMNS)


def test_excel_and_phone_exports(tmp_path) -> None:
    pytest.importorskip("openpyxl", reason="Excel export requires openpyxl")
    excel_path = export_leads(_sample_leads(), "xlsx", tmp_path / "leads.xlsx")
    frame = pd.read_excel(excel_path, dtype=str)
    assert frame.loc[0, "name"] == "Ana Souza"

    phones_path = export_leads(_sample_leads(), "phones", tmp_path / "phones.txt")
    assert phones_path.read_text(encoding="utf-8").splitlines() == ["5511988887777", "0551197777666"]


def test_unknown_export_format() -> None:
    with pytest.raises(ValueError):
        export_leads(_sample_leads(), "pdf", "leads.pdf")


def test_whatsapp_link_carries_pitch() -> None:
    ana, bruno = _sample_leads()

    link = urlparse(whatsapp_link(ana))
    assert link.netloc == "wa.me"
    assert link.path == "/5511988887777"
    assert parse_qs(link.query)["text"] == [ana.pitch]
    assert whatsapp_link(bruno) == "https://wa.me/0551197777666"


def test_mailto_link_has_subject_and_body() -> None:
    ana, bruno = _sample_leads()

    link = urlparse(mailto_link(ana))
    assert link.scheme == "mailto"
    assert link.path == "ana@sorriso.com.br"
    query = parse_qs(link.query)
    assert query["subject"] == [ana.email_subject]
    assert query["body"] == [ana.pitch]
    assert mailto_link(bruno) is None
