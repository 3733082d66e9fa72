import json
import random

import pytest

from lead_prospector.errors import InvalidTransitionError, UnknownLeadError, ValidationError
from lead_prospector.merge import merge_leads, stamp_candidate
from lead_prospector.models import Candidate, Lead, LeadStatus, SearchCriteria
from lead_prospector.store import FileBlobStore, LeadRepository, MemoryBlobStore, dump_leads

CRITERIA = SearchCriteria(niche="dentists", country="Brazil")


def _lead(lead_id: str, phone: str, created_at: float = 0.0, **overrides) -> Lead:
    values = dict(
        id=lead_id,
        name=f"Lead {lead_id}",
        company="Clinica",
        phone_number=phone,
        integrity=90.0,
        pitch="Oi",
        niche="dentists",
        country="Brazil",
        created_at=created_at,
    )
    values.update(overrides)
    return Lead(**values)


def test_stamp_candidate_normalises_and_assigns_local_identity() -> None:
    candidate = Candidate(
        name=" Ana Souza ",
        company="Clinica Sorriso",
        phone_number="+55 (11) 98888-7777",
        integrity=96,
        pitch="Ola",
    )

    lead = stamp_candidate(candidate, CRITERIA, id_factory=lambda: "id-1", clock=lambda: 1700000000.0)

    assert lead.id == "id-1"
    assert lead.name == "Ana Souza"
    assert lead.phone_number == "5511988887777"
    assert lead.status is LeadStatus.NEW
    assert lead.created_at == 1700000000.0
    assert (lead.niche, lead.country) == ("dentists", "Brazil")


def test_merge_keeps_existing_lead_on_phone_conflict() -> None:
    existing = [_lead("old", "5511988887777", name="Original")]
    incoming = [_lead("new", "+55 11 98888-7777", name="Impostor")]

    outcome = merge_leads(existing, incoming)

    assert outcome.added == []
    assert outcome.duplicates == 1
    assert [lead.id for lead in outcome.leads] == ["old"]
    assert outcome.leads[0].name == "Original"


def test_merge_never_produces_duplicate_phones() -> None:
    rng = random.Random(7)
    phones = ["5511988887777", "5511977776666", "5521966665555", "5531955554444"]
    working: list = []
    for batch in range(20):
        incoming = [
            _lead(f"{batch}-{i}", rng.choice(phones).replace("55", "+55 ", 1)) for i in range(rng.randint(0, 4))
        ]
        working = merge_leads(working, incoming).leads
        canonical = [lead.phone_number for lead in working]
        assert len(canonical) == len(set(canonical))
    assert {lead.phone_number for lead in working} <= set(phones)


def test_merge_places_new_leads_first() -> None:
    outcome = merge_leads([_lead("a", "5511988887777")], [_lead("b", "5511977776666")])

    assert [lead.id for lead in outcome.leads] == ["b", "a"]


def test_repository_persists_every_mutation(tmp_path) -> None:
    path = tmp_path / "leads.json"
    repository = LeadRepository(FileBlobStore(path))

    repository.merge([_lead("a", "5511988887777"), _lead("b", "5511977776666")])
    repository.set_status("a", "contacted")
    repository.delete("b")

    reloaded = LeadRepository(FileBlobStore(path))
    assert [lead.id for lead in reloaded.leads()] == ["a"]
    assert reloaded.get("a").status is LeadStatus.CONTACTED


def test_repository_merge_without_new_leads_does_not_write() -> None:
    blob = MemoryBlobStore()
    repository = LeadRepository(blob)
    repository.merge([_lead("a", "5511988887777")])
    saves = blob.saves

    outcome = repository.merge([_lead("dup", "5511988887777")])

    assert outcome.added == []
    assert blob.saves == saves
    assert len(repository) == 1


@pytest.mark.parametrize(
    "blob",
    ["{not json", json.dumps({"id": "a"}), json.dumps([{"id": "a"}]), json.dumps([{"status": "weird"}])],
)
def test_corrupt_store_falls_back_to_empty(blob: str, caplog) -> None:
    repository = LeadRepository(MemoryBlobStore(blob))

    assert repository.leads() == []
    assert "corrupt" in caplog.text.lower()


def test_loading_deduplicates_legacy_blobs() -> None:
    blob = dump_leads([_lead("a", "5511988887777"), _lead("b", "55 11 98888 7777")])

    repository = LeadRepository(MemoryBlobStore(blob))

    assert [lead.id for lead in repository.leads()] == ["a"]


def test_status_moves_forward_only() -> None:
    repository = LeadRepository(MemoryBlobStore())
    repository.merge([_lead("a", "5511988887777"), _lead("b", "5511977776666")])

    repository.set_status("a", LeadStatus.NEGOTIATING)
    with pytest.raises(InvalidTransitionError):
        repository.set_status("a", "new")
    with pytest.raises(InvalidTransitionError):
        repository.set_status("a", "rejected")
    repository.set_status("a", "closed")

    repository.set_status("b", "rejected")
    with pytest.raises(InvalidTransitionError):
        repository.set_status("b", "contacted")
    assert repository.set_status("b", "rejected").status is LeadStatus.REJECTED

    with pytest.raises(ValidationError):
        repository.set_status("b", "archived")
    with pytest.raises(UnknownLeadError):
        repository.set_status("missing", "closed")


def test_clear_removes_blob(tmp_path) -> None:
    path = tmp_path / "leads.json"
    repository = LeadRepository(FileBlobStore(path))
    repository.merge([_lead("a", "5511988887777")])

    assert repository.clear() == 1
    assert not path.exists()
    assert len(LeadRepository(FileBlobStore(path))) == 0


def test_search_and_stats() -> None:
    repository = LeadRepository(MemoryBlobStore())
    repository.merge(
        [
            _lead("a", "5511988887777", created_at=1.0, name="Ana Souza", company="Sorriso", integrity=80.0),
            _lead("b", "5511977776666", created_at=2.0, name="Bruno", company="Odonto Ana", integrity=100.0),
            _lead("c", "351912345670", created_at=3.0, name="Carla", country="Portugal", integrity=90.0),
        ]
    )
    repository.set_status("c", "contacted")

    assert [lead.id for lead in repository.search("ana")] == ["b", "a"]
    assert [lead.id for lead in repository.search("3519")] == ["c"]
    assert [lead.id for lead in repository.search(status="contacted")] == ["c"]
    assert [lead.id for lead in repository.search()] == ["c", "b", "a"]

    stats = repository.stats()
    assert stats.total == 3
    assert stats.by_status["new"] == 2
    assert stats.by_status["contacted"] == 1
    assert stats.average_integrity == pytest.approx(90.0)
    assert stats.countries == ["Brazil", "Portugal"]


def test_undecodable_store_file_falls_back_to_empty(tmp_path, caplog) -> None:
    path = tmp_path / "leads.json"
    path.write_bytes(b"\xff\xfe\x00garbage")

    repository = LeadRepository(FileBlobStore(path))

    assert repository.leads() == []
    assert "corrupt" in caplog.text.lower()
    repository.merge([_lead("a", "5511988887777")])
    assert len(LeadRepository(FileBlobStore(path))) == 1


def test_loading_drops_stored_leads_without_phone(caplog) -> None:
    blob = dump_leads([_lead("a", "5511988887777"), _lead("b", "")])

    repository = LeadRepository(MemoryBlobStore(blob))

    assert [lead.id for lead in repository.leads()] == ["a"]
    assert "without a phone number" in caplog.text
    assert "duplicate" not in caplog.text


def test_search_matches_formatted_phone_terms() -> None:
    repository = LeadRepository(MemoryBlobStore())
    repository.merge(
        [
            _lead("a", "5511988887777", name="Ana Souza", company="Clinica 24h"),
            _lead("b", "351912345670", name="Carla", company="Odonto"),
        ]
    )

    assert [lead.id for lead in repository.search("+55 11")] == ["a"]
    assert [lead.id for lead in repository.search("(351) 912")] == ["b"]
    assert [lead.id for lead in repository.search("24h")] == ["a"]
