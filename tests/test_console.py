from __future__ import annotations

import pytest

from lead_prospector.errors import (
    ConfirmationRequired,
    EmptyNicheError,
    EngineStateError,
    UnknownLeadError,
    ValidationError,
)
from lead_prospector.models import Candidate, EngineStatus, LeadStatus
from lead_prospector.orchestrator import AcquisitionEngine, OperatorConsole
from lead_prospector.scheduling import ManualScheduler
from lead_prospector.store import LeadRepository, MemoryBlobStore


class OneBatchClient:
    def __init__(self, candidates) -> None:
        self.candidates = list(candidates)

    def discover(self, criteria, profile):
        batch, self.candidates = self.candidates, []
        return batch


def _console_with_leads():
    scheduler = ManualScheduler()
    repository = LeadRepository(MemoryBlobStore())
    client = OneBatchClient(
        [
            Candidate(name="Ana Souza", company="Sorriso", phone_number="5511988887777", integrity=96, pitch="Oi"),
            Candidate(name="Bruno Lima", company="Odonto", phone_number="5511977776666", integrity=90, pitch="Oi"),
        ]
    )
    engine = AcquisitionEngine(client, repository, scheduler=scheduler)
    console = OperatorConsole(repository, engine)
    console.start("dentists", "Brazil")
    scheduler.run_next()
    return console, scheduler


def test_console_runs_engine_and_manages_leads() -> None:
    console, scheduler = _console_with_leads()
    assert len(console.list_leads()) == 2

    ana = console.list_leads("ana")[0]
    assert console.set_status(ana.id, "contacted").status is LeadStatus.CONTACTED
    assert [lead.id for lead in console.list_leads(status="contacted")] == [ana.id]

    deleted = console.delete_record(ana.id)
    assert deleted.name == "Ana Souza"
    with pytest.raises(UnknownLeadError):
        console.delete_record(ana.id)

    assert console.stop() is True
    scheduler.advance(5)
    assert console.engine.status is EngineStatus.IDLE


def test_start_with_blank_niche_is_a_typed_error() -> None:
    repository = LeadRepository(MemoryBlobStore())
    engine = AcquisitionEngine(OneBatchClient([]), repository, scheduler=ManualScheduler())
    console = OperatorConsole(repository, engine)

    with pytest.raises(EmptyNicheError):
        console.start("")
    assert engine.status is EngineStatus.IDLE


def test_clear_all_requires_confirmation() -> None:
    console, _ = _console_with_leads()

    with pytest.raises(ConfirmationRequired):
        console.clear_all()
    assert len(console.list_leads()) == 2

    assert console.clear_all(confirm=True) == 2
    assert console.list_leads() == []
    assert console.activity.entries()[-1].kind == "warning"


def test_export_returns_text_or_writes_file(tmp_path) -> None:
    console, _ = _console_with_leads()

    phones = console.export("phones")
    assert sorted(phones.splitlines()) == ["5511977776666", "5511988887777"]
    assert console.export("CSV").splitlines()[0] == "name,company,email,phone,country,status,niche"

    path = console.export("csv", tmp_path / "leads.csv")
    assert path.exists()

    with pytest.raises(ValidationError):
        console.export("xlsx")
    with pytest.raises(ValidationError):
        console.export("pdf")


def test_console_without_engine_manages_stored_leads_only() -> None:
    console = OperatorConsole(LeadRepository(MemoryBlobStore()))

    with pytest.raises(EngineStateError):
        console.start("dentists")
    with pytest.raises(ValidationError):
        console.list_leads(status="archived")
    assert console.stats().total == 0
