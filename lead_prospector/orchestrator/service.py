"""Acquisition engine that polls the discovery client and merges its leads."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from ..activity import ActivityLog
from ..config import EngineSettings
from ..errors import DiscoveryFailed, EmptyNicheError, EngineStateError, ValidationError
from ..merge import new_lead_id, stamp_candidate
from ..models import Candidate, EngineStatus, ModeProfile, SearchCriteria
from ..scheduling import ScheduledTask, Scheduler, ThreadingScheduler
from ..store import LeadRepository

LOGGER = logging.getLogger(__name__)


class DiscoveryProtocol(Protocol):
    """Interface the engine expects from a discovery client."""

    def discover(self, criteria: SearchCriteria, profile: ModeProfile) -> List[Candidate]:  # pragma: no cover
        """Return plausible candidates or raise ``DiscoveryFailed``."""


@dataclass
class RunStats:
    """Counters for the current run, reset on every start."""

    cycles: int = 0
    failures: int = 0
    leads_added: int = 0
    duplicates: int = 0


class AcquisitionEngine:
    """Repeatedly discovers leads until stopped.

    Only one discovery call is ever in flight. Stopping does not abort that
    call; its outcome is discarded instead. Each start opens a new run
    generation so a slow call from an earlier run can never merge into a
    later one.
    """

    def __init__(
        self,
        client: DiscoveryProtocol,
        repository: LeadRepository,
        *,
        settings: Optional[EngineSettings] = None,
        scheduler: Optional[Scheduler] = None,
        activity: Optional[ActivityLog] = None,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = new_lead_id,
    ) -> None:
        self._client = client
        self._repository = repository
        self._settings = settings or EngineSettings()
        self._scheduler = scheduler or ThreadingScheduler()
        self._activity = activity or ActivityLog(self._settings.activity_log_size, clock=clock)
        self._clock = clock
        self._id_factory = id_factory
        self._policy = getattr(client, "policy", None) or self._settings.acceptance

        self._lock = threading.RLock()
        self._status = EngineStatus.IDLE
        self._generation = 0
        self._criteria: Optional[SearchCriteria] = None
        self._profile: Optional[ModeProfile] = None
        self._pending: Optional[ScheduledTask] = None
        self._stats = RunStats()
        self._idle = threading.Event()
        self._idle.set()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def criteria(self) -> Optional[SearchCriteria]:
        return self._criteria

    @property
    def activity(self) -> ActivityLog:
        return self._activity

    @property
    def repository(self) -> LeadRepository:
        return self._repository

    @property
    def pending_task(self) -> Optional[ScheduledTask]:
        return self._pending

    @property
    def stats(self) -> RunStats:
        return RunStats(**vars(self._stats))

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        return self._idle.wait(timeout)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def start(self, niche: str, country: Optional[str] = None, mode: Optional[str] = None) -> SearchCriteria:
        niche = (niche or "").strip()
        if not niche:
            raise EmptyNicheError()
        country = (country or "").strip() or self._settings.default_country
        mode = (mode or "").strip() or self._settings.default_mode
        profile = self._settings.profile(mode)
        if profile is None:
            raise ValidationError(f"Unknown mode '{mode}'. Known modes: {', '.join(sorted(self._settings.modes))}")

        with self._lock:
            if self._status is not EngineStatus.IDLE:
                raise EngineStateError(f"Engine is {self._status.value}; stop it before starting again")
            self._generation += 1
            self._criteria = SearchCriteria(niche=niche, country=country, mode=mode)
            self._profile = profile
            self._stats = RunStats()
            self._status = EngineStatus.RUNNING
            self._idle.clear()
            self._activity.info(f"Engine started: {niche} in {country} ({mode} mode)")
            self._schedule(0.0)
            return self._criteria

    def stop(self) -> bool:
        """Request a stop. Return ``False`` if the engine was not running."""

        with self._lock:
            if self._status is not EngineStatus.RUNNING:
                return False
            self._status = EngineStatus.STOPPING
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
            generation = self._generation
            self._scheduler.call_later(self._settings.settle_delay, lambda: self._settle(generation))
            LOGGER.debug("Stop requested for run %s", generation)
            return True

    # ------------------------------------------------------------------
    # Loop internals
    # ------------------------------------------------------------------
    def _is_current(self, generation: int) -> bool:
        return self._status is EngineStatus.RUNNING and generation == self._generation

    def _schedule(self, delay: float) -> None:
        generation = self._generation
        self._pending = self._scheduler.call_later(delay, lambda: self._run_cycle(generation))

    def _settle(self, generation: int) -> None:
        with self._lock:
            if self._status is not EngineStatus.STOPPING or generation != self._generation:
                return
            self._status = EngineStatus.IDLE
            self._idle.set()
            self._activity.info("Operation finished")

    def _run_cycle(self, generation: int) -> None:
        with self._lock:
            if not self._is_current(generation):
                return
            self._pending = None
            criteria = self._criteria
            profile = self._profile
            self._activity.info(f"Searching {criteria.niche} in {criteria.country}...")

        try:
            candidates = self._client.discover(criteria, profile)
        except DiscoveryFailed as exc:
            self._handle_failure(generation, profile, exc)
            return
        except Exception as exc:  # pragma: no cover - defensive programming
            LOGGER.exception("Discovery client %r raised unexpectedly", self._client)
            self._handle_failure(generation, profile, DiscoveryFailed(str(exc)))
            return

        self._handle_success(generation, criteria, profile, candidates)

    def _handle_success(
        self,
        generation: int,
        criteria: SearchCriteria,
        profile: ModeProfile,
        candidates: List[Candidate],
    ) -> None:
        with self._lock:
            if not self._is_current(generation):
                LOGGER.debug("Discarding %s candidates from a stopped run", len(candidates))
                return
            self._stats.cycles += 1

            accepted = self._policy.filter(candidates)
            leads = [
                stamp_candidate(candidate, criteria, id_factory=self._id_factory, clock=self._clock)
                for candidate in accepted
            ]
            outcome = self._repository.merge(leads)
            self._stats.leads_added += len(outcome.added)
            self._stats.duplicates += outcome.duplicates

            if candidates:
                self._activity.success(
                    f"{len(outcome.added)} new leads verified "
                    f"({len(candidates) - len(accepted)} rejected, {outcome.duplicates} duplicates)"
                )
            else:
                self._activity.warning("No verifiable leads in this batch, searching again")
            self._schedule(profile.success_delay)

    def _handle_failure(self, generation: int, profile: ModeProfile, error: DiscoveryFailed) -> None:
        with self._lock:
            if not self._is_current(generation):
                LOGGER.debug("Ignoring failure from a stopped run: %s", error)
                return
            self._stats.cycles += 1
            self._stats.failures += 1
            LOGGER.warning("Discovery failed: %s", error)
            self._activity.error(f"Discovery failed, retrying in {profile.failure_delay:g}s")
            self._schedule(profile.failure_delay)
