"""Run-scoped state shared explicitly between import phases."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import uuid4

from bulkimport.domain.model import EntityType, IdMap, RunStatus

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)


class StopFlag:
    """Cooperative cancellation flag, checked at chunk boundaries only."""

    def __init__(self) -> None:
        self._requested = False

    def request(self) -> None:
        self._requested = True

    def clear(self) -> None:
        self._requested = False

    @property
    def requested(self) -> bool:
        return self._requested


@dataclass(slots=True)
class PhaseCounters:
    total: int = 0
    created: int = 0
    skipped: int = 0
    reused: int = 0
    renamed: int = 0


def _new_run_id() -> str:
    return uuid4().hex[:12]


@dataclass(slots=True)
class ImportContext:
    """Mutable state owned by a single import run.

    Components receive only the slices they need (an ``IdMapSlice``, the stop
    check) rather than the whole context.
    """

    run_id: str = field(default_factory=_new_run_id)
    id_map: IdMap = field(default_factory=IdMap)
    counters: dict[EntityType, PhaseCounters] = field(
        default_factory=dict[EntityType, PhaseCounters]
    )
    stop: StopFlag = field(default_factory=StopFlag)
    errors: int = 0
    status: RunStatus = RunStatus.RUNNING
    _stop_logged: bool = field(default=False, init=False, repr=False)

    @property
    def has_error(self) -> bool:
        return self.errors > 0

    def counters_for(self, entity_type: EntityType) -> PhaseCounters:
        if entity_type not in self.counters:
            self.counters[entity_type] = PhaseCounters()
        return self.counters[entity_type]

    def record_error(self) -> None:
        self.errors += 1
        self.status = RunStatus.ERROR

    def is_error_or_stop(self) -> bool:
        """Return whether the run must not go on; logs a stop request once."""

        if self.has_error:
            return True
        if self.stop.requested:
            if not self._stop_logged:
                log.warning("Run %s: stop requested, halting at the next boundary", self.run_id)
                self._stop_logged = True
            self.status = RunStatus.STOPPED
            return True
        return False

    @property
    def halt_check(self) -> Callable[[], bool]:
        return self.is_error_or_stop

    def finish(self) -> RunStatus:
        if self.status is RunStatus.RUNNING:
            self.status = RunStatus.COMPLETED
        return self.status

    def reset(self) -> None:
        """Start a fresh run: forget ids, counters and errors."""
        self.run_id = _new_run_id()
        self.id_map.reset()
        self.counters.clear()
        self.stop.clear()
        self.errors = 0
        self.status = RunStatus.RUNNING
        self._stop_logged = False
