from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List


class WorkerPhase(str, Enum):
    UNINITIALIZED = "UNINITIALIZED"
    ASSIGNED = "ASSIGNED"
    EN_ROUTE_OUT = "EN_ROUTE_OUT"
    AT_SOURCE = "AT_SOURCE"
    RETURN_PENDING = "RETURN_PENDING"
    EN_ROUTE_BACK = "EN_ROUTE_BACK"
    AT_RETURN = "AT_RETURN"


@dataclass(slots=True)
class WorkerRecord:
    name: str
    birth_zone: str
    current_zone: str | None = None
    ticks_to_live: int | None = None
    spawning: bool = False
    carry: int = 0
    carry_capacity: int = 0

    target_zone: str | None = None
    return_zone: str | None = None
    needs_return_zone: bool = False
    initialized: bool = False
    multi_zone: bool = False

    phase: WorkerPhase = WorkerPhase.UNINITIALIZED
    delivering: bool = False
    retreating: bool = False
    replaced: bool = False

    def __post_init__(self) -> None:
        if not self.birth_zone:
            raise ValueError(f"Worker {self.name!r} has no birth zone")
        if self.current_zone is None:
            self.current_zone = self.birth_zone

    @property
    def is_full(self) -> bool:
        return self.carry_capacity > 0 and self.carry >= self.carry_capacity

    @property
    def is_empty(self) -> bool:
        return self.carry <= 0

    def is_alive(self) -> bool:
        return self.ticks_to_live is None or self.ticks_to_live > 0


@dataclass(slots=True)
class WorkerRoster:
    workers: Dict[str, WorkerRecord] = field(default_factory=dict)

    def add(self, worker: WorkerRecord) -> WorkerRecord:
        if worker.name in self.workers:
            raise ValueError(f"Worker {worker.name} already on the roster")
        self.workers[worker.name] = worker
        return worker

    def get(self, name: str) -> WorkerRecord | None:
        return self.workers.get(name)

    def remove(self, name: str) -> None:
        self.workers.pop(name, None)

    def __iter__(self) -> Iterator[WorkerRecord]:
        for name in sorted(self.workers):
            yield self.workers[name]

    def __len__(self) -> int:
        return len(self.workers)

    def alive(self) -> List[WorkerRecord]:
        return [worker for worker in self if worker.is_alive()]

    def assigned_to(self, zone_id: str) -> List[WorkerRecord]:
        return [
            worker
            for worker in self
            if worker.initialized
            and worker.target_zone == zone_id
            and not worker.replaced
            and worker.is_alive()
        ]

    def signature(self) -> str:
        """Return a deterministic signature of assignments and lifecycle state."""

        parts = []
        for worker in self:
            if not worker.initialized:
                continue
            target = worker.target_zone if worker.target_zone is not None else "-"
            back = worker.return_zone if worker.return_zone is not None else "-"
            flags = "".join(
                flag
                for flag, on in (
                    ("N", worker.needs_return_zone),
                    ("D", worker.delivering),
                    ("R", worker.replaced),
                )
                if on
            )
            parts.append(f"{worker.name}:{target}:{back}:{worker.phase.name}:{flags or '-'}")
        return "|".join(parts)


def ensure_roster(ctx) -> WorkerRoster:
    roster = getattr(ctx, "roster", None)
    if isinstance(roster, WorkerRoster):
        return roster

    roster = WorkerRoster()
    setattr(ctx, "roster", roster)
    return roster


__all__ = [
    "WorkerPhase",
    "WorkerRecord",
    "WorkerRoster",
    "ensure_roster",
]
