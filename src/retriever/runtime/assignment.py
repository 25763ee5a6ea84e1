from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, Tuple

from retriever.world.workers import WorkerRecord


@dataclass(slots=True)
class ZoneChoice:
    zone_id: str
    shortfall: int
    replaced: str | None = None


def _counts_toward(worker: WorkerRecord, zone_id: str) -> bool:
    return (
        worker.initialized
        and worker.target_zone == zone_id
        and not worker.replaced
        and worker.is_alive()
    )


def _replaceable(
    pool: Sequence[WorkerRecord], tasks: Sequence[str], *, horizon: int | None
) -> List[Tuple[int, int, str, WorkerRecord]]:
    order = {zone_id: index for index, zone_id in enumerate(tasks)}
    candidates = []
    for worker in pool:
        if worker.target_zone not in order or not _counts_toward(worker, worker.target_zone):
            continue
        if worker.ticks_to_live is None:
            continue
        if horizon is not None and worker.ticks_to_live > horizon:
            continue
        candidates.append((worker.ticks_to_live, order[worker.target_zone], worker.name, worker))
    candidates.sort(key=lambda item: item[:3])
    return candidates


def choose_zone(
    tasks: Sequence[str],
    demand_fn: Callable[[str], int],
    worker_pool: Iterable[WorkerRecord],
    *,
    horizon: int | None = None,
) -> ZoneChoice | None:
    """Pick a task zone for a new worker.

    Under-staffed zones win in discovery order.  When every zone is staffed,
    the live worker with the fewest ticks to live hands its slot over and is
    flagged ``replaced`` (ties by discovery order, then name).
    """

    if not tasks:
        return None
    pool = list(worker_pool)

    for zone_id in tasks:
        assigned = sum(1 for worker in pool if _counts_toward(worker, zone_id))
        shortfall = int(demand_fn(zone_id)) - assigned
        if shortfall > 0:
            return ZoneChoice(zone_id=zone_id, shortfall=shortfall)

    candidates = _replaceable(pool, tasks, horizon=horizon)
    if not candidates:
        return None
    _, _, _, worker = candidates[0]
    worker.replaced = True
    return ZoneChoice(zone_id=worker.target_zone, shortfall=0, replaced=worker.name)


def assign_zone(
    tasks: Sequence[str],
    demand_fn: Callable[[str], int],
    worker_pool: Iterable[WorkerRecord],
    *,
    horizon: int | None = None,
) -> str | None:
    choice = choose_zone(tasks, demand_fn, worker_pool, horizon=horizon)
    return choice.zone_id if choice is not None else None


__all__ = ["ZoneChoice", "assign_zone", "choose_zone"]
