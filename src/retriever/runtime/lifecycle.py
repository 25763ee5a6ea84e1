"""Per-worker remote retrieval lifecycle.

A worker is assigned a task zone once, travels there, collects, works out the
nearest zone it can deliver to, hauls back and deposits, then repeats for the
rest of its life.  Threat retreat pre-empts all of that every tick.

Every step is safe to re-enter: resolving the return zone may run again on a
later tick (or inline from delivery) until it succeeds.
"""

from __future__ import annotations

from retriever.world.workers import WorkerPhase, WorkerRecord, ensure_roster
from retriever.world.zones import MoveResult

from .assignment import choose_zone
from .config import ensure_config
from .demand import demand
from .discovery import discover_tasks
from .telemetry import ERROR, INFO, WARNING, ensure_metrics, record_event


def initialize(ctx, worker: WorkerRecord) -> None:
    if worker.initialized:
        return

    cfg = ensure_config(ctx)
    pool = [other for other in ensure_roster(ctx) if other is not worker]
    choice = choose_zone(
        discover_tasks(ctx),
        lambda zone_id: demand(ctx, zone_id),
        pool,
        horizon=cfg.reassign_horizon_ticks,
    )

    if choice is None:
        target = worker.birth_zone
        ensure_metrics(ctx).inc("retriever.assign.fallback_birth_zone")
        record_event(
            ctx,
            {"kind": "RETRIEVER_UNASSIGNED", "worker": worker.name, "zone": target},
            level=WARNING,
        )
    else:
        target = choice.zone_id
        ensure_metrics(ctx).inc("retriever.assign.ok")
        if choice.replaced is not None:
            ensure_metrics(ctx).inc("retriever.assign.replacements")
            record_event(
                ctx,
                {"kind": "RETRIEVER_SLOT_HANDOVER", "worker": worker.name, "replaces": choice.replaced, "zone": target},
            )

    worker.target_zone = target
    worker.return_zone = worker.birth_zone
    worker.needs_return_zone = True
    worker.multi_zone = True
    worker.initialized = True
    worker.phase = WorkerPhase.ASSIGNED


def setup_return_zone(ctx, worker: WorkerRecord) -> bool:
    """Resolve the nearest zone with storage, falling back to one with a spawn.

    Leaves the worker untouched (and pending) when no such zone exists.
    """

    cfg = ensure_config(ctx)
    found = None
    for kind in cfg.return_zone_facilities:
        found = ctx.distance.nearest_zone(worker.current_zone, kind)
        if found:
            break

    if not found:
        ensure_metrics(ctx).inc("retriever.return_zone.unresolved")
        record_event(
            ctx,
            {"kind": "RETURN_ZONE_UNRESOLVED", "worker": worker.name, "from": worker.current_zone},
            level=ERROR,
        )
        return False

    worker.return_zone = found
    worker.needs_return_zone = False
    record_event(
        ctx,
        {"kind": "RETURN_ZONE_SET", "worker": worker.name, "from": worker.current_zone, "zone": found},
    )
    return True


def _move(ctx, worker: WorkerRecord, zone_id: str) -> None:
    if ctx.mover.move_toward_zone(worker, zone_id) is MoveResult.BLOCKED:
        ensure_metrics(ctx).inc("retriever.move.blocked")


def harvest(ctx, worker: WorkerRecord) -> bool:
    if worker.current_zone != worker.target_zone:
        worker.phase = WorkerPhase.EN_ROUTE_OUT
        _move(ctx, worker, worker.target_zone)
        return False

    cfg = ensure_config(ctx)
    worker.phase = WorkerPhase.RETURN_PENDING if worker.needs_return_zone else WorkerPhase.AT_SOURCE
    return bool(
        ctx.facilities.reload(worker, cfg.reload_from)
        or ctx.facilities.load(worker, cfg.load_from)
    )


def deliver(ctx, worker: WorkerRecord) -> bool:
    if worker.return_zone is None:
        record_event(ctx, {"kind": "RETURN_ZONE_MISSING", "worker": worker.name}, level=ERROR)
        ensure_metrics(ctx).inc("retriever.return_zone.recovered")
        if not setup_return_zone(ctx, worker):
            return False
        record_event(
            ctx,
            {"kind": "RETURN_ZONE_RECOVERED", "worker": worker.name, "zone": worker.return_zone},
            level=INFO,
        )

    if worker.current_zone != worker.return_zone:
        worker.phase = WorkerPhase.EN_ROUTE_BACK
        _move(ctx, worker, worker.return_zone)
        return False

    cfg = ensure_config(ctx)
    worker.phase = WorkerPhase.AT_RETURN
    for kinds in cfg.deposit_into:
        if ctx.facilities.deposit(worker, kinds):
            return True
    return bool(ctx.facilities.supply_structure(worker, cfg.supply_structures))


def update_mode(worker: WorkerRecord) -> bool:
    """Flip between collecting and delivering on empty/full; return delivering."""

    if worker.delivering and worker.is_empty:
        worker.delivering = False
    elif not worker.delivering and worker.is_full:
        worker.delivering = True
    return worker.delivering


def _step(ctx, worker: WorkerRecord) -> None:
    initialize(ctx, worker)
    if worker.needs_return_zone and worker.current_zone == worker.target_zone:
        setup_return_zone(ctx, worker)

    delivering = update_mode(worker)

    worker.retreating = bool(
        ctx.threats.retreat_if_threatened(worker, worker.target_zone, lambda w: deliver(ctx, w))
    )
    if worker.retreating:
        ensure_metrics(ctx).inc("retriever.retreats")
        return

    if delivering:
        deliver(ctx, worker)
    else:
        harvest(ctx, worker)


def run(ctx, worker: WorkerRecord) -> None:
    """Drive one tick of ``worker``; never raises."""

    if worker.spawning:
        return

    roster = ensure_roster(ctx)
    if roster.get(worker.name) is None:
        roster.add(worker)

    try:
        _step(ctx, worker)
    except Exception as exc:
        ensure_metrics(ctx).inc("retriever.run.errors")
        record_event(
            ctx,
            {"kind": "RETRIEVER_STEP_FAILED", "worker": worker.name, "error": repr(exc)},
            level=ERROR,
        )


__all__ = [
    "deliver",
    "harvest",
    "initialize",
    "run",
    "setup_return_zone",
    "update_mode",
]
