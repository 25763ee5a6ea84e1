from __future__ import annotations

from typing import Dict

from retriever.world.workers import ensure_roster

from .demand import num_desired
from .demand_cache import ensure_demand_cache
from .lifecycle import run
from .telemetry import ensure_metrics


def begin_tick(ctx, tick: int) -> bool:
    """Advance the context clock; the tick cache is dropped once per boundary."""

    ctx.tick = int(tick)
    return ensure_demand_cache(ctx).roll(ctx.tick)


def run_retrievers_for_tick(ctx, tick: int) -> Dict[str, object]:
    begin_tick(ctx, tick)
    metrics = ensure_metrics(ctx)
    errors_before = metrics.get("retriever.run.errors")

    roster = ensure_roster(ctx)
    ran = 0
    for worker in roster.alive():
        run(ctx, worker)
        ran += 1

    return {
        "tick": ctx.tick,
        "workers": ran,
        "desired": num_desired(ctx),
        "errors": int(metrics.get("retriever.run.errors") - errors_before),
        "signature": roster.signature(),
        "metrics": metrics.snapshot_signature(),
    }


__all__ = ["begin_tick", "run_retrievers_for_tick"]
