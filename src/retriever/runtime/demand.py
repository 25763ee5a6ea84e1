from __future__ import annotations

from typing import Optional

from retriever.world.zones import ZoneControl

from .config import ensure_config
from .demand_cache import ensure_demand_cache
from .discovery import discover_tasks, task_markers
from .telemetry import ensure_metrics


def _fresh_demand(ctx, zone_id: str) -> Optional[int]:
    """Compute demand from what is visible now; None when nothing was observed."""

    cfg = ensure_config(ctx)
    flagged = any(marker.zone_id == zone_id for marker in task_markers(ctx))
    observable = ctx.zones.zone_controller(zone_id) is not ZoneControl.UNOBSERVABLE

    if not flagged:
        return 0 if observable else None

    wanted = cfg.num_desired_per_flag
    if cfg.demand_per_source and observable:
        sources = ctx.zones.source_count(zone_id)
        if sources:
            wanted *= int(sources)
    return wanted


def demand(ctx, zone_id: str) -> int:
    """Number of workers wanted for ``zone_id``, memoised per tick.

    Fresh observations overwrite the persistent tier.  When the zone can be
    neither seen nor found among the markers, the last persisted value is used.
    """

    cache = ensure_demand_cache(ctx)
    cached = cache.demand(zone_id)
    if cached is not None:
        return cached

    value = _fresh_demand(ctx, zone_id)
    if value is not None:
        return cache.store_demand(zone_id, value, fresh=True)

    remembered = cache.remembered(zone_id)
    if remembered is not None:
        ensure_metrics(ctx).inc("retriever.demand.persistent_hits")
    return cache.store_demand(zone_id, remembered or 0, fresh=False)


def num_desired(ctx, zone_ignored: str | None = None) -> int:
    """Total workers wanted across every discovered task, memoised per tick."""

    cache = ensure_demand_cache(ctx)
    cached = cache.num_desired()
    if cached is not None:
        return cached
    total = sum(demand(ctx, zone_id) for zone_id in discover_tasks(ctx))
    ensure_metrics(ctx).set_gauge("retriever.num_desired", total)
    return cache.store_num_desired(total)


__all__ = ["demand", "num_desired"]
