from __future__ import annotations

from typing import List, Tuple

from retriever.world.zones import Marker, ZoneControl

from .config import ensure_config
from .demand_cache import ensure_demand_cache

EXCLUDED_CONTROL = frozenset({ZoneControl.OWNED_BY_SELF, ZoneControl.OWNED_BY_OTHER})


def task_markers(ctx) -> List[Marker]:
    cfg = ensure_config(ctx)
    markers = list(ctx.markers.list_markers(cfg.flag_signature))
    markers.sort(key=lambda marker: marker.name)
    return markers


def is_zone_eligible(ctx, zone_id: str) -> bool:
    # Unobservable zones stay eligible; a failed trip is cheaper than a starved task.
    return ctx.zones.zone_controller(zone_id) not in EXCLUDED_CONTROL


def discover_tasks(ctx) -> Tuple[str, ...]:
    """Return the task zones flagged for remote collection this tick.

    Zones keep the order of their first marker (markers sorted by name) and
    appear at most once.  The result is cached for the rest of the tick.
    """

    cache = ensure_demand_cache(ctx)
    cached = cache.tasks()
    if cached is not None:
        return cached

    zone_ids: List[str] = []
    for marker in task_markers(ctx):
        if marker.zone_id in zone_ids:
            continue
        if not is_zone_eligible(ctx, marker.zone_id):
            continue
        zone_ids.append(marker.zone_id)

    return cache.store_tasks(zone_ids)


__all__ = ["discover_tasks", "is_zone_eligible", "task_markers"]
