"""Two-tier memoisation for task discovery and worker demand.

``volatile`` lives for a single tick and is dropped at the tick boundary.
``persistent`` survives ticks and is the fallback whenever a zone cannot be
observed; its entries are only ever overwritten by a fresh observation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

TASKS_KEY = "tasks"
NUM_DESIRED_KEY = "num_desired"


@dataclass(slots=True)
class DemandCache:
    volatile: Dict[str, object] = field(default_factory=dict)
    volatile_demand: Dict[str, int] = field(default_factory=dict)
    persistent: Dict[str, int] = field(default_factory=dict)
    tick: int | None = None
    invalidations: int = 0

    def roll(self, tick: int) -> bool:
        """Clear the tick tier if ``tick`` is a new tick; return True when cleared."""

        if self.tick == tick:
            return False
        self.volatile.clear()
        self.volatile_demand.clear()
        self.tick = tick
        self.invalidations += 1
        return True

    # -- tasks / aggregate -------------------------------------------------

    def tasks(self) -> Optional[Tuple[str, ...]]:
        cached = self.volatile.get(TASKS_KEY)
        return tuple(cached) if cached is not None else None

    def store_tasks(self, zone_ids: List[str]) -> Tuple[str, ...]:
        frozen = tuple(zone_ids)
        self.volatile[TASKS_KEY] = frozen
        return frozen

    def num_desired(self) -> Optional[int]:
        cached = self.volatile.get(NUM_DESIRED_KEY)
        return int(cached) if cached is not None else None

    def store_num_desired(self, total: int) -> int:
        self.volatile[NUM_DESIRED_KEY] = int(total)
        return int(total)

    # -- per-zone demand ---------------------------------------------------

    def demand(self, zone_id: str) -> Optional[int]:
        return self.volatile_demand.get(zone_id)

    def store_demand(self, zone_id: str, value: int, *, fresh: bool) -> int:
        self.volatile_demand[zone_id] = int(value)
        if fresh:
            self.persistent[zone_id] = int(value)
        return int(value)

    def remembered(self, zone_id: str) -> Optional[int]:
        return self.persistent.get(zone_id)


def ensure_demand_cache(ctx) -> DemandCache:
    cache = getattr(ctx, "cache", None)
    if isinstance(cache, DemandCache):
        return cache
    cache = DemandCache()
    ctx.cache = cache
    return cache


__all__ = ["DemandCache", "ensure_demand_cache"]
