from __future__ import annotations

from typing import List

from retriever.world.zones import PartType

from .config import ensure_config


def affordable_groups(ctx, zone_id: str) -> int:
    cfg = ensure_config(ctx)
    capacity = max(0, int(ctx.capacity.energy_capacity(zone_id)))
    return min(cfg.max_groups, capacity // max(1, cfg.group_price))


def plan_body(ctx, zone_id: str) -> List[PartType]:
    """Largest carry body the zone can afford; empty means do not spawn."""

    cfg = ensure_config(ctx)
    body: List[PartType] = []
    for _ in range(affordable_groups(ctx, zone_id)):
        body.extend(cfg.body_group)
    return body


__all__ = ["affordable_groups", "plan_body"]
