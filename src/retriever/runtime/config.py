from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from retriever.world.zones import FacilityKind, PartType


@dataclass(slots=True)
class RetrieverConfig:
    num_desired_per_flag: int = 1
    demand_per_source: bool = False

    flag_color: str = "yellow"
    flag_secondary_color: str = "blue"

    # None: any live worker's slot may be handed over when every task is staffed.
    reassign_horizon_ticks: int | None = None

    reload_from: Tuple[FacilityKind, ...] = (
        FacilityKind.CONTAINER,
        FacilityKind.STORAGE,
        FacilityKind.LINK,
        FacilityKind.SPAWN,
        FacilityKind.EXTENSION,
        FacilityKind.TOWER,
        FacilityKind.TERMINAL,
    )
    load_from: Tuple[FacilityKind, ...] = (
        FacilityKind.STORAGE,
        FacilityKind.CONTAINER,
        FacilityKind.TERMINAL,
    )
    deposit_into: Tuple[Tuple[FacilityKind, ...], ...] = (
        (FacilityKind.STORAGE,),
        (FacilityKind.CONTAINER,),
    )
    supply_structures: Tuple[FacilityKind, ...] = (
        FacilityKind.EXTENSION,
        FacilityKind.SPAWN,
        FacilityKind.TOWER,
    )
    return_zone_facilities: Tuple[FacilityKind, ...] = (
        FacilityKind.STORAGE,
        FacilityKind.SPAWN,
    )

    body_group: Tuple[PartType, ...] = (PartType.CARRY, PartType.CARRY, PartType.MOVE)
    group_price: int = 150
    max_groups: int = 16

    @property
    def flag_signature(self) -> Tuple[str, str]:
        return (self.flag_color, self.flag_secondary_color)


def ensure_config(ctx) -> RetrieverConfig:
    cfg = getattr(ctx, "cfg", None)
    if isinstance(cfg, RetrieverConfig):
        return cfg
    cfg = RetrieverConfig()
    ctx.cfg = cfg
    return cfg


__all__ = ["RetrieverConfig", "ensure_config"]
