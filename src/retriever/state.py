"""Context object threaded through every retrieval call.

It replaces process-wide globals: the per-tick and persistent caches, the
worker roster, telemetry and the injected world collaborators all hang off a
single :class:`RetrievalContext`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .runtime.config import RetrieverConfig
from .runtime.demand_cache import DemandCache
from .runtime.telemetry import DebugConfig, EventRing, Metrics
from .world.workers import WorkerRoster
from .world.zones import CapacityQuery, FacilityActions, MarkerSource, Mover, ThreatResponder, ZoneDistance, ZoneView


@dataclass
class RetrievalContext:
    markers: MarkerSource
    zones: ZoneView
    mover: Mover
    facilities: FacilityActions
    distance: ZoneDistance
    threats: ThreatResponder
    capacity: CapacityQuery

    tick: int = 0
    cfg: RetrieverConfig = field(default_factory=RetrieverConfig)
    cache: DemandCache = field(default_factory=DemandCache)
    roster: WorkerRoster = field(default_factory=WorkerRoster)
    metrics: Metrics = field(default_factory=Metrics)
    debug_cfg: DebugConfig = field(default_factory=DebugConfig)
    event_ring: EventRing = field(default_factory=EventRing)

    @classmethod
    def from_world(cls, world: Any, *, cfg: Optional[RetrieverConfig] = None, **kwargs: Any) -> "RetrievalContext":
        """Build a context where a single object implements every collaborator."""

        return cls(
            markers=world,
            zones=world,
            mover=world,
            facilities=world,
            distance=world,
            threats=world,
            capacity=world,
            cfg=cfg or RetrieverConfig(),
            **kwargs,
        )


__all__ = ["RetrievalContext"]
