"""Remote retrieval package public façade."""

from .runtime import (
    DemandCache,
    RetrieverConfig,
    assign_zone,
    begin_tick,
    demand,
    discover_tasks,
    num_desired,
    plan_body,
    run,
    run_retrievers_for_tick,
)
from .state import RetrievalContext
from .world.sandbox import SandboxWorld
from .world.workers import WorkerPhase, WorkerRecord, WorkerRoster
from .world.zones import FacilityKind, Marker, MoveResult, PartType, ZoneControl

__all__ = [
    "DemandCache",
    "FacilityKind",
    "Marker",
    "MoveResult",
    "PartType",
    "RetrievalContext",
    "RetrieverConfig",
    "SandboxWorld",
    "WorkerPhase",
    "WorkerRecord",
    "WorkerRoster",
    "ZoneControl",
    "assign_zone",
    "begin_tick",
    "demand",
    "discover_tasks",
    "num_desired",
    "plan_body",
    "run",
    "run_retrievers_for_tick",
]
