"""Runtime helpers for remote retrieval workers."""

from .assignment import ZoneChoice, assign_zone, choose_zone
from .body import plan_body
from .config import RetrieverConfig
from .demand import demand, num_desired
from .demand_cache import DemandCache
from .discovery import discover_tasks
from .lifecycle import initialize, run, setup_return_zone
from .tick import begin_tick, run_retrievers_for_tick

__all__ = [
    "DemandCache",
    "RetrieverConfig",
    "ZoneChoice",
    "assign_zone",
    "begin_tick",
    "choose_zone",
    "demand",
    "discover_tasks",
    "initialize",
    "num_desired",
    "plan_body",
    "run",
    "run_retrievers_for_tick",
    "setup_return_zone",
]
