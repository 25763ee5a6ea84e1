from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, Mapping

INFO = "INFO"
WARNING = "WARNING"
ERROR = "ERROR"


@dataclass(slots=True)
class Metrics:
    counters: dict[str, float] = field(default_factory=dict)
    gauges: dict[str, Any] = field(default_factory=dict)

    def inc(self, path: str, n: float = 1.0) -> float:
        self.counters[path] = self.counters.get(path, 0.0) + float(n)
        return self.counters[path]

    def get(self, path: str) -> float:
        return self.counters.get(path, 0.0)

    def set_gauge(self, path: str, value: Any) -> Any:
        self.gauges[path] = value
        return value

    def snapshot_signature(self) -> str:
        canonical = {
            "counters": {k: float(v) for k, v in sorted(self.counters.items())},
            "gauges": {k: v for k, v in sorted(self.gauges.items())},
        }
        return json.dumps(canonical, sort_keys=True, separators=(",", ":"), default=str)


@dataclass(slots=True)
class EventRing:
    capacity: int = 200
    events: list[Mapping[str, object]] = field(default_factory=list)

    def append(self, event: Mapping[str, object]) -> None:
        self.events.append(dict(event))
        if len(self.events) > max(1, int(self.capacity)):
            self.events = self.events[-int(self.capacity) :]

    def tail(self, n: int = 10) -> list[Mapping[str, object]]:
        return list(self.events[-max(0, int(n)) :])

    def of_kind(self, kind: str) -> list[Mapping[str, object]]:
        return [event for event in self.events if event.get("kind") == kind]


@dataclass(slots=True)
class DebugConfig:
    level: str = "standard"

    def has_event_ring(self) -> bool:
        return self.level in {"standard", "verbose"}

    def keeps_info(self) -> bool:
        return self.level == "verbose"


def ensure_metrics(ctx: Any) -> Metrics:
    metrics = getattr(ctx, "metrics", None)
    if isinstance(metrics, Metrics):
        return metrics
    metrics = Metrics()
    ctx.metrics = metrics
    return metrics


def ensure_event_ring(ctx: Any) -> EventRing:
    cfg: DebugConfig = getattr(ctx, "debug_cfg", None) or DebugConfig()
    ctx.debug_cfg = cfg
    ring = getattr(ctx, "event_ring", None)
    if cfg.has_event_ring():
        if not isinstance(ring, EventRing):
            ring = EventRing()
            ctx.event_ring = ring
        return ring
    return ring if isinstance(ring, EventRing) else EventRing(capacity=0)


def record_event(ctx: Any, event: Mapping[str, object], *, level: str = INFO) -> None:
    """Append a structured event to the ring, honouring the debug level.

    INFO events are kept only at ``verbose``; warnings and errors are kept
    whenever the ring is enabled.
    """

    ring = ensure_event_ring(ctx)
    if not ctx.debug_cfg.has_event_ring() or ring.capacity <= 0:
        return
    if level == INFO and not ctx.debug_cfg.keeps_info():
        return
    payload = dict(event)
    payload["level"] = level
    if "tick" not in payload:
        payload["tick"] = getattr(ctx, "tick", 0)
    ring.append(payload)


__all__ = [
    "DebugConfig",
    "ERROR",
    "EventRing",
    "INFO",
    "Metrics",
    "WARNING",
    "ensure_event_ring",
    "ensure_metrics",
    "record_event",
]
