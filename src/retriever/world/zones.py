"""Zone, marker and facility records plus the collaborator contracts.

The retrieval core never touches a live world directly.  Everything it needs
to know about markers, zone control, movement, facilities and distances comes
through the small protocols declared here, so the same runtime code drives a
scripted sandbox in tests and a real game adapter in production.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Protocol, Sequence, Tuple


class ZoneControl(str, Enum):
    OWNED_BY_SELF = "OWNED_BY_SELF"
    OWNED_BY_OTHER = "OWNED_BY_OTHER"
    # Hostile claim that has not been fully established yet.
    RESERVED_BY_OTHER = "RESERVED_BY_OTHER"
    UNCONTROLLED = "UNCONTROLLED"
    UNOBSERVABLE = "UNOBSERVABLE"


class FacilityKind(str, Enum):
    CONTAINER = "container"
    STORAGE = "storage"
    LINK = "link"
    SPAWN = "spawn"
    EXTENSION = "extension"
    TOWER = "tower"
    TERMINAL = "terminal"


class PartType(str, Enum):
    CARRY = "carry"
    MOVE = "move"


class MoveResult(str, Enum):
    MOVED = "MOVED"
    BLOCKED = "BLOCKED"


@dataclass(frozen=True, slots=True)
class Marker:
    name: str
    zone_id: str
    x: int = 25
    y: int = 25
    color: str = ""
    secondary_color: str = ""

    @property
    def color_pair(self) -> Tuple[str, str]:
        return (self.color, self.secondary_color)


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------


class MarkerSource(Protocol):
    def list_markers(self, color_pair: Tuple[str, str]) -> Iterable[Marker]: ...


class ZoneView(Protocol):
    def zone_controller(self, zone_id: str) -> ZoneControl: ...

    def source_count(self, zone_id: str) -> Optional[int]: ...


class Mover(Protocol):
    def move_toward_zone(self, worker, zone_id: str) -> MoveResult: ...


class FacilityActions(Protocol):
    """Interaction primitives; each returns True when an action was issued."""

    def reload(self, worker, kinds: Sequence[FacilityKind]) -> bool: ...

    def load(self, worker, kinds: Sequence[FacilityKind]) -> bool: ...

    def deposit(self, worker, kinds: Sequence[FacilityKind]) -> bool: ...

    def supply_structure(self, worker, kinds: Sequence[FacilityKind]) -> bool: ...


class ZoneDistance(Protocol):
    def nearest_zone(self, from_zone: str, facility: FacilityKind) -> Optional[str]: ...


class ThreatResponder(Protocol):
    def retreat_if_threatened(
        self, worker, home_zone: str, fallback_action: Callable[[object], object]
    ) -> bool: ...


class CapacityQuery(Protocol):
    def energy_capacity(self, zone_id: str) -> int: ...


__all__ = [
    "CapacityQuery",
    "FacilityActions",
    "FacilityKind",
    "Marker",
    "MarkerSource",
    "MoveResult",
    "Mover",
    "PartType",
    "ThreatResponder",
    "ZoneControl",
    "ZoneDistance",
    "ZoneView",
]
