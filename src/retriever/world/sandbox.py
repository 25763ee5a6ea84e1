"""In-memory world implementing every collaborator contract.

Used by the test-suite and by scripted scenarios.  Movement is instantaneous
after ``travel_ticks`` move calls, facilities hold a single resource amount,
and threat handling simply pulls the worker back toward its birth zone.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .zones import FacilityKind, Marker, MoveResult, ZoneControl


@dataclass(slots=True)
class SandboxWorld:
    markers: List[Marker] = field(default_factory=list)
    control: Dict[str, ZoneControl] = field(default_factory=dict)
    visible: Set[str] = field(default_factory=set)
    sources: Dict[str, int] = field(default_factory=dict)
    facilities: Dict[str, Dict[FacilityKind, int]] = field(default_factory=dict)
    distances: Dict[Tuple[str, str], int] = field(default_factory=dict)
    hostile_zones: Set[str] = field(default_factory=set)
    blocked_zones: Set[str] = field(default_factory=set)
    capacity: Dict[str, int] = field(default_factory=dict)
    travel_ticks: int = 1

    actions: List[Tuple[str, str, str]] = field(default_factory=list)
    marker_scans: int = 0
    _progress: Dict[Tuple[str, str], int] = field(default_factory=dict)

    # -- builders ----------------------------------------------------------

    def add_marker(self, name: str, zone_id: str, *, color: str = "yellow", secondary: str = "blue") -> Marker:
        marker = Marker(name=name, zone_id=zone_id, color=color, secondary_color=secondary)
        self.markers.append(marker)
        return marker

    def add_facility(self, zone_id: str, kind: FacilityKind, amount: int = 0) -> None:
        self.facilities.setdefault(zone_id, {})[kind] = amount
        self.visible.add(zone_id)

    def link(self, a: str, b: str, distance: int) -> None:
        self.distances[(a, b)] = distance
        self.distances[(b, a)] = distance

    # -- MarkerSource ------------------------------------------------------

    def list_markers(self, color_pair: Tuple[str, str]) -> Iterable[Marker]:
        self.marker_scans += 1
        return [marker for marker in self.markers if marker.color_pair == tuple(color_pair)]

    # -- ZoneView ----------------------------------------------------------

    def zone_controller(self, zone_id: str) -> ZoneControl:
        if zone_id not in self.visible and zone_id not in self.control:
            return ZoneControl.UNOBSERVABLE
        return self.control.get(zone_id, ZoneControl.UNCONTROLLED)

    def source_count(self, zone_id: str) -> Optional[int]:
        if self.zone_controller(zone_id) is ZoneControl.UNOBSERVABLE:
            return None
        return self.sources.get(zone_id, 0)

    # -- Mover -------------------------------------------------------------

    def move_toward_zone(self, worker, zone_id: str) -> MoveResult:
        if zone_id in self.blocked_zones:
            self.actions.append((worker.name, "blocked", zone_id))
            return MoveResult.BLOCKED
        key = (worker.name, zone_id)
        self._progress[key] = self._progress.get(key, 0) + 1
        self.actions.append((worker.name, "move", zone_id))
        if self._progress[key] >= max(1, self.travel_ticks):
            del self._progress[key]
            worker.current_zone = zone_id
        return MoveResult.MOVED

    # -- FacilityActions ---------------------------------------------------

    def _take(self, worker, kinds: Sequence[FacilityKind], verb: str) -> bool:
        stock = self.facilities.get(worker.current_zone, {})
        room = max(0, worker.carry_capacity - worker.carry)
        if room <= 0:
            return False
        for kind in kinds:
            amount = stock.get(kind, 0)
            if amount <= 0:
                continue
            moved = min(room, amount)
            stock[kind] = amount - moved
            worker.carry += moved
            self.actions.append((worker.name, verb, kind.value))
            return True
        return False

    def _give(self, worker, kinds: Sequence[FacilityKind], verb: str) -> bool:
        if worker.carry <= 0:
            return False
        stock = self.facilities.get(worker.current_zone, {})
        for kind in kinds:
            if kind not in stock:
                continue
            stock[kind] += worker.carry
            worker.carry = 0
            self.actions.append((worker.name, verb, kind.value))
            return True
        return False

    def reload(self, worker, kinds: Sequence[FacilityKind]) -> bool:
        return self._take(worker, kinds, "reload")

    def load(self, worker, kinds: Sequence[FacilityKind]) -> bool:
        return self._take(worker, kinds, "load")

    def deposit(self, worker, kinds: Sequence[FacilityKind]) -> bool:
        return self._give(worker, kinds, "deposit")

    def supply_structure(self, worker, kinds: Sequence[FacilityKind]) -> bool:
        return self._give(worker, kinds, "supply")

    # -- ZoneDistance ------------------------------------------------------

    def nearest_zone(self, from_zone: str, facility: FacilityKind) -> Optional[str]:
        candidates = []
        for zone_id, stock in self.facilities.items():
            if facility not in stock:
                continue
            if zone_id == from_zone:
                distance = 0
            else:
                distance = self.distances.get((from_zone, zone_id))
            if distance is None:
                continue
            candidates.append((distance, zone_id))
        if not candidates:
            return None
        candidates.sort()
        return candidates[0][1]

    # -- ThreatResponder ---------------------------------------------------

    def retreat_if_threatened(self, worker, home_zone: str, fallback_action: Callable[[object], object]) -> bool:
        if home_zone not in self.hostile_zones:
            return False
        self.actions.append((worker.name, "retreat", home_zone))
        if worker.current_zone in self.hostile_zones:
            worker.current_zone = worker.birth_zone
        else:
            fallback_action(worker)
        return True

    # -- CapacityQuery -----------------------------------------------------

    def energy_capacity(self, zone_id: str) -> int:
        return self.capacity.get(zone_id, 0)


__all__ = ["SandboxWorld"]
