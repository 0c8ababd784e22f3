from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from camino_seguro.geo import haversine_km
from camino_seguro.models import Coordinates, HeatZone, HelpPoint


class HeatZoneStore(Protocol):
    def find_nearby(self, latitude: float, longitude: float, zone_type: str, within_km: float) -> Optional[HeatZone]:
        ...

    def create(self, zone: HeatZone) -> None:
        ...

    def update(self, zone_id: str, intensity: int, incident_count: int, last_incident_at: datetime) -> None:
        ...

    def find_all_within(self, latitude: float, longitude: float, within_km: float) -> List[HeatZone]:
        ...


class HelpPointDirectory(Protocol):
    def count_active_within(self, latitude: float, longitude: float, within_km: float) -> int:
        ...

    def active_near_any(self, points: Sequence[Coordinates], within_km: float, limit: int) -> List[HelpPoint]:
        ...


class InMemoryHeatZoneStore:
    """Dict-backed zone store for tests and offline use."""

    def __init__(self, zones: Iterable[HeatZone] = ()) -> None:
        self.zones: Dict[str, HeatZone] = {zone.zone_id: zone for zone in zones}

    def find_nearby(self, latitude: float, longitude: float, zone_type: str, within_km: float) -> Optional[HeatZone]:
        candidates = []
        for zone in self.zones.values():
            if zone.zone_type != zone_type:
                continue
            distance = haversine_km(latitude, longitude, zone.latitude, zone.longitude)
            if distance <= within_km:
                candidates.append((distance, zone))
        if not candidates:
            return None
        candidates.sort(key=lambda item: item[0])
        return candidates[0][1]

    def create(self, zone: HeatZone) -> None:
        self.zones[zone.zone_id] = zone

    def update(self, zone_id: str, intensity: int, incident_count: int, last_incident_at: datetime) -> None:
        zone = self.zones[zone_id]
        self.zones[zone_id] = replace(
            zone,
            intensity=intensity,
            incident_count=incident_count,
            last_incident_at=last_incident_at,
        )

    def find_all_within(self, latitude: float, longitude: float, within_km: float) -> List[HeatZone]:
        found = [
            zone
            for zone in self.zones.values()
            if haversine_km(latitude, longitude, zone.latitude, zone.longitude) <= within_km
        ]
        found.sort(key=lambda zone: zone.intensity, reverse=True)
        return found


class InMemoryHelpPointDirectory:
    def __init__(self, points: Iterable[HelpPoint] = ()) -> None:
        self.points = list(points)

    def count_active_within(self, latitude: float, longitude: float, within_km: float) -> int:
        return sum(
            1
            for point in self.points
            if point.is_active and haversine_km(latitude, longitude, point.latitude, point.longitude) <= within_km
        )

    def active_near_any(self, points: Sequence[Coordinates], within_km: float, limit: int) -> List[HelpPoint]:
        nearby = []
        for point in self.points:
            if not point.is_active:
                continue
            if any(
                haversine_km(p.latitude, p.longitude, point.latitude, point.longitude) <= within_km for p in points
            ):
                nearby.append(point)
        return nearby[:limit]
