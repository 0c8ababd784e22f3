from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


def utcnow() -> datetime:
    """Naive UTC; stored timestamps are compared as naive ISO strings."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class HeatZone:
    zone_id: str
    latitude: float
    longitude: float
    zone_type: str
    intensity: int = 1
    incident_count: int = 1
    last_incident_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class HelpPoint:
    point_id: str
    name: str
    point_type: str
    latitude: float
    longitude: float
    phone: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class SafetyAssessment:
    score: int
    level: str
    danger_zone_count: int
    crime_zone_count: int
    accident_zone_count: int
    help_points_nearby: int


@dataclass(frozen=True)
class RouteEndpoint:
    latitude: float
    longitude: float
    address: Optional[str] = None


@dataclass(frozen=True)
class RouteAssessment:
    origin: RouteEndpoint
    destination: RouteEndpoint
    safety_score: int
    safety_level: str
    distance_km: float
    estimated_time_minutes: int
    danger_zone_count: int
    help_points_nearby: List[HelpPoint]
