from __future__ import annotations

import math
from typing import Dict, Iterable, List

from camino_seguro.geo import haversine_km
from camino_seguro.models import (
    Coordinates,
    HeatZone,
    RouteAssessment,
    RouteEndpoint,
    SafetyAssessment,
)
from camino_seguro.store import HeatZoneStore, HelpPointDirectory

BASE_SCORE = 100
INTENSITY_PENALTY = 2
HIGH_THRESHOLD = 80
MEDIUM_THRESHOLD = 50

ROUTE_ZONE_RADIUS_KM = 2.0
ROUTE_HELP_POINT_RADIUS_KM = 1.0
ROUTE_HELP_POINT_LIMIT = 10
URBAN_SPEED_KMH = 30

RECOMMENDATIONS = {
    "low": "Caution is advised in this area",
    "medium": "Moderately safe area",
    "high": "Safe area",
}


def score_zones(zones: Iterable[HeatZone]) -> int:
    score = BASE_SCORE - sum(zone.intensity * INTENSITY_PENALTY for zone in zones)
    return max(0, min(BASE_SCORE, score))


def safety_level(score: int) -> str:
    if score >= HIGH_THRESHOLD:
        return "high"
    if score >= MEDIUM_THRESHOLD:
        return "medium"
    return "low"


def recommendation(level: str) -> str:
    return RECOMMENDATIONS[level]


def estimate_minutes(distance_km: float, speed_kmh: float = URBAN_SPEED_KMH) -> int:
    # halves round up
    return int(math.floor(distance_km / speed_kmh * 60 + 0.5))


class SafetyEstimator:
    def __init__(self, zones: HeatZoneStore, help_points: HelpPointDirectory) -> None:
        self.zones = zones
        self.help_points = help_points

    def assess(self, latitude: float, longitude: float, radius_km: float) -> SafetyAssessment:
        nearby = self.zones.find_all_within(latitude, longitude, radius_km)
        score = score_zones(nearby)
        return SafetyAssessment(
            score=score,
            level=safety_level(score),
            danger_zone_count=len(nearby),
            crime_zone_count=sum(1 for zone in nearby if zone.zone_type == "crime"),
            accident_zone_count=sum(1 for zone in nearby if zone.zone_type == "accident"),
            help_points_nearby=self.help_points.count_active_within(latitude, longitude, radius_km),
        )


class RouteSafetyEvaluator:
    """Scores a straight origin/destination pair; no path is computed."""

    def __init__(
        self,
        zones: HeatZoneStore,
        help_points: HelpPointDirectory,
        zone_radius_km: float = ROUTE_ZONE_RADIUS_KM,
        help_point_radius_km: float = ROUTE_HELP_POINT_RADIUS_KM,
        help_point_limit: int = ROUTE_HELP_POINT_LIMIT,
    ) -> None:
        self.zones = zones
        self.help_points = help_points
        self.zone_radius_km = zone_radius_km
        self.help_point_radius_km = help_point_radius_km
        self.help_point_limit = help_point_limit

    def zones_along(self, origin: RouteEndpoint, destination: RouteEndpoint) -> List[HeatZone]:
        combined: Dict[str, HeatZone] = {}
        for endpoint in (origin, destination):
            for zone in self.zones.find_all_within(endpoint.latitude, endpoint.longitude, self.zone_radius_km):
                combined.setdefault(zone.zone_id, zone)
        return list(combined.values())

    def evaluate(self, origin: RouteEndpoint, destination: RouteEndpoint) -> RouteAssessment:
        zones = self.zones_along(origin, destination)
        score = score_zones(zones)
        distance = haversine_km(origin.latitude, origin.longitude, destination.latitude, destination.longitude)
        help_points = self.help_points.active_near_any(
            [
                Coordinates(origin.latitude, origin.longitude),
                Coordinates(destination.latitude, destination.longitude),
            ],
            self.help_point_radius_km,
            self.help_point_limit,
        )
        return RouteAssessment(
            origin=origin,
            destination=destination,
            safety_score=score,
            safety_level=safety_level(score),
            distance_km=round(distance, 2),
            estimated_time_minutes=estimate_minutes(distance),
            danger_zone_count=len(zones),
            help_points_nearby=help_points,
        )
