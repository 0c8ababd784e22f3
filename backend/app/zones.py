from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from camino_seguro.models import Coordinates, HeatZone, HelpPoint
from camino_seguro.scoring import RouteSafetyEvaluator, SafetyEstimator
from camino_seguro.zones import HeatZoneAccumulator

from .db import WITHIN_KM, get_conn, now_iso


def _zone_from_row(row) -> HeatZone:
    return HeatZone(
        zone_id=row["uuid"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        zone_type=row["zone_type"],
        intensity=row["intensity"],
        incident_count=row["incident_count"],
        last_incident_at=datetime.fromisoformat(row["last_incident_at"]),
    )


class SqliteHeatZoneStore:
    def find_nearby(self, latitude: float, longitude: float, zone_type: str, within_km: float) -> Optional[HeatZone]:
        with get_conn() as conn:
            row = conn.execute(
                f"""
                SELECT * FROM heat_zones
                WHERE zone_type=? AND {WITHIN_KM}
                ORDER BY haversine_km(?, ?, latitude, longitude)
                LIMIT 1
                """,
                (zone_type, latitude, longitude, within_km, latitude, longitude),
            ).fetchone()
        return _zone_from_row(row) if row else None

    def create(self, zone: HeatZone) -> None:
        stamp = zone.last_incident_at.isoformat()
        with get_conn() as conn:
            conn.execute(
                """
                INSERT INTO heat_zones (uuid,latitude,longitude,intensity,zone_type,last_incident_at,
                                        incident_count,created_at,updated_at)
                VALUES (?,?,?,?,?,?,?,?,?)
                """,
                (
                    zone.zone_id,
                    zone.latitude,
                    zone.longitude,
                    zone.intensity,
                    zone.zone_type,
                    stamp,
                    zone.incident_count,
                    now_iso(),
                    now_iso(),
                ),
            )

    def update(self, zone_id: str, intensity: int, incident_count: int, last_incident_at: datetime) -> None:
        with get_conn() as conn:
            conn.execute(
                "UPDATE heat_zones SET intensity=?, incident_count=?, last_incident_at=?, updated_at=? WHERE uuid=?",
                (intensity, incident_count, last_incident_at.isoformat(), now_iso(), zone_id),
            )

    def find_all_within(self, latitude: float, longitude: float, within_km: float) -> List[HeatZone]:
        with get_conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM heat_zones WHERE {WITHIN_KM} ORDER BY intensity DESC",
                (latitude, longitude, within_km),
            ).fetchall()
        return [_zone_from_row(r) for r in rows]


class SqliteHelpPointDirectory:
    def count_active_within(self, latitude: float, longitude: float, within_km: float) -> int:
        with get_conn() as conn:
            row = conn.execute(
                f"SELECT COUNT(*) AS c FROM help_points WHERE is_active=1 AND {WITHIN_KM}",
                (latitude, longitude, within_km),
            ).fetchone()
        return int(row["c"])

    def active_near_any(self, points: Sequence[Coordinates], within_km: float, limit: int) -> List[HelpPoint]:
        if not points:
            return []
        clauses = " OR ".join(f"({WITHIN_KM})" for _ in points)
        params: list = []
        for point in points:
            params.extend([point.latitude, point.longitude, within_km])
        params.append(limit)
        with get_conn() as conn:
            rows = conn.execute(
                f"""
                SELECT uuid, name, type, latitude, longitude, phone FROM help_points
                WHERE is_active=1 AND ({clauses})
                LIMIT ?
                """,
                params,
            ).fetchall()
        return [
            HelpPoint(
                point_id=r["uuid"],
                name=r["name"],
                point_type=r["type"],
                latitude=r["latitude"],
                longitude=r["longitude"],
                phone=r["phone"],
            )
            for r in rows
        ]


heat_zone_store = SqliteHeatZoneStore()
help_point_directory = SqliteHelpPointDirectory()

accumulator = HeatZoneAccumulator(heat_zone_store)
safety_estimator = SafetyEstimator(heat_zone_store, help_point_directory)
route_evaluator = RouteSafetyEvaluator(heat_zone_store, help_point_directory)
