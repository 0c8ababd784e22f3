from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Query

from ..db import WITHIN_KM, get_conn

router = APIRouter(prefix="/api/heatmap", tags=["heatmap"])

ZONE_TYPES = [
    {"id": "crime", "name": "Crime", "color": "#DC2626"},
    {"id": "accident", "name": "Accident", "color": "#F97316"},
    {"id": "congestion", "name": "Congestion", "color": "#EAB308"},
    {"id": "danger", "name": "Danger", "color": "#7C3AED"},
]

HIGH_RISK_INTENSITY = 7


def _located(lat: Optional[float], lng: Optional[float], radius: float, where: list, params: list) -> None:
    if lat is not None and lng is not None:
        where.append(WITHIN_KM)
        params.extend([lat, lng, radius])


def heat_zone_payload(z) -> dict:
    return {
        "uuid": z["uuid"],
        "latitude": z["latitude"],
        "longitude": z["longitude"],
        "intensity": z["intensity"],
        "type": z["zone_type"],
        "incidentCount": z["incident_count"],
        "lastIncidentAt": z["last_incident_at"],
    }


@router.get("")
def list_heat_zones(
    zone_type: Optional[Literal["crime", "accident", "congestion", "danger"]] = Query(None, alias="zoneType"),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: float = Query(20, gt=0),
    min_intensity: int = Query(1, ge=1, le=10, alias="minIntensity"),
):
    where, params = ["intensity >= ?"], [min_intensity]
    if zone_type:
        where.append("zone_type=?")
        params.append(zone_type)
    _located(lat, lng, radius, where, params)

    with get_conn() as conn:
        rows = conn.execute(
            f"SELECT * FROM heat_zones WHERE {' AND '.join(where)} ORDER BY intensity DESC, incident_count DESC",
            params,
        ).fetchall()
    return {"success": True, "data": {"zones": [heat_zone_payload(r) for r in rows]}}


@router.get("/types")
def list_zone_types():
    return {"success": True, "data": {"types": ZONE_TYPES}}


@router.get("/summary")
def heat_zone_summary(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: float = Query(10, gt=0),
):
    where, params = ["1=1"], []
    _located(lat, lng, radius, where, params)

    with get_conn() as conn:
        rows = conn.execute(
            f"""
            SELECT zone_type, COUNT(*) AS zone_count, SUM(incident_count) AS total_incidents,
                   AVG(intensity) AS avg_intensity, MAX(intensity) AS max_intensity
            FROM heat_zones
            WHERE {' AND '.join(where)}
            GROUP BY zone_type
            ORDER BY zone_count DESC
            """,
            params,
        ).fetchall()

    summary = [
        {
            "type": r["zone_type"],
            "zoneCount": r["zone_count"],
            "totalIncidents": r["total_incidents"],
            "avgIntensity": round(r["avg_intensity"], 1),
            "maxIntensity": r["max_intensity"],
        }
        for r in rows
    ]
    return {"success": True, "data": {"summary": summary}}


@router.get("/high-risk")
def high_risk_zones(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: float = Query(50, gt=0),
    limit: int = Query(10, ge=1, le=100),
):
    where, params = ["intensity >= ?"], [HIGH_RISK_INTENSITY]
    _located(lat, lng, radius, where, params)

    with get_conn() as conn:
        rows = conn.execute(
            f"""
            SELECT * FROM heat_zones
            WHERE {' AND '.join(where)}
            ORDER BY intensity DESC, incident_count DESC
            LIMIT ?
            """,
            (*params, limit),
        ).fetchall()
    return {"success": True, "data": {"zones": [heat_zone_payload(r) for r in rows]}}
