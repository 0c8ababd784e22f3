from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from camino_seguro.scoring import recommendation

from ..auth import require_authority
from ..db import get_conn, hours_ago_iso, now_iso
from ..zones import safety_estimator

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("")
def general_stats():
    since_day = hours_ago_iso(24)
    with get_conn() as conn:
        total = conn.execute("SELECT COUNT(*) AS c FROM reports").fetchone()["c"]
        last_24h = conn.execute("SELECT COUNT(*) AS c FROM reports WHERE created_at >= ?", (since_day,)).fetchone()["c"]
        by_status = conn.execute("SELECT status, COUNT(*) AS c FROM reports GROUP BY status").fetchall()
        by_type = conn.execute(
            "SELECT incident_type, COUNT(*) AS c FROM reports GROUP BY incident_type ORDER BY c DESC LIMIT 10"
        ).fetchall()
        high_risk = conn.execute("SELECT COUNT(*) AS c FROM heat_zones WHERE intensity >= 7").fetchone()["c"]
        active_alerts = conn.execute(
            "SELECT COUNT(*) AS c FROM alerts WHERE is_active=1 AND (expires_at IS NULL OR expires_at > ?)",
            (now_iso(),),
        ).fetchone()["c"]
        active_users = conn.execute("SELECT COUNT(*) AS c FROM users WHERE is_active=1").fetchone()["c"]
        help_points = conn.execute("SELECT COUNT(*) AS c FROM help_points WHERE is_active=1").fetchone()["c"]

    return {
        "success": True,
        "data": {
            "reports": {
                "total": total,
                "last24h": last_24h,
                "byStatus": {r["status"]: r["c"] for r in by_status},
                "byType": [{"type": r["incident_type"], "count": r["c"]} for r in by_type],
            },
            "highRiskZones": high_risk,
            "activeAlerts": active_alerts,
            "activeUsers": active_users,
            "helpPoints": help_points,
        },
    }


@router.get("/dashboard")
def dashboard(user: dict = Depends(require_authority)):
    with get_conn() as conn:
        pending = conn.execute("SELECT COUNT(*) AS c FROM reports WHERE status='pending'").fetchone()["c"]
        per_day = conn.execute(
            """
            SELECT substr(created_at, 1, 10) AS day, COUNT(*) AS c FROM reports
            WHERE created_at >= ?
            GROUP BY day ORDER BY day
            """,
            (hours_ago_iso(24 * 7),),
        ).fetchall()
        top_zones = conn.execute(
            "SELECT * FROM heat_zones ORDER BY intensity DESC, incident_count DESC LIMIT 5"
        ).fetchall()
        urgent_alerts = conn.execute(
            """
            SELECT uuid, title, severity, alert_type, created_at FROM alerts
            WHERE is_active=1 AND severity IN ('critical', 'high') AND (expires_at IS NULL OR expires_at > ?)
            ORDER BY created_at DESC
            """,
            (now_iso(),),
        ).fetchall()
        recent = conn.execute(
            """
            SELECT uuid, incident_type, severity, status, latitude, longitude, created_at FROM reports
            ORDER BY created_at DESC LIMIT 10
            """
        ).fetchall()

    return {
        "success": True,
        "data": {
            "pendingReports": pending,
            "reportsPerDay": [{"date": r["day"], "count": r["c"]} for r in per_day],
            "topZones": [
                {
                    "uuid": z["uuid"],
                    "type": z["zone_type"],
                    "intensity": z["intensity"],
                    "incidentCount": z["incident_count"],
                    "latitude": z["latitude"],
                    "longitude": z["longitude"],
                }
                for z in top_zones
            ],
            "urgentAlerts": [
                {
                    "uuid": a["uuid"],
                    "title": a["title"],
                    "severity": a["severity"],
                    "type": a["alert_type"],
                    "createdAt": a["created_at"],
                }
                for a in urgent_alerts
            ],
            "recentReports": [
                {
                    "uuid": r["uuid"],
                    "incidentType": r["incident_type"],
                    "severity": r["severity"],
                    "status": r["status"],
                    "location": {"latitude": r["latitude"], "longitude": r["longitude"]},
                    "createdAt": r["created_at"],
                }
                for r in recent
            ],
        },
    }


@router.get("/reports-trend")
def reports_trend(days: int = Query(30, ge=1, le=365)):
    with get_conn() as conn:
        rows = conn.execute(
            """
            SELECT substr(created_at, 1, 10) AS day, incident_type, COUNT(*) AS c FROM reports
            WHERE created_at >= ?
            GROUP BY day, incident_type
            ORDER BY day
            """,
            (hours_ago_iso(24 * days),),
        ).fetchall()
    trend = [{"date": r["day"], "type": r["incident_type"], "count": r["c"]} for r in rows]
    return {"success": True, "data": {"days": days, "trend": trend}}


@router.get("/safety-score")
def safety_score(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: float = Query(5, gt=0),
):
    result = safety_estimator.assess(lat, lng, radius)
    return {
        "success": True,
        "data": {
            "safetyScore": result.score,
            "safetyLevel": result.level,
            "details": {
                "dangerZones": result.danger_zone_count,
                "crimeZones": result.crime_zone_count,
                "accidentZones": result.accident_zone_count,
                "helpPointsNearby": result.help_points_nearby,
            },
            "recommendation": recommendation(result.level),
        },
    }
