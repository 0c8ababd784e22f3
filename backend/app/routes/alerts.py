from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth import require_authority
from ..db import WITHIN_KM, get_conn, now_iso, to_iso
from ..schemas import AlertIn, AlertType, AlertUpdateIn, Severity

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/alerts", tags=["alerts"])

ALERT_TYPES = [
    {"id": "accident", "name": "Accident", "icon": "car-crash"},
    {"id": "congestion", "name": "Congestion", "icon": "traffic"},
    {"id": "obstruction", "name": "Obstruction", "icon": "road-closed"},
    {"id": "danger_zone", "name": "Danger zone", "icon": "warning"},
    {"id": "weather", "name": "Weather", "icon": "cloud"},
    {"id": "event", "name": "Event", "icon": "calendar"},
    {"id": "general", "name": "General", "icon": "info"},
]

SEVERITY_ORDER = """
    CASE severity WHEN 'critical' THEN 1 WHEN 'high' THEN 2 WHEN 'medium' THEN 3 ELSE 4 END
"""


def alert_payload(a) -> dict:
    location = None
    if a["latitude"] is not None and a["longitude"] is not None:
        location = {"latitude": a["latitude"], "longitude": a["longitude"], "radiusKm": a["radius_km"]}
    return {
        "uuid": a["uuid"],
        "title": a["title"],
        "message": a["message"],
        "type": a["alert_type"],
        "severity": a["severity"],
        "location": location,
        "isActive": bool(a["is_active"]),
        "expiresAt": a["expires_at"],
        "createdAt": a["created_at"],
    }


@router.get("")
def list_alerts(
    type: Optional[AlertType] = None,
    severity: Optional[Severity] = None,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: float = Query(10, gt=0),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    where = ["is_active=1", "(expires_at IS NULL OR expires_at > ?)"]
    params: list = [now_iso()]
    if type:
        where.append("alert_type=?")
        params.append(type)
    if severity:
        where.append("severity=?")
        params.append(severity)
    if lat is not None and lng is not None:
        where.append(f"(latitude IS NULL OR {WITHIN_KM})")
        params.extend([lat, lng, radius])

    with get_conn() as conn:
        rows = conn.execute(
            f"""
            SELECT * FROM alerts
            WHERE {' AND '.join(where)}
            ORDER BY {SEVERITY_ORDER}, created_at DESC
            LIMIT ? OFFSET ?
            """,
            (*params, limit, offset),
        ).fetchall()
    return {"success": True, "data": {"alerts": [alert_payload(r) for r in rows]}}


@router.get("/types")
def list_alert_types():
    return {"success": True, "data": {"types": ALERT_TYPES}}


@router.get("/{alert_uuid}")
def get_alert(alert_uuid: str):
    with get_conn() as conn:
        row = conn.execute("SELECT * FROM alerts WHERE uuid=?", (alert_uuid,)).fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Alert not found")
    return {"success": True, "data": alert_payload(row)}


@router.post("", status_code=201)
def create_alert(body: AlertIn, user: dict = Depends(require_authority)):
    alert_uuid = str(uuid4())
    with get_conn() as conn:
        conn.execute(
            """
            INSERT INTO alerts (uuid,title,message,alert_type,severity,latitude,longitude,radius_km,expires_at,
                                created_by,created_at)
            VALUES (?,?,?,?,?,?,?,?,?,?,?)
            """,
            (
                alert_uuid,
                body.title,
                body.message,
                body.alert_type,
                body.severity,
                body.latitude,
                body.longitude,
                body.radius_km,
                to_iso(body.expires_at),
                user["id"],
                now_iso(),
            ),
        )
        row = conn.execute("SELECT * FROM alerts WHERE uuid=?", (alert_uuid,)).fetchone()
    log.info("Alert %s (%s/%s) issued by %s", alert_uuid, body.alert_type, body.severity, user["email"])
    return {"success": True, "message": "Alert created", "data": alert_payload(row)}


@router.put("/{alert_uuid}")
def update_alert(alert_uuid: str, body: AlertUpdateIn, user: dict = Depends(require_authority)):
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if "expires_at" in changes:
        changes["expires_at"] = to_iso(changes["expires_at"])
    if "is_active" in changes:
        changes["is_active"] = int(changes["is_active"])
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")

    assignments = ", ".join(f"{column}=?" for column in changes)
    with get_conn() as conn:
        cur = conn.execute(f"UPDATE alerts SET {assignments} WHERE uuid=?", (*changes.values(), alert_uuid))
        if cur.rowcount == 0:
            raise HTTPException(status_code=404, detail="Alert not found")
        row = conn.execute("SELECT * FROM alerts WHERE uuid=?", (alert_uuid,)).fetchone()
    return {"success": True, "message": "Alert updated", "data": alert_payload(row)}


@router.delete("/{alert_uuid}")
def deactivate_alert(alert_uuid: str, user: dict = Depends(require_authority)):
    with get_conn() as conn:
        cur = conn.execute("UPDATE alerts SET is_active=0 WHERE uuid=?", (alert_uuid,))
        if cur.rowcount == 0:
            raise HTTPException(status_code=404, detail="Alert not found")
    log.info("Alert %s deactivated by %s", alert_uuid, user["email"])
    return {"success": True, "message": "Alert deactivated"}
