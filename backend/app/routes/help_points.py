from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth import require_authority
from ..db import WITHIN_KM, get_conn, now_iso
from ..schemas import HelpPointIn, HelpPointType, HelpPointUpdateIn

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/help-points", tags=["help-points"])

HELP_POINT_TYPES = [
    {"id": "police_station", "name": "Police station", "icon": "shield"},
    {"id": "hospital", "name": "Hospital", "icon": "hospital"},
    {"id": "fire_station", "name": "Fire station", "icon": "fire"},
    {"id": "serenazgo", "name": "Serenazgo", "icon": "badge"},
    {"id": "security_camera", "name": "Security camera", "icon": "camera"},
    {"id": "emergency_point", "name": "Emergency point", "icon": "alert"},
]


def help_point_payload(p) -> dict:
    out = {
        "uuid": p["uuid"],
        "name": p["name"],
        "type": p["type"],
        "description": p["description"],
        "location": {"latitude": p["latitude"], "longitude": p["longitude"], "address": p["address"]},
        "phone": p["phone"],
        "schedule": p["schedule"],
        "is24h": bool(p["is_24h"]),
    }
    if "distance_km" in p.keys() and p["distance_km"] is not None:
        out["distanceKm"] = round(p["distance_km"], 2)
    return out


@router.get("")
def list_help_points(
    type: Optional[HelpPointType] = None,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: float = Query(10, gt=0),
    is_24h: Optional[bool] = Query(None, alias="is24h"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    located = lat is not None and lng is not None
    where = ["is_active=1"]
    params: list = []
    if type:
        where.append("type=?")
        params.append(type)
    if is_24h is not None:
        where.append("is_24h=?")
        params.append(int(is_24h))
    if located:
        where.append(WITHIN_KM)
        params.extend([lat, lng, radius])

    distance = "haversine_km(?, ?, latitude, longitude)" if located else "NULL"
    order = "distance_km" if located else "name"
    select_params = [lat, lng] if located else []

    with get_conn() as conn:
        rows = conn.execute(
            f"""
            SELECT *, {distance} AS distance_km FROM help_points
            WHERE {' AND '.join(where)}
            ORDER BY {order}
            LIMIT ? OFFSET ?
            """,
            (*select_params, *params, limit, offset),
        ).fetchall()
    return {"success": True, "data": {"helpPoints": [help_point_payload(r) for r in rows]}}


@router.get("/types")
def list_help_point_types():
    return {"success": True, "data": {"types": HELP_POINT_TYPES}}


@router.get("/{point_uuid}")
def get_help_point(point_uuid: str):
    with get_conn() as conn:
        row = conn.execute("SELECT * FROM help_points WHERE uuid=? AND is_active=1", (point_uuid,)).fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Help point not found")
    return {"success": True, "data": help_point_payload(row)}


@router.post("", status_code=201)
def create_help_point(body: HelpPointIn, user: dict = Depends(require_authority)):
    point_uuid = str(uuid4())
    with get_conn() as conn:
        conn.execute(
            """
            INSERT INTO help_points (uuid,name,type,description,latitude,longitude,address,phone,schedule,
                                     is_24h,created_at,updated_at)
            VALUES (?,?,?,?,?,?,?,?,?,?,?,?)
            """,
            (
                point_uuid,
                body.name,
                body.type,
                body.description,
                body.latitude,
                body.longitude,
                body.address,
                body.phone,
                body.schedule,
                int(body.is_24h),
                now_iso(),
                now_iso(),
            ),
        )
        row = conn.execute("SELECT * FROM help_points WHERE uuid=?", (point_uuid,)).fetchone()
    log.info("Help point %s (%s) created by %s", point_uuid, body.type, user["email"])
    return {"success": True, "message": "Help point created", "data": help_point_payload(row)}


@router.put("/{point_uuid}")
def update_help_point(point_uuid: str, body: HelpPointUpdateIn, user: dict = Depends(require_authority)):
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if "is_24h" in changes:
        changes["is_24h"] = int(changes["is_24h"])
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")

    assignments = ", ".join(f"{column}=?" for column in changes)
    with get_conn() as conn:
        cur = conn.execute(
            f"UPDATE help_points SET {assignments}, updated_at=? WHERE uuid=? AND is_active=1",
            (*changes.values(), now_iso(), point_uuid),
        )
        if cur.rowcount == 0:
            raise HTTPException(status_code=404, detail="Help point not found")
        row = conn.execute("SELECT * FROM help_points WHERE uuid=?", (point_uuid,)).fetchone()
    return {"success": True, "message": "Help point updated", "data": help_point_payload(row)}


@router.delete("/{point_uuid}")
def delete_help_point(point_uuid: str, user: dict = Depends(require_authority)):
    with get_conn() as conn:
        cur = conn.execute(
            "UPDATE help_points SET is_active=0, updated_at=? WHERE uuid=? AND is_active=1",
            (now_iso(), point_uuid),
        )
        if cur.rowcount == 0:
            raise HTTPException(status_code=404, detail="Help point not found")
    log.info("Help point %s deactivated by %s", point_uuid, user["email"])
    return {"success": True, "message": "Help point deleted"}
