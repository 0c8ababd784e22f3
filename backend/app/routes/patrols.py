from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth import require_authority
from ..db import dump_json, get_conn, load_json, now_iso, to_iso
from ..schemas import PatrolIn, PatrolStatus, PatrolStatusIn, PatrolUpdateIn

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/patrols", tags=["patrols"], dependencies=[Depends(require_authority)])


def patrol_payload(p) -> dict:
    location = None
    if p["latitude"] is not None and p["longitude"] is not None:
        location = {"latitude": p["latitude"], "longitude": p["longitude"]}
    return {
        "uuid": p["uuid"],
        "name": p["name"],
        "patrolType": p["patrol_type"],
        "resources": load_json(p["resources"]),
        "scheduledAt": p["scheduled_at"],
        "duration": p["duration"],
        "status": p["status"],
        "location": location,
        "notes": p["notes"],
        "createdAt": p["created_at"],
        "updatedAt": p["updated_at"],
    }


def _fetch(conn, patrol_uuid: str):
    row = conn.execute("SELECT * FROM patrols WHERE uuid=?", (patrol_uuid,)).fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Patrol not found")
    return row


@router.get("")
def list_patrols(
    status: Optional[PatrolStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    where, params = "", []
    if status:
        where, params = "WHERE status=?", [status]
    with get_conn() as conn:
        rows = conn.execute(
            f"SELECT * FROM patrols {where} ORDER BY scheduled_at DESC LIMIT ? OFFSET ?",
            (*params, limit, offset),
        ).fetchall()
    return {"success": True, "data": {"patrols": [patrol_payload(r) for r in rows]}}


@router.get("/{patrol_uuid}")
def get_patrol(patrol_uuid: str):
    with get_conn() as conn:
        row = _fetch(conn, patrol_uuid)
    return {"success": True, "data": patrol_payload(row)}


@router.post("", status_code=201)
def create_patrol(body: PatrolIn, user: dict = Depends(require_authority)):
    patrol_uuid = str(uuid4())
    with get_conn() as conn:
        conn.execute(
            """
            INSERT INTO patrols (uuid,name,patrol_type,resources,scheduled_at,duration,latitude,longitude,notes,
                                 created_by,created_at,updated_at)
            VALUES (?,?,?,?,?,?,?,?,?,?,?,?)
            """,
            (
                patrol_uuid,
                body.name,
                body.patrol_type,
                dump_json(body.resources),
                to_iso(body.scheduled_at),
                body.duration,
                body.latitude,
                body.longitude,
                body.notes,
                user["id"],
                now_iso(),
                now_iso(),
            ),
        )
        row = _fetch(conn, patrol_uuid)
    log.info("Patrol %s scheduled for %s by %s", patrol_uuid, row["scheduled_at"], user["email"])
    return {"success": True, "message": "Patrol scheduled", "data": patrol_payload(row)}


@router.put("/{patrol_uuid}")
def update_patrol(patrol_uuid: str, body: PatrolUpdateIn):
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if "resources" in changes:
        changes["resources"] = dump_json(changes["resources"])
    if "scheduled_at" in changes:
        changes["scheduled_at"] = to_iso(changes["scheduled_at"])
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")

    assignments = ", ".join(f"{column}=?" for column in changes)
    with get_conn() as conn:
        _fetch(conn, patrol_uuid)
        conn.execute(
            f"UPDATE patrols SET {assignments}, updated_at=? WHERE uuid=?",
            (*changes.values(), now_iso(), patrol_uuid),
        )
        row = _fetch(conn, patrol_uuid)
    return {"success": True, "message": "Patrol updated", "data": patrol_payload(row)}


@router.patch("/{patrol_uuid}/status")
def update_patrol_status(patrol_uuid: str, body: PatrolStatusIn):
    with get_conn() as conn:
        _fetch(conn, patrol_uuid)
        conn.execute(
            "UPDATE patrols SET status=?, updated_at=? WHERE uuid=?", (body.status, now_iso(), patrol_uuid)
        )
        row = _fetch(conn, patrol_uuid)
    return {"success": True, "message": "Patrol status updated", "data": patrol_payload(row)}


@router.delete("/{patrol_uuid}")
def delete_patrol(patrol_uuid: str):
    with get_conn() as conn:
        _fetch(conn, patrol_uuid)
        conn.execute("DELETE FROM patrols WHERE uuid=?", (patrol_uuid,))
    return {"success": True, "message": "Patrol deleted"}
