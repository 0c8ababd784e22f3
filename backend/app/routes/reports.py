from __future__ import annotations

import io
import logging
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from ..auth import get_current_user, require_authority
from ..db import WITHIN_KM, get_conn, now_iso
from ..pdf import build_reports_pdf
from ..schemas import ReportIn, ReportStatus, ReportStatusIn, Severity
from ..zones import accumulator

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])

REPORT_COLUMNS = """
    r.uuid, r.incident_type, r.description, r.latitude, r.longitude, r.address, r.severity, r.status,
    r.image_url, r.is_anonymous, r.views_count, r.created_at, r.updated_at,
    CASE WHEN r.is_anonymous THEN NULL ELSE u.full_name END AS reporter_name,
    CASE WHEN r.is_anonymous THEN NULL ELSE u.uuid END AS reporter_uuid
"""


def report_payload(r) -> dict:
    keys = r.keys()
    out = {
        "uuid": r["uuid"],
        "incidentType": r["incident_type"],
        "description": r["description"],
        "location": {"latitude": r["latitude"], "longitude": r["longitude"], "address": r["address"]},
        "severity": r["severity"],
        "status": r["status"],
        "imageUrl": r["image_url"],
        "viewsCount": r["views_count"],
        "createdAt": r["created_at"],
    }
    if "is_anonymous" in keys:
        out["isAnonymous"] = bool(r["is_anonymous"])
    if "reporter_name" in keys:
        out["reporterName"] = r["reporter_name"]
    return out


@router.get("")
def list_reports(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    status: Optional[ReportStatus] = None,
    incident_type: Optional[str] = Query(None, alias="incidentType"),
    severity: Optional[Severity] = None,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: float = Query(5, gt=0),
):
    where = ["1=1"]
    params: list = []
    if status:
        where.append("r.status=?")
        params.append(status)
    if incident_type:
        where.append("r.incident_type=?")
        params.append(incident_type)
    if severity:
        where.append("r.severity=?")
        params.append(severity)
    if lat is not None and lng is not None:
        where.append(WITHIN_KM)
        params.extend([lat, lng, radius])

    with get_conn() as conn:
        rows = conn.execute(
            f"""
            SELECT {REPORT_COLUMNS}
            FROM reports r LEFT JOIN users u ON u.id = r.user_id
            WHERE {' AND '.join(where)}
            ORDER BY r.created_at DESC
            LIMIT ? OFFSET ?
            """,
            (*params, limit, offset),
        ).fetchall()
    return {"success": True, "data": {"reports": [report_payload(r) for r in rows]}}


@router.get("/user/my-reports")
def my_reports(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: dict = Depends(get_current_user),
):
    with get_conn() as conn:
        rows = conn.execute(
            """
            SELECT uuid, incident_type, description, latitude, longitude, address, severity, status,
                   image_url, views_count, created_at
            FROM reports WHERE user_id=?
            ORDER BY created_at DESC
            LIMIT ? OFFSET ?
            """,
            (user["id"], limit, offset),
        ).fetchall()
    return {"success": True, "data": {"reports": [report_payload(r) for r in rows]}}


@router.get("/export/pdf")
def export_reports_pdf(user: dict = Depends(require_authority)):
    with get_conn() as conn:
        rows = conn.execute(
            f"""
            SELECT {REPORT_COLUMNS}
            FROM reports r LEFT JOIN users u ON u.id = r.user_id
            ORDER BY r.created_at DESC
            LIMIT 100
            """
        ).fetchall()
    content = build_reports_pdf([dict(r) for r in rows])
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=reports_summary.pdf"},
    )


@router.get("/{report_uuid}")
def get_report(report_uuid: str):
    with get_conn() as conn:
        conn.execute("UPDATE reports SET views_count = views_count + 1 WHERE uuid=?", (report_uuid,))
        row = conn.execute(
            f"""
            SELECT {REPORT_COLUMNS}
            FROM reports r LEFT JOIN users u ON u.id = r.user_id
            WHERE r.uuid=?
            """,
            (report_uuid,),
        ).fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Report not found")

    data = report_payload(row)
    data["reporterUuid"] = row["reporter_uuid"]
    data["updatedAt"] = row["updated_at"]
    return {"success": True, "data": data}


@router.post("", status_code=201)
def create_report(body: ReportIn, user: dict = Depends(get_current_user)):
    report_uuid = str(uuid4())
    with get_conn() as conn:
        conn.execute(
            """
            INSERT INTO reports (uuid,user_id,incident_type,description,latitude,longitude,address,severity,
                                 image_url,is_anonymous,created_at,updated_at)
            VALUES (?,?,?,?,?,?,?,?,?,?,?,?)
            """,
            (
                report_uuid,
                user["id"],
                body.incident_type,
                body.description,
                body.latitude,
                body.longitude,
                body.address,
                body.severity,
                body.image_url,
                int(body.is_anonymous),
                now_iso(),
                now_iso(),
            ),
        )
        row = conn.execute("SELECT * FROM reports WHERE uuid=?", (report_uuid,)).fetchone()

    # Committed above; heat zones are advisory and must not undo the report.
    accumulator.record_incident(body.latitude, body.longitude, body.incident_type)
    log.info("Report %s (%s) created by %s", report_uuid, body.incident_type, user["email"])

    data = report_payload(row)
    return {"success": True, "message": "Report created", "data": data}


@router.put("/{report_uuid}/status")
def update_report_status(report_uuid: str, body: ReportStatusIn, user: dict = Depends(require_authority)):
    with get_conn() as conn:
        report = conn.execute("SELECT id, user_id FROM reports WHERE uuid=?", (report_uuid,)).fetchone()
        if not report:
            raise HTTPException(status_code=404, detail="Report not found")
        updated_at = now_iso()
        conn.execute("UPDATE reports SET status=?, updated_at=? WHERE id=?", (body.status, updated_at, report["id"]))
        if report["user_id"]:
            conn.execute(
                """
                INSERT INTO notifications (uuid,user_id,title,message,notification_type,
                                           related_entity_type,related_entity_id,created_at)
                VALUES (?,?,?,?,?,?,?,?)
                """,
                (
                    str(uuid4()),
                    report["user_id"],
                    "Report status updated",
                    f"Your report is now '{body.status}'.",
                    "report_status",
                    "report",
                    report["id"],
                    now_iso(),
                ),
            )
    return {
        "success": True,
        "message": "Report status updated",
        "data": {"uuid": report_uuid, "status": body.status, "updatedAt": updated_at},
    }
