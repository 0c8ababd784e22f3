from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query

from camino_seguro.models import RouteAssessment, RouteEndpoint

from ..auth import get_current_user
from ..db import dump_json, get_conn, load_json, now_iso
from ..schemas import FavoriteIn, RouteQueryIn, RouteSaveIn
from ..zones import route_evaluator

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/routes", tags=["routes"])


def _endpoints(body: RouteQueryIn):
    origin = RouteEndpoint(body.origin_lat, body.origin_lng, body.origin_address)
    destination = RouteEndpoint(body.destination_lat, body.destination_lng, body.destination_address)
    return origin, destination


def assessment_payload(result: RouteAssessment) -> dict:
    return {
        "origin": {
            "latitude": result.origin.latitude,
            "longitude": result.origin.longitude,
            "address": result.origin.address,
        },
        "destination": {
            "latitude": result.destination.latitude,
            "longitude": result.destination.longitude,
            "address": result.destination.address,
        },
        "safetyScore": result.safety_score,
        "safetyLevel": result.safety_level,
        "distanceKm": result.distance_km,
        "estimatedTimeMin": result.estimated_time_minutes,
        "dangerZones": result.danger_zone_count,
        "helpPointsNearby": [
            {
                "uuid": p.point_id,
                "name": p.name,
                "type": p.point_type,
                "latitude": p.latitude,
                "longitude": p.longitude,
                "phone": p.phone,
            }
            for p in result.help_points_nearby
        ],
    }


def route_payload(r) -> dict:
    return {
        "uuid": r["uuid"],
        "name": r["name"],
        "origin": {"latitude": r["origin_lat"], "longitude": r["origin_lng"], "address": r["origin_address"]},
        "destination": {
            "latitude": r["destination_lat"],
            "longitude": r["destination_lng"],
            "address": r["destination_address"],
        },
        "waypoints": load_json(r["waypoints"]),
        "safetyScore": r["safety_score"],
        "distanceKm": r["distance_km"],
        "estimatedTimeMin": r["estimated_time_min"],
        "isFavorite": bool(r["is_favorite"]),
        "createdAt": r["created_at"],
    }


@router.get("")
def list_routes(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    favorites_only: bool = Query(False, alias="favoritesOnly"),
    user: dict = Depends(get_current_user),
):
    where = "WHERE user_id=?"
    if favorites_only:
        where += " AND is_favorite=1"
    with get_conn() as conn:
        rows = conn.execute(
            f"SELECT * FROM safe_routes {where} ORDER BY created_at DESC LIMIT ? OFFSET ?",
            (user["id"], limit, offset),
        ).fetchall()
    return {"success": True, "data": {"routes": [route_payload(r) for r in rows]}}


@router.post("/calculate")
def calculate_route(body: RouteQueryIn):
    result = route_evaluator.evaluate(*_endpoints(body))
    return {"success": True, "data": {"route": assessment_payload(result)}}


@router.post("", status_code=201)
def save_route(body: RouteSaveIn, user: dict = Depends(get_current_user)):
    score, distance, minutes = body.safety_score, body.distance_km, body.estimated_time_min
    if score is None or distance is None or minutes is None:
        result = route_evaluator.evaluate(*_endpoints(body))
        score = result.safety_score if score is None else score
        distance = result.distance_km if distance is None else distance
        minutes = result.estimated_time_minutes if minutes is None else minutes

    route_uuid = str(uuid4())
    with get_conn() as conn:
        conn.execute(
            """
            INSERT INTO safe_routes (uuid,user_id,name,origin_lat,origin_lng,origin_address,destination_lat,
                                     destination_lng,destination_address,waypoints,safety_score,distance_km,
                                     estimated_time_min,is_favorite,created_at)
            VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)
            """,
            (
                route_uuid,
                user["id"],
                body.name,
                body.origin_lat,
                body.origin_lng,
                body.origin_address,
                body.destination_lat,
                body.destination_lng,
                body.destination_address,
                dump_json(body.waypoints),
                score,
                distance,
                minutes,
                int(body.is_favorite),
                now_iso(),
            ),
        )
        row = conn.execute("SELECT * FROM safe_routes WHERE uuid=?", (route_uuid,)).fetchone()
    return {"success": True, "message": "Route saved", "data": route_payload(row)}


@router.put("/{route_uuid}/favorite")
def set_favorite(route_uuid: str, body: FavoriteIn, user: dict = Depends(get_current_user)):
    with get_conn() as conn:
        cur = conn.execute(
            "UPDATE safe_routes SET is_favorite=? WHERE uuid=? AND user_id=?",
            (int(body.is_favorite), route_uuid, user["id"]),
        )
        if cur.rowcount == 0:
            raise HTTPException(status_code=404, detail="Route not found")
    return {"success": True, "data": {"uuid": route_uuid, "isFavorite": body.is_favorite}}


@router.delete("/{route_uuid}")
def delete_route(route_uuid: str, user: dict = Depends(get_current_user)):
    with get_conn() as conn:
        cur = conn.execute("DELETE FROM safe_routes WHERE uuid=? AND user_id=?", (route_uuid, user["id"]))
        if cur.rowcount == 0:
            raise HTTPException(status_code=404, detail="Route not found")
    return {"success": True, "message": "Route deleted"}
