from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from camino_seguro.geo import haversine_km
from camino_seguro.models import utcnow

from .config import DB_PATH

# Distance predicate shared by every located query; params are (lat, lng, radius_km).
WITHIN_KM = "haversine_km(?, ?, latitude, longitude) <= ?"


def init_db() -> None:
    with get_conn() as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                uuid TEXT UNIQUE NOT NULL,
                full_name TEXT NOT NULL,
                email TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                phone TEXT,
                avatar_url TEXT,
                user_type TEXT NOT NULL DEFAULT 'citizen'
                    CHECK (user_type IN ('citizen', 'authority', 'admin')),
                institution TEXT,
                badge_number TEXT,
                is_verified INTEGER NOT NULL DEFAULT 0,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS reports (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                uuid TEXT UNIQUE NOT NULL,
                user_id INTEGER REFERENCES users(id),
                incident_type TEXT NOT NULL,
                description TEXT,
                latitude REAL NOT NULL,
                longitude REAL NOT NULL,
                address TEXT,
                severity TEXT NOT NULL DEFAULT 'medium'
                    CHECK (severity IN ('low', 'medium', 'high', 'critical')),
                status TEXT NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'reviewing', 'confirmed', 'resolved', 'rejected')),
                image_url TEXT,
                is_anonymous INTEGER NOT NULL DEFAULT 0,
                views_count INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS help_points (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                uuid TEXT UNIQUE NOT NULL,
                name TEXT NOT NULL,
                type TEXT NOT NULL CHECK (type IN ('police_station', 'hospital', 'fire_station',
                                                   'serenazgo', 'security_camera', 'emergency_point')),
                description TEXT,
                latitude REAL NOT NULL,
                longitude REAL NOT NULL,
                address TEXT,
                phone TEXT,
                schedule TEXT,
                is_24h INTEGER NOT NULL DEFAULT 0,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS safe_routes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                uuid TEXT UNIQUE NOT NULL,
                user_id INTEGER REFERENCES users(id),
                name TEXT,
                origin_lat REAL NOT NULL,
                origin_lng REAL NOT NULL,
                origin_address TEXT,
                destination_lat REAL NOT NULL,
                destination_lng REAL NOT NULL,
                destination_address TEXT,
                waypoints TEXT,
                safety_score INTEGER NOT NULL DEFAULT 0 CHECK (safety_score >= 0 AND safety_score <= 100),
                distance_km REAL,
                estimated_time_min INTEGER,
                is_favorite INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS alerts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                uuid TEXT UNIQUE NOT NULL,
                title TEXT NOT NULL,
                message TEXT NOT NULL,
                alert_type TEXT NOT NULL CHECK (alert_type IN ('accident', 'congestion', 'obstruction',
                                                               'danger_zone', 'weather', 'event', 'general')),
                severity TEXT NOT NULL DEFAULT 'medium'
                    CHECK (severity IN ('low', 'medium', 'high', 'critical')),
                latitude REAL,
                longitude REAL,
                radius_km REAL,
                is_active INTEGER NOT NULL DEFAULT 1,
                expires_at TEXT,
                created_by INTEGER REFERENCES users(id),
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS heat_zones (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                uuid TEXT UNIQUE NOT NULL,
                latitude REAL NOT NULL,
                longitude REAL NOT NULL,
                intensity INTEGER NOT NULL DEFAULT 1 CHECK (intensity >= 1 AND intensity <= 10),
                zone_type TEXT NOT NULL CHECK (zone_type IN ('crime', 'accident', 'congestion', 'danger')),
                last_incident_at TEXT NOT NULL,
                incident_count INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS notifications (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                uuid TEXT UNIQUE NOT NULL,
                user_id INTEGER REFERENCES users(id),
                title TEXT NOT NULL,
                message TEXT NOT NULL,
                notification_type TEXT NOT NULL DEFAULT 'info',
                is_read INTEGER NOT NULL DEFAULT 0,
                related_entity_type TEXT,
                related_entity_id INTEGER,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS patrols (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                uuid TEXT UNIQUE NOT NULL,
                name TEXT NOT NULL,
                patrol_type TEXT NOT NULL,
                resources TEXT NOT NULL,
                scheduled_at TEXT NOT NULL,
                duration INTEGER NOT NULL CHECK (duration >= 1 AND duration <= 12),
                status TEXT NOT NULL DEFAULT 'scheduled'
                    CHECK (status IN ('scheduled', 'in_progress', 'completed', 'cancelled')),
                latitude REAL,
                longitude REAL,
                notes TEXT,
                created_by INTEGER REFERENCES users(id),
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_reports_location ON reports(latitude, longitude);
            CREATE INDEX IF NOT EXISTS idx_reports_status ON reports(status);
            CREATE INDEX IF NOT EXISTS idx_help_points_location ON help_points(latitude, longitude);
            CREATE INDEX IF NOT EXISTS idx_help_points_type ON help_points(type);
            CREATE INDEX IF NOT EXISTS idx_alerts_active ON alerts(is_active);
            CREATE INDEX IF NOT EXISTS idx_heat_zones_location ON heat_zones(latitude, longitude);
            CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id, is_read);
            CREATE INDEX IF NOT EXISTS idx_patrols_status ON patrols(status);
            """
        )


def _sql_haversine(lat1, lng1, lat2, lng2) -> Optional[float]:
    # alerts may have no location
    if None in (lat1, lng1, lat2, lng2):
        return None
    return haversine_km(lat1, lng1, lat2, lng2)


@contextmanager
def get_conn():
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.create_function("haversine_km", 4, _sql_haversine, deterministic=True)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def now_iso() -> str:
    return utcnow().isoformat()


def hours_ago_iso(hours: float) -> str:
    return (utcnow() - timedelta(hours=hours)).isoformat()


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Normalise to naive UTC so stored strings compare with now_iso()."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat()


def dump_json(value: Any) -> Optional[str]:
    return None if value is None else json.dumps(value)


def load_json(raw: Optional[str]) -> Any:
    return None if raw is None else json.loads(raw)
