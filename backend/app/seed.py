from __future__ import annotations

import logging
from uuid import uuid4

from .auth import hash_password
from .config import ADMIN_EMAIL, AUTHORITY_EMAIL, SEED_PASSWORD
from .db import get_conn, now_iso

log = logging.getLogger(__name__)

# Lima, Peru
HELP_POINTS = [
    ("Comisaría de Miraflores", "police_station", "Comisaría PNP de Miraflores", -12.1186, -77.0286,
     "Av. José Larco 770, Miraflores", "(01) 445-1234", "24 horas", True),
    ("Hospital Rebagliati", "hospital", "Hospital Nacional Edgardo Rebagliati Martins", -12.0789, -77.0389,
     "Av. Edgardo Rebagliati 490, Jesús María", "(01) 265-4901", "24 horas", True),
    ("Estación de Bomberos N° 4", "fire_station", "Compañía de Bomberos Voluntarios N° 4", -12.1097, -77.0344,
     "Calle Berlín 601, Miraflores", "116", "24 horas", True),
    ("Serenazgo San Isidro", "serenazgo", "Central de Serenazgo de San Isidro", -12.0986, -77.0352,
     "Calle Libertadores 130, San Isidro", "(01) 513-9000", "24 horas", True),
    ("Comisaría San Borja", "police_station", "Comisaría PNP de San Borja", -12.1019, -76.9989,
     "Av. San Borja Norte 1130, San Borja", "(01) 476-2345", "24 horas", True),
    ("Clínica Ricardo Palma", "hospital", "Clínica Ricardo Palma - Emergencias", -12.0994, -77.0317,
     "Av. Javier Prado Este 1066, San Isidro", "(01) 224-2224", "24 horas", True),
    ("Serenazgo Miraflores", "serenazgo", "Central de Serenazgo de Miraflores", -12.1201, -77.0322,
     "Av. Larco cdra. 7, Miraflores", "(01) 617-7000", "24 horas", True),
    ("Cámara Parque Kennedy", "security_camera", "Cámara de vigilancia Parque Kennedy", -12.1197, -77.0300,
     "Parque Kennedy, Miraflores", None, "24/7", True),
    ("Punto de Emergencia Larcomar", "emergency_point", "Punto de auxilio rápido en Larcomar", -12.1307, -77.0296,
     "Centro Comercial Larcomar", "(01) 620-6000", "10:00 - 22:00", False),
    ("Hospital Militar Central", "hospital", "Hospital Militar Central", -12.0812, -77.0049,
     "Av. Faustino Sánchez Carrión s/n, Jesús María", "(01) 463-2222", "24 horas", True),
]

# (latitude, longitude, intensity, zone_type, incident_count)
HEAT_ZONES = [
    (-12.0464, -77.0428, 7, "crime", 15),
    (-12.0556, -77.0864, 5, "accident", 8),
    (-12.1186, -77.0286, 3, "congestion", 12),
    (-12.0789, -77.0389, 6, "danger", 10),
    (-12.0986, -77.0352, 4, "crime", 6),
    (-12.1097, -77.0344, 8, "accident", 20),
    (-12.0812, -77.0049, 2, "congestion", 5),
    (-12.1019, -76.9989, 5, "crime", 9),
]

ALERTS = [
    ("Accidente en Av. Javier Prado",
     "Se reporta accidente vehicular múltiple en Av. Javier Prado con Av. Arequipa. Evite la zona.",
     "accident", "high", -12.0900, -77.0350, 0.5),
    ("Congestión en Vía Expresa",
     "Alto tráfico vehicular en la Vía Expresa sentido sur. Tiempo estimado de demora: 45 minutos.",
     "congestion", "medium", -12.1100, -77.0300, 2),
    ("Zona de obras en San Isidro", "Obras en Av. Camino Real. Carril derecho cerrado hasta las 18:00.",
     "obstruction", "low", -12.0980, -77.0400, 0.3),
    ("Alerta de seguridad nocturna",
     "Se recomienda precaución en la zona de La Victoria durante horario nocturno.",
     "danger_zone", "high", -12.0650, -77.0200, 1),
    ("Evento deportivo en Estadio Nacional",
     "Partido de fútbol hoy a las 20:00. Se esperan cierres viales en las inmediaciones.",
     "event", "medium", -12.0669, -77.0330, 1),
]


def seed_accounts() -> None:
    accounts = [
        (ADMIN_EMAIL, "CaminoSeguro Admin", "admin", None),
        (AUTHORITY_EMAIL, "Autoridad Municipal", "authority", "Municipalidad de Lima"),
    ]
    with get_conn() as conn:
        for email, name, user_type, institution in accounts:
            exists = conn.execute("SELECT id FROM users WHERE email=?", (email,)).fetchone()
            if not exists:
                conn.execute(
                    """
                    INSERT INTO users (uuid,full_name,email,password_hash,user_type,institution,is_verified,
                                       created_at,updated_at)
                    VALUES (?,?,?,?,?,?,1,?,?)
                    """,
                    (str(uuid4()), name, email, hash_password(SEED_PASSWORD), user_type, institution,
                     now_iso(), now_iso()),
                )
                log.info("Seeded %s account %s", user_type, email)


def seed_demo_data() -> None:
    """Loads the Lima sample set once; skipped when help points already exist."""
    with get_conn() as conn:
        if conn.execute("SELECT COUNT(*) AS c FROM help_points").fetchone()["c"]:
            return
        stamp = now_iso()
        conn.executemany(
            """
            INSERT INTO help_points (uuid,name,type,description,latitude,longitude,address,phone,schedule,is_24h,
                                     created_at,updated_at)
            VALUES (?,?,?,?,?,?,?,?,?,?,?,?)
            """,
            [(str(uuid4()), *point[:-1], int(point[-1]), stamp, stamp) for point in HELP_POINTS],
        )
        conn.executemany(
            """
            INSERT INTO heat_zones (uuid,latitude,longitude,intensity,zone_type,incident_count,last_incident_at,
                                    created_at,updated_at)
            VALUES (?,?,?,?,?,?,?,?,?)
            """,
            [(str(uuid4()), *zone, stamp, stamp, stamp) for zone in HEAT_ZONES],
        )
        conn.executemany(
            """
            INSERT INTO alerts (uuid,title,message,alert_type,severity,latitude,longitude,radius_km,created_at)
            VALUES (?,?,?,?,?,?,?,?,?)
            """,
            [(str(uuid4()), *alert, stamp) for alert in ALERTS],
        )
    log.info("Seeded demo data: %d help points, %d heat zones, %d alerts",
             len(HELP_POINTS), len(HEAT_ZONES), len(ALERTS))
