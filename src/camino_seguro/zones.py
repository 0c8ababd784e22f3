from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple
from uuid import uuid4

from camino_seguro.models import HeatZone, utcnow
from camino_seguro.store import HeatZoneStore

log = logging.getLogger(__name__)

# Checked in order, first match wins.
ZONE_TYPE_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("accidente",), "accident"),
    (("robo", "crimen"), "crime"),
    (("congestión", "tráfico"), "congestion"),
)
DEFAULT_ZONE_TYPE = "danger"

MERGE_RADIUS_KM = 0.1
MIN_INTENSITY = 1
MAX_INTENSITY = 10


def classify_incident(
    label: str,
    rules: Sequence[Tuple[Sequence[str], str]] = ZONE_TYPE_RULES,
    default: str = DEFAULT_ZONE_TYPE,
) -> str:
    text = label.lower()
    for keywords, zone_type in rules:
        if any(keyword in text for keyword in keywords):
            return zone_type
    return default


class HeatZoneAccumulator:
    """Folds incident reports into per-type heat zones.

    Each incident either bumps the nearest same-type zone within
    ``merge_radius_km`` or opens a new one. The lookup and the write are two
    separate store calls; concurrent reports at the same spot can race.
    """

    def __init__(
        self,
        store: HeatZoneStore,
        rules: Sequence[Tuple[Sequence[str], str]] = ZONE_TYPE_RULES,
        merge_radius_km: float = MERGE_RADIUS_KM,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.rules = rules
        self.merge_radius_km = merge_radius_km
        self.clock = clock

    def classify(self, incident_type: str) -> str:
        return classify_incident(incident_type, self.rules)

    def record_incident(self, latitude: float, longitude: float, incident_type: str) -> None:
        """Best effort: failures are logged, never raised to the caller."""
        try:
            self.accumulate(latitude, longitude, incident_type)
        except Exception:
            log.exception("Heat zone update failed for %r at (%s, %s)", incident_type, latitude, longitude)

    def accumulate(self, latitude: float, longitude: float, incident_type: str) -> HeatZone:
        zone_type = self.classify(incident_type)
        now = self.clock()
        existing: Optional[HeatZone] = self.store.find_nearby(latitude, longitude, zone_type, self.merge_radius_km)

        if existing is not None:
            intensity = min(MAX_INTENSITY, existing.intensity + 1)
            incident_count = existing.incident_count + 1
            self.store.update(existing.zone_id, intensity, incident_count, now)
            log.debug("Zone %s (%s) now intensity=%d count=%d", existing.zone_id, zone_type, intensity, incident_count)
            return HeatZone(
                zone_id=existing.zone_id,
                latitude=existing.latitude,
                longitude=existing.longitude,
                zone_type=zone_type,
                intensity=intensity,
                incident_count=incident_count,
                last_incident_at=now,
            )

        zone = HeatZone(
            zone_id=str(uuid4()),
            latitude=latitude,
            longitude=longitude,
            zone_type=zone_type,
            intensity=MIN_INTENSITY,
            incident_count=1,
            last_incident_at=now,
        )
        self.store.create(zone)
        log.debug("Opened %s zone %s at (%s, %s)", zone_type, zone.zone_id, latitude, longitude)
        return zone
