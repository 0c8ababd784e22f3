from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints

Severity = Literal["low", "medium", "high", "critical"]
ReportStatus = Literal["pending", "reviewing", "confirmed", "resolved", "rejected"]
HelpPointType = Literal[
    "police_station", "hospital", "fire_station", "serenazgo", "security_camera", "emergency_point"
]
AlertType = Literal["accident", "congestion", "obstruction", "danger_zone", "weather", "event", "general"]
PatrolStatus = Literal["scheduled", "in_progress", "completed", "cancelled"]

Latitude = Annotated[float, Field(ge=-90, le=90)]
Longitude = Annotated[float, Field(ge=-180, le=180)]
Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ApiModel(BaseModel):
    # the mobile/web clients send camelCase
    model_config = ConfigDict(populate_by_name=True)


# ---------- auth / users ----------

class RegisterIn(ApiModel):
    full_name: Text = Field(alias="fullName")
    email: EmailStr
    password: str = Field(min_length=6)
    phone: Optional[str] = None


class AuthorityRegisterIn(RegisterIn):
    institution: Text
    badge_number: Text = Field(alias="badgeNumber")


class LoginIn(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ForgotPasswordIn(ApiModel):
    email: EmailStr


class ProfileUpdateIn(ApiModel):
    full_name: Optional[Text] = Field(default=None, alias="fullName")
    phone: Optional[str] = None
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")


class PasswordChangeIn(ApiModel):
    current_password: str = Field(alias="currentPassword", min_length=1)
    new_password: str = Field(alias="newPassword", min_length=6)


# ---------- reports ----------

class ReportIn(ApiModel):
    incident_type: Text = Field(alias="incidentType")
    description: Optional[str] = None
    latitude: Latitude
    longitude: Longitude
    address: Optional[str] = None
    severity: Severity = "medium"
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    is_anonymous: bool = Field(default=False, alias="isAnonymous")


class ReportStatusIn(ApiModel):
    status: ReportStatus


# ---------- help points ----------

class HelpPointIn(ApiModel):
    name: Text
    type: HelpPointType
    description: Optional[str] = None
    latitude: Latitude
    longitude: Longitude
    address: Optional[str] = None
    phone: Optional[str] = None
    schedule: Optional[str] = None
    is_24h: bool = Field(default=False, alias="is24h")


class HelpPointUpdateIn(ApiModel):
    name: Optional[Text] = None
    type: Optional[HelpPointType] = None
    description: Optional[str] = None
    latitude: Optional[Latitude] = None
    longitude: Optional[Longitude] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    schedule: Optional[str] = None
    is_24h: Optional[bool] = Field(default=None, alias="is24h")


# ---------- routes ----------

class RouteQueryIn(ApiModel):
    origin_lat: float = Field(alias="originLat", ge=-90, le=90)
    origin_lng: float = Field(alias="originLng", ge=-180, le=180)
    origin_address: Optional[str] = Field(default=None, alias="originAddress")
    destination_lat: float = Field(alias="destinationLat", ge=-90, le=90)
    destination_lng: float = Field(alias="destinationLng", ge=-180, le=180)
    destination_address: Optional[str] = Field(default=None, alias="destinationAddress")


class RouteSaveIn(RouteQueryIn):
    name: Optional[str] = None
    waypoints: Optional[List[Any]] = None
    safety_score: Optional[int] = Field(default=None, alias="safetyScore", ge=0, le=100)
    distance_km: Optional[float] = Field(default=None, alias="distanceKm", ge=0)
    estimated_time_min: Optional[int] = Field(default=None, alias="estimatedTimeMin", ge=0)
    is_favorite: bool = Field(default=False, alias="isFavorite")


class FavoriteIn(ApiModel):
    is_favorite: bool = Field(alias="isFavorite")


# ---------- alerts ----------

class AlertIn(ApiModel):
    title: Text
    message: Text
    alert_type: AlertType = Field(alias="alertType")
    severity: Severity = "medium"
    latitude: Optional[Latitude] = None
    longitude: Optional[Longitude] = None
    radius_km: Optional[float] = Field(default=None, alias="radiusKm", gt=0)
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")


class AlertUpdateIn(ApiModel):
    title: Optional[Text] = None
    message: Optional[Text] = None
    alert_type: Optional[AlertType] = Field(default=None, alias="alertType")
    severity: Optional[Severity] = None
    latitude: Optional[Latitude] = None
    longitude: Optional[Longitude] = None
    radius_km: Optional[float] = Field(default=None, alias="radiusKm", gt=0)
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    is_active: Optional[bool] = Field(default=None, alias="isActive")


# ---------- patrols ----------

class PatrolIn(ApiModel):
    name: Text
    patrol_type: Text = Field(alias="patrolType")
    resources: List[Any] = Field(min_length=1)
    scheduled_at: datetime = Field(alias="scheduledAt")
    duration: int = Field(ge=1, le=12)
    latitude: Optional[Latitude] = None
    longitude: Optional[Longitude] = None
    notes: Optional[str] = None


class PatrolUpdateIn(ApiModel):
    name: Optional[Text] = None
    patrol_type: Optional[Text] = Field(default=None, alias="patrolType")
    resources: Optional[List[Any]] = Field(default=None, min_length=1)
    scheduled_at: Optional[datetime] = Field(default=None, alias="scheduledAt")
    duration: Optional[int] = Field(default=None, ge=1, le=12)
    latitude: Optional[Latitude] = None
    longitude: Optional[Longitude] = None
    notes: Optional[str] = None


class PatrolStatusIn(ApiModel):
    status: PatrolStatus

