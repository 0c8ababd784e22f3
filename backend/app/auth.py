from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import secrets
import time

from fastapi import Depends, Header, HTTPException, status

from .config import SECRET_KEY, TOKEN_EXPIRE_HOURS
from .db import get_conn

log = logging.getLogger(__name__)

AUTHORITY_ROLES = {"authority", "admin"}
PBKDF2_ROUNDS = 120_000


def hash_password(password: str, salt: str | None = None) -> str:
    """PBKDF2-SHA256 stored as ``salt$hexdigest``; a fresh salt per account."""
    salt = salt or secrets.token_hex(8)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ROUNDS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    salt, sep, _ = stored_hash.partition("$")
    if not sep:
        return False
    return hmac.compare_digest(hash_password(password, salt), stored_hash)


def _sign(segment: str) -> str:
    return hmac.new(SECRET_KEY.encode(), segment.encode(), hashlib.sha256).hexdigest()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def create_token(payload: dict, ttl_hours: int = TOKEN_EXPIRE_HOURS) -> str:
    issued = int(time.time())
    claims = {**payload, "iat": issued, "exp": issued + ttl_hours * 3600}
    segment = base64.urlsafe_b64encode(json.dumps(claims, separators=(",", ":")).encode()).decode().rstrip("=")
    return f"{segment}.{_sign(segment)}"


def token_for(user) -> str:
    return create_token({"uuid": user["uuid"], "email": user["email"], "user_type": user["user_type"]})


def decode_token(token: str) -> dict:
    segment, sep, sig = token.partition(".")
    if not sep or not hmac.compare_digest(sig, _sign(segment)):
        raise _unauthorized("Invalid token")

    try:
        claims = json.loads(base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4)))
    except ValueError as exc:
        raise _unauthorized("Invalid token") from exc
    if time.time() > claims.get("exp", 0):
        raise _unauthorized("Token expired")
    return claims


def _load_user(uuid: str):
    with get_conn() as conn:
        return conn.execute(
            "SELECT id, uuid, email, full_name, user_type, is_active FROM users WHERE uuid=?",
            (uuid,),
        ).fetchone()


def get_current_user(authorization: str = Header(default="")) -> dict:
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Access token required")
    payload = decode_token(authorization.replace("Bearer ", "", 1))

    user = _load_user(payload.get("uuid", ""))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user["is_active"]:
        raise HTTPException(status_code=401, detail="Account deactivated")
    return dict(user)


def role_guard(user: dict, allowed: set[str]) -> None:
    if user.get("user_type") not in allowed:
        log.info("Denied %s (%s), needs one of %s", user.get("email"), user.get("user_type"), sorted(allowed))
        raise HTTPException(status_code=403, detail="Forbidden")


def require_authority(user: dict = Depends(get_current_user)) -> dict:
    role_guard(user, AUTHORITY_ROLES)
    return user


def require_admin(user: dict = Depends(get_current_user)) -> dict:
    role_guard(user, {"admin"})
    return user
