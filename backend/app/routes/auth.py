from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import APIRouter, HTTPException

from ..auth import hash_password, token_for, verify_password
from ..db import get_conn, now_iso
from ..schemas import AuthorityRegisterIn, ForgotPasswordIn, LoginIn, RegisterIn

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def user_payload(user) -> dict:
    keys = user.keys()
    out = {
        "uuid": user["uuid"],
        "fullName": user["full_name"],
        "email": user["email"],
        "userType": user["user_type"],
    }
    if "institution" in keys:
        out["institution"] = user["institution"]
    if "is_verified" in keys:
        out["isVerified"] = bool(user["is_verified"])
    if "avatar_url" in keys:
        out["avatarUrl"] = user["avatar_url"]
    return out


def _create_user(body: RegisterIn, user_type: str, institution: str | None = None, badge_number: str | None = None):
    email = body.email.lower()
    with get_conn() as conn:
        if conn.execute("SELECT id FROM users WHERE email=?", (email,)).fetchone():
            raise HTTPException(status_code=400, detail="Email already registered")
        user_uuid = str(uuid4())
        conn.execute(
            """
            INSERT INTO users (uuid,full_name,email,password_hash,phone,user_type,institution,badge_number,
                               created_at,updated_at)
            VALUES (?,?,?,?,?,?,?,?,?,?)
            """,
            (
                user_uuid,
                body.full_name,
                email,
                hash_password(body.password),
                body.phone,
                user_type,
                institution,
                badge_number,
                now_iso(),
                now_iso(),
            ),
        )
        return conn.execute(
            "SELECT uuid,full_name,email,user_type,institution,is_verified FROM users WHERE uuid=?",
            (user_uuid,),
        ).fetchone()


@router.post("/register", status_code=201)
def register(body: RegisterIn):
    user = _create_user(body, "citizen")
    log.info("Registered citizen %s", user["email"])
    return {
        "success": True,
        "message": "User registered",
        "data": {"user": user_payload(user), "token": token_for(user)},
    }


@router.post("/register-authority", status_code=201)
def register_authority(body: AuthorityRegisterIn):
    user = _create_user(body, "authority", body.institution, body.badge_number)
    log.info("Registered authority %s (%s), pending verification", user["email"], body.institution)
    return {
        "success": True,
        "message": "Authority registered, pending verification",
        "data": {"user": user_payload(user), "token": token_for(user)},
    }


@router.post("/login")
def login(body: LoginIn):
    with get_conn() as conn:
        user = conn.execute(
            """
            SELECT uuid,full_name,email,password_hash,user_type,institution,is_verified,is_active,avatar_url
            FROM users WHERE email=?
            """,
            (body.email.lower(),),
        ).fetchone()
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user["is_active"]:
        raise HTTPException(status_code=401, detail="Account deactivated")
    if not verify_password(body.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return {
        "success": True,
        "message": "Logged in",
        "data": {"user": user_payload(user), "token": token_for(user)},
    }


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordIn):
    with get_conn() as conn:
        known = conn.execute("SELECT id FROM users WHERE email=?", (body.email.lower(),)).fetchone()
    if known:
        # No mail delivery; the request is only recorded in the log.
        log.info("Password reset requested for %s", body.email.lower())
    return {
        "success": True,
        "message": "If the email exists you will receive instructions to reset your password",
    }
