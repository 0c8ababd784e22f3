from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth import get_current_user, hash_password, require_admin, verify_password
from ..db import get_conn, now_iso
from ..schemas import PasswordChangeIn, ProfileUpdateIn

router = APIRouter(prefix="/api/users", tags=["users"])


def _profile(row) -> dict:
    return {
        "uuid": row["uuid"],
        "fullName": row["full_name"],
        "email": row["email"],
        "phone": row["phone"],
        "avatarUrl": row["avatar_url"],
        "userType": row["user_type"],
        "institution": row["institution"],
        "isVerified": bool(row["is_verified"]),
        "createdAt": row["created_at"],
    }


@router.get("/me")
def get_me(user: dict = Depends(get_current_user)):
    with get_conn() as conn:
        row = conn.execute("SELECT * FROM users WHERE id=?", (user["id"],)).fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "data": _profile(row)}


@router.put("/me")
def update_me(body: ProfileUpdateIn, user: dict = Depends(get_current_user)):
    changes = body.model_dump(exclude_unset=True)
    if changes.get("full_name") is None:
        changes.pop("full_name", None)
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")

    assignments = ", ".join(f"{column}=?" for column in changes)
    with get_conn() as conn:
        conn.execute(
            f"UPDATE users SET {assignments}, updated_at=? WHERE id=?",
            (*[value or None for value in changes.values()], now_iso(), user["id"]),
        )
        row = conn.execute("SELECT * FROM users WHERE id=?", (user["id"],)).fetchone()
    return {"success": True, "message": "Profile updated", "data": _profile(row)}


@router.put("/me/password")
def change_password(body: PasswordChangeIn, user: dict = Depends(get_current_user)):
    with get_conn() as conn:
        row = conn.execute("SELECT password_hash FROM users WHERE id=?", (user["id"],)).fetchone()
        if not verify_password(body.current_password, row["password_hash"]):
            raise HTTPException(status_code=400, detail="Current password is incorrect")
        conn.execute(
            "UPDATE users SET password_hash=?, updated_at=? WHERE id=?",
            (hash_password(body.new_password), now_iso(), user["id"]),
        )
    return {"success": True, "message": "Password updated"}


@router.get("/notifications")
def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = Query(False, alias="unreadOnly"),
    user: dict = Depends(get_current_user),
):
    where = "WHERE user_id=?"
    if unread_only:
        where += " AND is_read=0"
    with get_conn() as conn:
        rows = conn.execute(
            f"""
            SELECT uuid, title, message, notification_type, is_read, created_at
            FROM notifications {where}
            ORDER BY created_at DESC
            LIMIT ? OFFSET ?
            """,
            (user["id"], limit, offset),
        ).fetchall()
        unread = conn.execute(
            "SELECT COUNT(*) AS c FROM notifications WHERE user_id=? AND is_read=0", (user["id"],)
        ).fetchone()["c"]

    notifications = [
        {
            "uuid": r["uuid"],
            "title": r["title"],
            "message": r["message"],
            "type": r["notification_type"],
            "isRead": bool(r["is_read"]),
            "createdAt": r["created_at"],
        }
        for r in rows
    ]
    return {"success": True, "data": {"notifications": notifications, "unreadCount": int(unread)}}


@router.put("/notifications/{notification_uuid}/read")
def mark_notification_read(notification_uuid: str, user: dict = Depends(get_current_user)):
    with get_conn() as conn:
        conn.execute(
            "UPDATE notifications SET is_read=1 WHERE uuid=? AND user_id=?",
            (notification_uuid, user["id"]),
        )
    return {"success": True, "message": "Notification marked as read"}


@router.get("")
def list_users(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_type: Optional[Literal["citizen", "authority", "admin"]] = Query(None, alias="userType"),
    admin: dict = Depends(require_admin),
):
    where, params = "", []
    if user_type:
        where, params = "WHERE user_type=?", [user_type]
    with get_conn() as conn:
        rows = conn.execute(
            f"""
            SELECT uuid, full_name, email, user_type, institution, is_verified, is_active, created_at
            FROM users {where}
            ORDER BY created_at DESC
            LIMIT ? OFFSET ?
            """,
            (*params, limit, offset),
        ).fetchall()
        total = conn.execute(f"SELECT COUNT(*) AS c FROM users {where}", params).fetchone()["c"]

    users = [
        {
            "uuid": r["uuid"],
            "fullName": r["full_name"],
            "email": r["email"],
            "userType": r["user_type"],
            "institution": r["institution"],
            "isVerified": bool(r["is_verified"]),
            "isActive": bool(r["is_active"]),
            "createdAt": r["created_at"],
        }
        for r in rows
    ]
    return {"success": True, "data": {"users": users, "total": int(total), "limit": limit, "offset": offset}}


@router.put("/{user_uuid}/verify")
def verify_authority(user_uuid: str, admin: dict = Depends(require_admin)):
    with get_conn() as conn:
        row = conn.execute("SELECT id, user_type FROM users WHERE uuid=?", (user_uuid,)).fetchone()
        if not row:
            raise HTTPException(status_code=404, detail="User not found")
        if row["user_type"] != "authority":
            raise HTTPException(status_code=400, detail="Only authority accounts need verification")
        conn.execute("UPDATE users SET is_verified=1, updated_at=? WHERE id=?", (now_iso(), row["id"]))
    return {"success": True, "message": "Authority verified", "data": {"uuid": user_uuid, "isVerified": True}}
