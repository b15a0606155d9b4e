"""
auth.py
Authentication utilities (bcrypt hashing, verify, login, change password).
"""

from __future__ import annotations

import logging

import bcrypt
import db
from models import SessionUser

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _to_bcrypt_secret(password: str) -> bytes:
    """
    bcrypt only uses the first 72 BYTES of the password.
    We truncate to 72 bytes to avoid ValueError and to make behavior explicit.
    """
    pw = password.encode("utf-8")
    if len(pw) > 72:
        pw = pw[:72]
    return pw


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Returns a bcrypt hash as a UTF-8 string (stored in SQLite).
    """
    secret = _to_bcrypt_secret(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(secret, salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    secret = _to_bcrypt_secret(password)
    stored = password_hash.encode("utf-8")
    return bcrypt.checkpw(secret, stored)


def get_user_by_username(username: str):
    return db.fetch_one("SELECT * FROM users WHERE username = ?", (username,))


def login(username: str, password: str) -> SessionUser | None:
    """
    Match credentials against the users table; returns the session user or None.
    """
    user = get_user_by_username(username)
    if not user or not verify_password(password, user["password_hash"]):
        logger.info("Failed login for %r", username)
        return None
    logger.info("User %r logged in", username)
    return SessionUser(id=user["id"], username=user["username"], role=user["role"])


def validate_new_password(new1: str, new2: str) -> list[str]:
    errors: list[str] = []
    if len(new1) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if new1 != new2:
        errors.append("Passwords do not match.")
    return errors


def change_password(username: str, new_password: str) -> None:
    new_hash = hash_password(new_password)
    db.execute(
        "UPDATE users SET password_hash = ? WHERE username = ?",
        (new_hash, username),
    )
    user = get_user_by_username(username)
    # the forced first-login change belongs to the admin account only
    if user and user["role"] == "admin":
        db.clear_force_password_change()
    logger.info("Password changed for %r", username)
