# Overview: Bearer session issuance and validation.

"""
Session Token Management

One active session per user: the SHA-256 hash of the current token lives on
the user row, so issuing a new token replaces (and invalidates) the old one.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Absolute expiry (SESSION_TTL_HOURS)
"""

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import User
from ..time_utils import utcnow


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """Hash token for database storage using SHA-256."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(user: User) -> str:
    """Issue a new token for user, replacing any previous session. Commits."""
    plaintext_token = generate_token()
    ttl = timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))

    user.token_hash = hash_token(plaintext_token)
    user.token_expires_at = utcnow() + ttl
    db.session.commit()

    return plaintext_token


def validate_session(token: str) -> User | None:
    """
    Resolve a bearer token to its user.

    Returns None if the token is unknown, expired, or belongs to a deleted user.
    """
    if not token:
        return None

    user = db.session.query(User).filter_by(token_hash=hash_token(token)).first()
    if user is None or user.deleted_at is not None:
        return None

    expires_at = user.token_expires_at
    if expires_at is None:
        return None
    if expires_at.tzinfo is not None:
        expires_at = expires_at.replace(tzinfo=None)
    if expires_at <= utcnow():
        return None

    return user


def revoke_session(user: User) -> None:
    user.token_hash = None
    user.token_expires_at = None
    db.session.commit()
