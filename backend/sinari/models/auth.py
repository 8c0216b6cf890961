from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Every product and service log row points back at the user that caused it,
    so users are soft-deleted (deleted_at) and never removed.

    SESSION: exactly one active session per user. The bearer token is stored
    only as a SHA-256 hash; a new login overwrites the previous hash, which
    ends the older session.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(100), nullable=False, unique=True)
    email = db.Column(db.String(100), nullable=False, unique=True)
    name = db.Column(db.String(100), nullable=False)

    # Bcrypt hash; null for accounts linked only through Google
    password_hash = db.Column(db.String(255), nullable=True)

    # OWNER / ADMIN / TECHNICIAN / CUSTOMER (see permissions.definitions)
    role = db.Column(db.String(16), nullable=False, default="CUSTOMER")

    token_hash = db.Column(db.String(64), nullable=True, unique=True)
    token_expires_at = db.Column(db.DateTime(timezone=True), nullable=True)

    google_id = db.Column(db.String(100), nullable=True, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "role": self.role,
        }

    def to_detail_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "google_id": self.google_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
        }

    def to_actor_dict(self) -> dict:
        return {"username": self.username, "role": self.role}


class LoginAttempt(db.Model):
    """
    One row per login attempt, keyed by the identifier the caller typed.

    Failed rows since the identifier's last success drive the lockout in
    login_throttle_service. Rows are never updated.
    """
    __tablename__ = "login_attempts"
    __table_args__ = (
        db.Index("ix_login_attempts_identifier_occurred", "identifier", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    identifier = db.Column(db.String(100), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    success = db.Column(db.Boolean, nullable=False)
    ip_address = db.Column(db.String(45), nullable=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
