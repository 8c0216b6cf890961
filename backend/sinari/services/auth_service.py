# Overview: User registration, login and account management.

"""
Authentication Service

WHY: Every product and service log is attributed to a user, so every
mutating request must come from an authenticated account.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, upper, lower, digit and special char
- Session tokens managed separately (see session_service.py)
- Login accepts username or email
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..permissions import ALL_ROLES, ROLE_ADMIN, ROLE_CUSTOMER, ROLE_OWNER
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    EMAIL_REGEX,
    NotFoundError,
    ValidationError,
    build_paging,
)
from . import login_throttle_service, session_service
from .permission_service import PermissionDeniedError


class AuthError(Exception):
    """401-level credential problem."""


class AccountLockedError(Exception):
    """429-level: too many failed logins for this identifier."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        minutes = retry_after_seconds // 60 + 1
        super().__init__(f"Too many failed login attempts. Try again in {minutes} minute(s).")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if len(password) > 100:
        raise PasswordValidationError("Password must be at most 100 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Accounts without a password (Google-only) never verify.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in storage
        return False


def _require_text(payload: dict, field: str, max_length: int = 100) -> str:
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return value


def _validate_email(email: str) -> str:
    if not EMAIL_REGEX.match(email):
        raise ValidationError("email must be a valid email address")
    return email.lower()


def create_user(
    username: str,
    email: str,
    password: str,
    name: str,
    role: str = ROLE_CUSTOMER,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises ConflictError if username or email is taken,
    PasswordValidationError if the password is weak.
    """
    if role not in ALL_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ALL_ROLES)}")

    email = _validate_email(email)

    existing = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if existing:
        raise ConflictError("Username or email already exists")

    user = User(
        username=username,
        email=email,
        name=name,
        password_hash=hash_password(password),
        role=role,
    )

    db.session.add(user)
    db.session.commit()
    return user


def register(payload: dict) -> User:
    """Public sign-up; new accounts are always CUSTOMER."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return create_user(
        username=_require_text(payload, "username"),
        email=_require_text(payload, "email"),
        password=_require_text(payload, "password"),
        name=_require_text(payload, "name"),
    )


def authenticate(identifier: str, password: str) -> User | None:
    """
    Authenticate user with username or email and password.

    Returns User if credentials valid, None otherwise.
    """
    user = db.session.query(User).filter(
        db.or_(User.username == identifier, User.email == identifier.lower()),
        User.deleted_at.is_(None),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        return user

    return None


def login(payload: dict, ip_address: str | None = None) -> tuple[User, str]:
    """
    Exchange credentials for a bearer token.

    SECURITY: a locked identifier is refused before the password is checked,
    and the failure that reaches MAX_FAILED_ATTEMPTS locks it immediately.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    identifier = payload.get("username") or payload.get("email")
    password = payload.get("password")
    if not identifier or not password:
        raise ValidationError("username or email and password are required")
    identifier = str(identifier).strip()

    locked, seconds_remaining = login_throttle_service.is_account_locked(identifier)
    if locked:
        raise AccountLockedError(seconds_remaining)

    user = authenticate(identifier, str(password))
    if user is None:
        failed_count = login_throttle_service.record_failed_attempt(identifier, ip_address)
        current_app.logger.info("Failed login for %s (%s recent)", identifier, failed_count)
        if failed_count >= login_throttle_service.MAX_FAILED_ATTEMPTS:
            current_app.logger.warning("Login locked for %s", identifier)
            raise AccountLockedError(int(login_throttle_service.LOCKOUT_DURATION.total_seconds()))
        raise AuthError("Username or password is wrong")

    login_throttle_service.record_successful_login(user.id, identifier, ip_address)
    token = session_service.create_session(user)
    return user, token


def logout(user: User) -> None:
    session_service.revoke_session(user)


def update_current_user(user: User, payload: dict) -> User:
    """
    Update the caller's own name / email / password.

    A password change needs current_password unless the account has no
    password yet (Google-only accounts setting one for the first time).
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    allowed = {"name", "email", "password", "current_password"}
    for key in payload:
        if key not in allowed:
            raise ValidationError(f"Field not allowed: {key}")

    if "name" in payload:
        user.name = _require_text(payload, "name")

    if "email" in payload:
        email = _validate_email(_require_text(payload, "email"))
        clash = db.session.query(User).filter(User.email == email, User.id != user.id).first()
        if clash:
            raise ConflictError("Email already exists")
        user.email = email

    if "password" in payload:
        new_password = _require_text(payload, "password")
        if user.password_hash:
            current = payload.get("current_password") or ""
            if not verify_password(current, user.password_hash):
                raise ValidationError("current_password is wrong")
        user.password_hash = hash_password(new_password)

    db.session.commit()
    return user


def search_users(*, name: str | None, role: str | None, page: int, size: int) -> tuple[list[User], dict]:
    query = db.session.query(User).filter(User.deleted_at.is_(None))
    if name:
        pattern = f"%{name}%"
        query = query.filter(db.or_(User.name.ilike(pattern), User.username.ilike(pattern)))
    if role:
        role = role.upper()
        if role not in ALL_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(ALL_ROLES)}")
        query = query.filter(User.role == role)

    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * size)
        .limit(size)
        .all()
    )
    return users, build_paging(page, size, total)


def update_role(actor: User, user_id: int, new_role: str) -> User:
    """
    Change another user's role.

    RULES:
    - nobody changes their own role
    - the root owner (ROOT_OWNER_EMAIL) is immutable
    - the last remaining OWNER cannot be demoted
    """
    if not isinstance(new_role, str) or new_role.upper() not in ALL_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ALL_ROLES)}")
    new_role = new_role.upper()

    target = db.session.query(User).filter(
        User.id == user_id,
        User.deleted_at.is_(None),
    ).first()
    if not target:
        raise NotFoundError("User not found")

    if target.id == actor.id:
        raise ConflictError("You cannot change your own role")

    root_email = current_app.config.get("ROOT_OWNER_EMAIL")
    if root_email and target.email == root_email.lower():
        raise ConflictError("The root owner role cannot be changed")

    if target.role == ROLE_OWNER and new_role != ROLE_OWNER:
        owners = db.session.query(User).filter(
            User.role == ROLE_OWNER,
            User.deleted_at.is_(None),
        ).count()
        if owners <= 1:
            raise ConflictError("Cannot demote the last owner")

    previous = target.role
    target.role = new_role
    target.updated_at = utcnow()
    db.session.commit()

    current_app.logger.info(
        "Role changed: user_id=%s %s -> %s by user_id=%s",
        target.id, previous, new_role, actor.id,
    )
    return target


def get_user(user_id: int) -> User:
    user = db.session.query(User).filter(
        User.id == user_id,
        User.deleted_at.is_(None),
    ).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def delete_user(actor: User, user_id: int) -> None:
    """
    Soft-delete another account and end its session.

    RULES:
    - nobody deletes their own account
    - ADMIN cannot delete an ADMIN or OWNER
    - OWNER cannot delete another OWNER
    """
    if actor.id == user_id:
        raise ValidationError("You cannot delete your own account")

    target = db.session.get(User, user_id)
    if not target:
        raise NotFoundError("User not found")
    if target.deleted_at is not None:
        raise ValidationError("User is already deleted")

    if actor.role == ROLE_ADMIN and target.role in (ROLE_ADMIN, ROLE_OWNER):
        raise PermissionDeniedError("Forbidden: Admins cannot delete other Admins or Owners")
    if actor.role == ROLE_OWNER and target.role == ROLE_OWNER:
        raise PermissionDeniedError("Forbidden: Owners cannot delete other Owners")

    target.deleted_at = utcnow()
    target.token_hash = None
    target.token_expires_at = None
    db.session.commit()

    current_app.logger.info("User deleted: user_id=%s by user_id=%s", target.id, actor.id)


def restore_user(actor: User, user_id: int) -> User:
    """Bring a soft-deleted account back; active accounts are not in the trash."""
    target = db.session.query(User).filter(
        User.id == user_id,
        User.deleted_at.isnot(None),
    ).first()
    if not target:
        raise NotFoundError("User not found in trash bin. It might be active or permanently deleted.")

    target.deleted_at = None
    db.session.commit()

    current_app.logger.info("User restored: user_id=%s by user_id=%s", target.id, actor.id)
    return target
