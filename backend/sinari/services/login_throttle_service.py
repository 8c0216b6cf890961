"""
Login Throttling Service

WHY: Prevent brute-force password attacks by limiting failed login attempts.
After too many failures, the identifier is temporarily locked.

SECURITY FEATURES:
- Tracks failed attempts per username/email as typed (case-insensitive)
- Lockout after MAX_FAILED_ATTEMPTS failures within LOCKOUT_WINDOW
- Lockout lasts LOCKOUT_DURATION from the most recent failure
- A successful login resets the count
"""

from datetime import timedelta

from ..extensions import db
from ..models import LoginAttempt, User
from ..time_utils import utcnow


MAX_FAILED_ATTEMPTS = 5  # Lock after 5 failed attempts
LOCKOUT_WINDOW = timedelta(minutes=15)  # Within 15 minutes
LOCKOUT_DURATION = timedelta(minutes=15)  # Lockout for 15 minutes


def _key(identifier: str) -> str:
    return identifier.strip().lower()[:100]


def _recent_failures(identifier: str):
    """Failed attempts inside LOCKOUT_WINDOW and after the last success."""
    key = _key(identifier)
    cutoff = utcnow() - LOCKOUT_WINDOW

    last_success = db.session.query(db.func.max(LoginAttempt.occurred_at)).filter(
        LoginAttempt.identifier == key,
        LoginAttempt.success.is_(True),
    ).scalar()

    query = db.session.query(LoginAttempt).filter(
        LoginAttempt.identifier == key,
        LoginAttempt.success.is_(False),
        LoginAttempt.occurred_at >= cutoff,
    )
    if last_success is not None:
        query = query.filter(LoginAttempt.occurred_at > last_success)
    return query


def get_recent_failed_attempts(identifier: str) -> int:
    return _recent_failures(identifier).count()


def is_account_locked(identifier: str) -> tuple[bool, int | None]:
    """
    Check if an identifier is currently locked due to too many failed attempts.

    Returns:
    - (True, seconds_remaining) if locked
    - (False, None) if not locked
    """
    failures = _recent_failures(identifier)
    if failures.count() < MAX_FAILED_ATTEMPTS:
        return False, None

    most_recent = failures.order_by(LoginAttempt.occurred_at.desc()).first()
    lockout_end = most_recent.occurred_at + LOCKOUT_DURATION
    now = utcnow()
    if now < lockout_end:
        return True, int((lockout_end - now).total_seconds())
    return False, None


def record_failed_attempt(identifier: str, ip_address: str | None = None) -> int:
    """
    Record a failed login attempt.

    Returns the number of recent failed attempts, this one included.
    """
    key = _key(identifier)
    user = db.session.query(User).filter(
        db.or_(User.username == identifier.strip(), User.email == key)
    ).first()

    db.session.add(LoginAttempt(
        identifier=key,
        user_id=user.id if user else None,
        success=False,
        ip_address=ip_address,
    ))
    db.session.commit()

    return get_recent_failed_attempts(identifier)


def record_successful_login(user_id: int, identifier: str, ip_address: str | None = None) -> None:
    """Record a successful login; earlier failures stop counting."""
    db.session.add(LoginAttempt(
        identifier=_key(identifier),
        user_id=user_id,
        success=True,
        ip_address=ip_address,
    ))
    db.session.commit()
