# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management

Tokens are cryptographically secure, hashed in the database, and time-limited.

MULTI-TENANT: Sessions capture tenant_id and role at creation time. This
establishes the tenant context for every authenticated request without
repeated lookups, and a role change only applies from the next login.

- 32 random bytes, hex encoded, returned to the client once
- Only the SHA-256 hash is stored
- Absolute timeout (SESSION_ABSOLUTE_HOURS, default 24h)
- Idle timeout (SESSION_IDLE_MINUTES, default 2h)
- Revocable on logout
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User, Tenant
from kiosk.time_utils import utcnow

logger = logging.getLogger(__name__)

# Retention for expired/revoked rows before cleanup deletes them
SESSION_RETENTION = timedelta(days=30)


@dataclass
class SessionContext:
    """
    Request-scoped principal placed on flask.g by @require_auth.

    All fields come from the session record, not the user row.
    """
    user: User
    session: SessionToken
    tenant_id: str
    role: str


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_ABSOLUTE_HOURS", 24))


def _idle_timeout() -> timedelta:
    return timedelta(minutes=current_app.config.get("SESSION_IDLE_MINUTES", 120))


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy). Never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 is sufficient for high-entropy tokens (unlike passwords)."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Create new session token for user with tenant context.

    Returns (session_record, plaintext_token).
    Raises ValueError if the user's tenant is inactive.
    """
    tenant = db.session.get(Tenant, user.tenant_id)
    if not tenant or not tenant.is_active:
        raise ValueError("Tenant is not active")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        tenant_id=user.tenant_id,
        role=user.role,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if:
    - Token is invalid, expired, or revoked
    - User account is deactivated
    - Tenant is deactivated

    Updates last_used_at on successful validation (activity tracking).
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    tenant = session.tenant
    if not tenant or not tenant.is_active:
        _revoke(session, "Tenant deactivated")
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        user=user,
        session=session,
        tenant_id=session.tenant_id,
        role=session.role,
    )


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Returns True if session was revoked, False if not found."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    return True


def cleanup_expired_sessions() -> int:
    """
    Delete expired and revoked sessions older than 30 days.

    Returns count of sessions deleted. Run periodically (flask maintenance cleanup-sessions).
    """
    now = utcnow()

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True)
        ),
        SessionToken.created_at < now - SESSION_RETENTION
    ).delete(synchronize_session=False)

    db.session.commit()
    logger.info("Deleted %d stale sessions", deleted)
    return deleted
