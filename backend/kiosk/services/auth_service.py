# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Uses bcrypt for password hashing and validates password strength.

MULTI-TENANT: Users belong to exactly one tenant (tenant_id). Login always
names the tenant; username/email uniqueness is tenant-scoped.
"""

import logging
import re

import bcrypt

from ..extensions import db
from ..models import User, Tenant, ROLES, ROLE_CASHIER
from ..validation import ConflictError, NotFoundError, ValidationError
from kiosk.time_utils import utcnow

logger = logging.getLogger(__name__)


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash password using bcrypt. Password is validated for strength first."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw is timing-safe."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # malformed hash
        return False


def create_user(
    *,
    tenant_id: str,
    username: str,
    password: str,
    email: str | None = None,
    role: str = ROLE_CASHIER,
    bcrypt_rounds: int = 12,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        NotFoundError: tenant does not exist
        ValidationError: bad role, blank username, weak password
        ConflictError: username or email already used in this tenant
    """
    tenant = db.session.get(Tenant, tenant_id)
    if not tenant:
        raise NotFoundError("Tenant not found")

    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required")
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    conditions = [User.username == username]
    if email:
        conditions.append(User.email == email)
    existing = db.session.query(User).filter(
        User.tenant_id == tenant_id,
        db.or_(*conditions)
    ).first()
    if existing:
        raise ConflictError("Username or email already exists in this tenant")

    user = User(
        tenant_id=tenant_id,
        username=username,
        email=email,
        password_hash=hash_password(password, rounds=bcrypt_rounds),
        role=role,
    )

    db.session.add(user)
    db.session.commit()
    logger.info("Created %s user %s in tenant %s", role, username, tenant_id)
    return user


def list_users(tenant_id: str) -> list[User]:
    return (
        db.session.query(User)
        .filter_by(tenant_id=tenant_id)
        .order_by(User.username.asc())
        .all()
    )


def authenticate(username: str, password: str, tenant_id: str) -> User | None:
    """
    Authenticate user with username (or email) and password within a tenant.

    Returns User if credentials are valid and the tenant is active, None
    otherwise. Updates last_login_at on success.
    """
    tenant = db.session.get(Tenant, tenant_id)
    if not tenant or not tenant.is_active:
        return None

    user = db.session.query(User).filter(
        User.tenant_id == tenant_id,
        db.or_(User.username == username, User.email == username),
        User.is_active.is_(True),
    ).first()

    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for %r in tenant %s", username, tenant_id)
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    logger.info("User %s logged in to tenant %s", user.username, tenant_id)
    return user
