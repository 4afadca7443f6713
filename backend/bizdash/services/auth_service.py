# Overview: Service-layer operations for auth; users, passwords, roles and approval.

"""
Authentication and user administration.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Self-service signups start inactive; an owner must approve them
- Login failures do not reveal whether the email exists
"""

from __future__ import annotations

import bcrypt
from sqlalchemy.exc import IntegrityError

from ..errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Role, User
from ..permissions import (
    DEFAULT_ROLES,
    ROLE_OWNER,
    PermissionMatrix,
    default_matrix_for_role,
)
from ..time_utils import utcnow
from . import activity_service, notification_service


MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except (ValueError, TypeError):
        return False


def normalize_email(email: str | None) -> str:
    if not isinstance(email, str) or "@" not in email:
        raise ValidationError("A valid email is required")
    return email.strip().lower()


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter(User.email == email.strip().lower()).first()


def create_user(
    *,
    email: str,
    password: str,
    name: str | None = None,
    is_active: bool = True,
    role_names=None,
) -> User:
    email = normalize_email(email)
    if get_user_by_email(email):
        raise ConflictError("Email is already registered")

    user = User(email=email, name=name, password_hash=hash_password(password), is_active=is_active)
    for role_name in role_names or []:
        user.roles.append(_require_role(role_name))
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email is already registered")
    return user


def signup(*, email: str, password: str, name: str | None = None) -> User:
    """Self-service registration; the account stays inactive until approved."""
    user = create_user(email=email, password=password, name=name, is_active=False)

    activity_service.record(
        user_id=user.id,
        action="SIGNUP",
        entity="User",
        entity_id=user.id,
        metadata={"email": user.email},
    )
    notification_service.notify_role(
        ROLE_OWNER,
        "New signup pending approval",
        f"{user.email} registered and is waiting for approval.",
        "info",
    )
    notification_service.notify_user(
        user.id,
        "Registration received",
        "Your account is pending approval by an owner.",
        "info",
    )
    return user


def authenticate(email: str | None, password: str | None) -> User:
    if not email or not password:
        raise ValidationError("Email and password are required")
    user = get_user_by_email(email)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    user.last_login_at = utcnow()
    db.session.commit()

    activity_service.record(user_id=user.id, action="LOGIN", entity="User", entity_id=user.id)
    return user


def record_logout(user_id: int | None) -> None:
    if user_id is not None:
        activity_service.record(user_id=user_id, action="LOGOUT", entity="User", entity_id=user_id)


def approve_user(user_id: int, *, actor_user_id: int | None = None) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    before = {"is_active": user.is_active}
    user.is_active = True
    db.session.commit()

    activity_service.record(
        user_id=actor_user_id,
        action="USER_APPROVE",
        entity="User",
        entity_id=user.id,
        metadata={"before": before, "after": {"is_active": True}},
    )
    notification_service.notify_user(
        user.id, "Account approved", "Your account has been approved. You can sign in now.", "success"
    )
    return user


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.created_at.asc(), User.id.asc()).all()


# =============================================================================
# Roles
# =============================================================================

def _require_role(role_name: str) -> Role:
    role = db.session.query(Role).filter(Role.name == (role_name or "").lower()).first()
    if not role:
        raise ValidationError(f"Unknown role: {role_name}")
    return role


def create_default_roles() -> list[Role]:
    """Create the built-in roles with default matrices (idempotent; existing roles untouched)."""
    roles = []
    for name, description in DEFAULT_ROLES:
        role = db.session.query(Role).filter_by(name=name).first()
        if not role:
            role = Role(name=name, description=description, permissions=default_matrix_for_role(name).to_dict())
            db.session.add(role)
        roles.append(role)
    db.session.commit()
    return roles


def assign_role(user_id: int, role_name: str, *, actor_user_id: int | None = None) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    role = _require_role(role_name)
    if role not in user.roles:
        user.roles.append(role)
        db.session.commit()
        activity_service.record(
            user_id=actor_user_id,
            action="USER_ROLE_ASSIGN",
            entity="User",
            entity_id=user.id,
            metadata={"role": role.name},
        )
    return user


def remove_role(user_id: int, role_name: str, *, actor_user_id: int | None = None) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    role = _require_role(role_name)
    if role in user.roles:
        user.roles.remove(role)
        db.session.commit()
        activity_service.record(
            user_id=actor_user_id,
            action="USER_ROLE_REMOVE",
            entity="User",
            entity_id=user.id,
            metadata={"role": role.name},
        )
    return user


def list_roles() -> list[Role]:
    return db.session.query(Role).order_by(Role.name.asc()).all()


def create_role(*, name: str, description: str | None, permissions, actor_user_id: int | None = None) -> Role:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    matrix = PermissionMatrix.from_dict(permissions)
    role_name = name.strip().lower()
    if db.session.query(Role).filter_by(name=role_name).first():
        raise ConflictError(f"Role '{role_name}' already exists")

    role = Role(name=role_name, description=description, permissions=matrix.to_dict())
    db.session.add(role)
    db.session.commit()

    activity_service.record(
        user_id=actor_user_id, action="ROLE_CREATE", entity="Role", entity_id=role.id,
        metadata={"after": role.to_dict()},
    )
    return role


def update_role(role_id: int, *, description=None, permissions=None, actor_user_id: int | None = None) -> Role:
    role = db.session.get(Role, role_id)
    if not role:
        raise NotFoundError("Role not found")
    before = role.to_dict()
    if permissions is not None:
        role.permissions = PermissionMatrix.from_dict(permissions).to_dict()
    if description is not None:
        role.description = description
    db.session.commit()

    activity_service.record(
        user_id=actor_user_id, action="ROLE_UPDATE", entity="Role", entity_id=role.id,
        metadata={"before": before, "after": role.to_dict()},
    )
    return role


def reset_role_defaults(*, actor_user_id: int | None = None) -> list[Role]:
    """Rewrite every role's matrix with its built-in default (unknown roles get the staff matrix)."""
    roles = list_roles()
    for role in roles:
        role.permissions = default_matrix_for_role(role.name).to_dict()
    db.session.commit()

    activity_service.record(
        user_id=actor_user_id,
        action="ROLE_RESET_DEFAULT",
        entity="Role",
        metadata={"roles": [role.name for role in roles]},
    )
    return roles
