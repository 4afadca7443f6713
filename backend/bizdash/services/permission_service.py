# Overview: Effective permissions of a user (union over their roles).

from __future__ import annotations

from ..extensions import db
from ..models import User
from ..permissions import Action, Module, PermissionMatrix, ROLE_OWNER, combine


def get_user_matrix(user_id: int) -> PermissionMatrix:
    user = db.session.get(User, user_id)
    if not user:
        return PermissionMatrix()
    if any(role.name.lower() == ROLE_OWNER for role in user.roles):
        return PermissionMatrix.full()
    return combine(role.matrix() for role in user.roles)


def user_has_permission(user_id: int, module: Module, action: Action) -> bool:
    return get_user_matrix(user_id).allows(module, action)
