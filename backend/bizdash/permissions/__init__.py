# Overview: Permission system package.
# Re-exports all public APIs.

from .modules import Module, Action, MODULE_KEYS, ACTION_KEYS
from .matrix import ModulePermissions, PermissionMatrix, combine
from .roles import (
    ROLE_OWNER,
    ROLE_ADMIN,
    ROLE_FINANCE,
    ROLE_WAREHOUSE,
    ROLE_STAFF,
    DEFAULT_ROLES,
    DEFAULT_ROLE_MATRICES,
    default_matrix_for_role,
)

__all__ = [
    "Module",
    "Action",
    "MODULE_KEYS",
    "ACTION_KEYS",
    "ModulePermissions",
    "PermissionMatrix",
    "combine",
    "ROLE_OWNER",
    "ROLE_ADMIN",
    "ROLE_FINANCE",
    "ROLE_WAREHOUSE",
    "ROLE_STAFF",
    "DEFAULT_ROLES",
    "DEFAULT_ROLE_MATRICES",
    "default_matrix_for_role",
]
