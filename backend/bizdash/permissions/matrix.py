# Overview: Typed permission matrix; validates raw JSON at the boundary.

"""
PermissionMatrix wraps the per-role JSON blob stored on Role.permissions.

Raw dicts come from clients (role create/update) and from the database.
They are validated exactly once, in PermissionMatrix.from_dict(); past that
point the rest of the code only sees Module/Action enums, so a misspelled
key can never silently grant or deny anything.

Missing modules deny every action.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from ..errors import ValidationError
from .modules import Action, Module


@dataclass(frozen=True)
class ModulePermissions:
    view: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False
    approve: bool = False

    def allows(self, action: Action) -> bool:
        return bool(getattr(self, action.value))

    def merge(self, other: "ModulePermissions") -> "ModulePermissions":
        return ModulePermissions(
            **{a.value: self.allows(a) or other.allows(a) for a in Action}
        )

    def to_dict(self) -> dict:
        return {a.value: self.allows(a) for a in Action}


@dataclass(frozen=True)
class PermissionMatrix:
    modules: Mapping[Module, ModulePermissions] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping | None) -> "PermissionMatrix":
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise ValidationError("permissions must be an object keyed by module")

        parsed: dict[Module, ModulePermissions] = {}
        for module_key, actions in raw.items():
            try:
                module = Module(module_key)
            except ValueError:
                raise ValidationError(f"Unknown permission module: {module_key}")
            if not isinstance(actions, Mapping):
                raise ValidationError(f"permissions.{module_key} must be an object")

            flags = {}
            for action_key, value in actions.items():
                try:
                    action = Action(action_key)
                except ValueError:
                    raise ValidationError(f"Unknown permission action: {module_key}.{action_key}")
                if not isinstance(value, bool):
                    raise ValidationError(f"permissions.{module_key}.{action_key} must be a boolean")
                flags[action.value] = value
            parsed[module] = ModulePermissions(**flags)
        return cls(modules=parsed)

    @classmethod
    def full(cls) -> "PermissionMatrix":
        everything = ModulePermissions(**{a.value: True for a in Action})
        return cls(modules={m: everything for m in Module})

    def allows(self, module: Module, action: Action) -> bool:
        perms = self.modules.get(module)
        return perms.allows(action) if perms else False

    def union(self, other: "PermissionMatrix") -> "PermissionMatrix":
        merged = dict(self.modules)
        for module, perms in other.modules.items():
            merged[module] = merged[module].merge(perms) if module in merged else perms
        return PermissionMatrix(modules=merged)

    def to_dict(self) -> dict:
        """Full matrix, every module present."""
        return {
            m.value: self.modules.get(m, ModulePermissions()).to_dict()
            for m in Module
        }


def combine(matrices: Iterable[PermissionMatrix]) -> PermissionMatrix:
    result = PermissionMatrix()
    for matrix in matrices:
        result = result.union(matrix)
    return result
