# Overview: Pytest coverage for the role permission matrix and role management.

"""
Permission Matrix Tests

- PermissionMatrix.from_dict rejects unknown modules, actions and non-bool values
- Missing modules deny everything
- A user's effective matrix is the union of their roles; owner has everything
- Route guards answer 403 with the missing permission
"""

import pytest

from bizdash.errors import ValidationError
from bizdash.models import Role
from bizdash.permissions import (
    Action,
    Module,
    ModulePermissions,
    PermissionMatrix,
    combine,
    default_matrix_for_role,
)
from bizdash.services import auth_service, permission_service


class TestPermissionMatrixParsing:
    """Boundary validation of the raw JSON matrix."""

    def test_valid_matrix_round_trips(self):
        raw = {"quotation": {"view": True, "create": True}, "invoice": {"view": True}}
        matrix = PermissionMatrix.from_dict(raw)

        assert matrix.allows(Module.QUOTATION, Action.CREATE)
        assert matrix.allows(Module.INVOICE, Action.VIEW)
        assert not matrix.allows(Module.INVOICE, Action.CREATE)
        assert matrix.to_dict()["quotation"] == {
            "view": True, "create": True, "edit": False, "delete": False, "approve": False,
        }

    def test_unknown_module_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            PermissionMatrix.from_dict({"quotations": {"view": True}})
        assert "quotations" in excinfo.value.message

    def test_unknown_action_rejected(self):
        with pytest.raises(ValidationError):
            PermissionMatrix.from_dict({"quotation": {"print": True}})

    def test_non_bool_value_rejected(self):
        with pytest.raises(ValidationError):
            PermissionMatrix.from_dict({"quotation": {"view": "yes"}})

    def test_non_object_rejected(self):
        with pytest.raises(ValidationError):
            PermissionMatrix.from_dict(["quotation"])
        with pytest.raises(ValidationError):
            PermissionMatrix.from_dict({"quotation": True})

    def test_missing_module_denies(self):
        matrix = PermissionMatrix.from_dict({})
        for module in Module:
            for action in Action:
                assert not matrix.allows(module, action)

    def test_to_dict_lists_every_module(self):
        assert set(PermissionMatrix().to_dict()) == {m.value for m in Module}


class TestMatrixUnion:

    def test_union_is_per_action_or(self):
        a = PermissionMatrix(modules={Module.INVOICE: ModulePermissions(view=True)})
        b = PermissionMatrix(modules={
            Module.INVOICE: ModulePermissions(create=True),
            Module.DELIVERY: ModulePermissions(view=True),
        })
        merged = combine([a, b])

        assert merged.allows(Module.INVOICE, Action.VIEW)
        assert merged.allows(Module.INVOICE, Action.CREATE)
        assert merged.allows(Module.DELIVERY, Action.VIEW)
        assert not merged.allows(Module.DELIVERY, Action.EDIT)

    def test_full_matrix_allows_everything(self):
        full = PermissionMatrix.full()
        assert all(full.allows(m, a) for m in Module for a in Action)


class TestDefaultMatrices:

    def test_staff_can_create_quotations_only(self):
        staff = default_matrix_for_role("staff")
        assert staff.allows(Module.QUOTATION, Action.CREATE)
        assert not staff.allows(Module.QUOTATION, Action.EDIT)
        assert not staff.allows(Module.SALES_ORDER, Action.CREATE)
        assert staff.allows(Module.REPORTING, Action.VIEW)

    def test_admin_cannot_delete(self):
        admin = default_matrix_for_role("ADMIN")
        assert admin.allows(Module.SALES_ORDER, Action.CREATE)
        assert not any(admin.allows(m, Action.DELETE) for m in Module)

    def test_unknown_role_gets_staff_matrix(self):
        assert default_matrix_for_role("intern") == default_matrix_for_role("staff")


class TestUserPermissions:

    def test_owner_has_full_matrix(self, db_session, owner_user):
        matrix = permission_service.get_user_matrix(owner_user.id)
        assert matrix.allows(Module.SYSTEM_USER, Action.DELETE)

    def test_union_over_roles(self, db_session, staff_user, setup_roles):
        assert not permission_service.user_has_permission(staff_user.id, Module.INVOICE, Action.CREATE)

        auth_service.assign_role(staff_user.id, "finance")

        assert permission_service.user_has_permission(staff_user.id, Module.INVOICE, Action.CREATE)
        assert permission_service.user_has_permission(staff_user.id, Module.QUOTATION, Action.CREATE)

    def test_unknown_user_has_nothing(self, db_session):
        assert not permission_service.user_has_permission(999, Module.CLIENT, Action.VIEW)


class TestRoleManagement:

    def test_create_role_validates_matrix(self, db_session, setup_roles):
        with pytest.raises(ValidationError):
            auth_service.create_role(name="Auditor", description=None, permissions={"ledger": {"view": True}})

        role = auth_service.create_role(
            name="Auditor", description="Read-only", permissions={"reporting": {"view": True}}
        )
        assert role.name == "auditor"
        assert role.matrix().allows(Module.REPORTING, Action.VIEW)

    def test_reset_defaults_restores_matrices(self, db_session, setup_roles):
        staff = setup_roles["staff"]
        auth_service.update_role(staff.id, permissions={"invoice": {"view": True, "delete": True}})
        assert db_session.get(Role, staff.id).matrix().allows(Module.INVOICE, Action.DELETE)

        auth_service.reset_role_defaults()

        restored = db_session.get(Role, staff.id).matrix()
        assert not restored.allows(Module.INVOICE, Action.DELETE)
        assert restored.allows(Module.QUOTATION, Action.CREATE)


class TestPermissionGuards:

    def test_missing_permission_is_403(self, client, db_session, staff_headers, brand_acme):
        response = client.post("/api/roles", json={"name": "x", "permissions": {}}, headers=staff_headers)

        assert response.status_code == 403
        assert response.json["success"] is False

    def test_staff_cannot_convert(self, client, db_session, staff_headers, quotation):
        response = client.post(f"/api/quotations/{quotation.id}/convert-to-so", headers=staff_headers)

        assert response.status_code == 403
        assert response.json["required_permission"] == "salesOrder.create"
