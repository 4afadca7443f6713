# Overview: Built-in roles and their default permission matrices.

from .matrix import ModulePermissions, PermissionMatrix
from .modules import Module


ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_FINANCE = "finance"
ROLE_WAREHOUSE = "warehouse"
ROLE_STAFF = "staff"

DEFAULT_ROLES = [
    (ROLE_OWNER, "Full access to every module and brand"),
    (ROLE_ADMIN, "Manages business operations across all brands, no hard delete"),
    (ROLE_FINANCE, "Billing and payment approvals"),
    (ROLE_WAREHOUSE, "Delivery and stock operations"),
    (ROLE_STAFF, "Creates quotations, otherwise view-only"),
]


def _p(view=True, create=False, edit=False, delete=False, approve=False) -> ModulePermissions:
    return ModulePermissions(view=view, create=create, edit=edit, delete=delete, approve=approve)


def _view_only_except(overrides: dict) -> PermissionMatrix:
    modules = {m: _p() for m in Module}
    modules.update(overrides)
    return PermissionMatrix(modules=modules)


_ADMIN = PermissionMatrix(modules={
    Module.CLIENT: _p(True, True, True, False, False),
    Module.QUOTATION: _p(True, True, True, False, True),
    Module.SALES_ORDER: _p(True, True, True, False, True),
    Module.INVOICE: _p(True, True, True, False, True),
    Module.KWITANSI: _p(True, True, True, False, True),
    Module.DELIVERY: _p(True, True, True, False, True),
    Module.PURCHASE_ORDER: _p(True, True, True, False, True),
    Module.PRODUCT_STOCK: _p(True, True, True, False, True),
    Module.TEMPLATE_BRANDING: _p(True, True, True, False, False),
    Module.REPORTING: _p(),
    Module.SYSTEM_USER: _p(),
})

_FINANCE = _view_only_except({
    Module.CLIENT: _p(True, False, True, False, False),
    Module.INVOICE: _p(True, True, True, False, True),
    Module.KWITANSI: _p(True, True, True, False, True),
})

_WAREHOUSE = _view_only_except({
    Module.DELIVERY: _p(True, True, True, False, True),
    Module.PRODUCT_STOCK: _p(True, True, True, False, True),
})

_STAFF = _view_only_except({
    Module.QUOTATION: _p(True, True, False, False, False),
})

DEFAULT_ROLE_MATRICES = {
    ROLE_OWNER: PermissionMatrix.full(),
    ROLE_ADMIN: _ADMIN,
    ROLE_FINANCE: _FINANCE,
    ROLE_WAREHOUSE: _WAREHOUSE,
    ROLE_STAFF: _STAFF,
}


def default_matrix_for_role(role_name: str) -> PermissionMatrix:
    """Unknown role names fall back to the staff matrix."""
    return DEFAULT_ROLE_MATRICES.get((role_name or "").lower(), _STAFF)
