# Overview: Module and action keys of the role permission matrix.

from enum import Enum


class Module(str, Enum):
    """Business modules a role can be granted actions on. Values are the JSON keys."""
    CLIENT = "client"
    QUOTATION = "quotation"
    SALES_ORDER = "salesOrder"
    INVOICE = "invoice"
    KWITANSI = "kwitansi"
    DELIVERY = "delivery"
    PURCHASE_ORDER = "purchaseOrder"
    PRODUCT_STOCK = "productStock"
    TEMPLATE_BRANDING = "templateBranding"
    REPORTING = "reporting"
    SYSTEM_USER = "systemUser"


class Action(str, Enum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    APPROVE = "approve"


MODULE_KEYS = [m.value for m in Module]
ACTION_KEYS = [a.value for a in Action]
