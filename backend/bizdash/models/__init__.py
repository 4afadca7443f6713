from .branding import BrandProfile
from .auth import User, Role, UserRole, UserBrandScope
from .customers import Customer
from .sales import (
    Quotation,
    QuotationItem,
    SalesOrder,
    SalesOrderItem,
    Invoice,
    InvoiceItem,
    QUOTATION_STATUSES,
    SALES_ORDER_STATUSES,
    INVOICE_STATUSES,
    TAX_MODES,
)
from .purchasing import PurchaseDirect, PurchaseDirectItem
from .inventory import Product, StockMutation, STOCK_MUTATION_TYPES
from .documents import DocumentSequence
from .activity import ActivityLog, Notification, OutboxEvent

__all__ = [
    'BrandProfile',
    'User', 'Role', 'UserRole', 'UserBrandScope',
    'Customer',
    'Quotation', 'QuotationItem', 'SalesOrder', 'SalesOrderItem', 'Invoice', 'InvoiceItem',
    'QUOTATION_STATUSES', 'SALES_ORDER_STATUSES', 'INVOICE_STATUSES', 'TAX_MODES',
    'PurchaseDirect', 'PurchaseDirectItem',
    'Product', 'StockMutation', 'STOCK_MUTATION_TYPES',
    'DocumentSequence',
    'ActivityLog', 'Notification', 'OutboxEvent',
]
