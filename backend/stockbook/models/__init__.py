from .inventory import InventoryItem
from .customers import Customer
from .sales import Sale, SaleLine, CASH_SALE_NAME, PAYMENT_TYPES

__all__ = [
    'InventoryItem',
    'Customer',
    'Sale', 'SaleLine', 'CASH_SALE_NAME', 'PAYMENT_TYPES',
]
