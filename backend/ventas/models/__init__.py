from .tenancy import Organization, UserRole
from .customers import Customer
from .inventory import Product
from .sales import Sale, SaleLineItem

__all__ = [
    'Organization', 'UserRole',
    'Customer',
    'Product',
    'Sale', 'SaleLineItem',
]
