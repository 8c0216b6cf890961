from .auth import User, LoginAttempt
from .inventory import Product, ProductLog, BRANDS, CATEGORIES
from .repairs import Technician, Service, ServiceItem, ServiceLog, SERVICE_STATUSES
from .settings import StoreSetting, DEFAULT_STORE_SETTING, STORE_SETTING_ID

__all__ = [
    'User', 'LoginAttempt',
    'Product', 'ProductLog', 'BRANDS', 'CATEGORIES',
    'Technician', 'Service', 'ServiceItem', 'ServiceLog', 'SERVICE_STATUSES',
    'StoreSetting', 'DEFAULT_STORE_SETTING', 'STORE_SETTING_ID',
]
