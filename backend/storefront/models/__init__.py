from .inventory import InventoryItem
from .partners import Supplier, PendingPayment
from .sales import Sale
from .auth import User, SessionToken
from .changes import ChangeMarker

__all__ = [
    'InventoryItem',
    'Supplier', 'PendingPayment',
    'Sale',
    'User', 'SessionToken',
    'ChangeMarker',
]
