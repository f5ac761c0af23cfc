from .shifts import Shift, CashTransaction
from .orders import Order, Payment, Refund

__all__ = [
    'Shift', 'CashTransaction',
    'Order', 'Payment', 'Refund',
]
