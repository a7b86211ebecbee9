"""
Payments module - Razorpay coin purchases
"""
from . import repository
from . import service

from .service import create_order, verify_payment, expire_stale_orders

__all__ = [
    'repository',
    'service',
    'create_order',
    'verify_payment',
    'expire_stale_orders'
]
