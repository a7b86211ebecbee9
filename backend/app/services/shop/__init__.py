"""
Shop module - coin purchases and coupons
"""
from . import repository
from . import coupons
from . import service

from .coupons import validate_coupon
from .service import purchase_plan

__all__ = [
    'repository',
    'coupons',
    'service',
    'validate_coupon',
    'purchase_plan'
]
