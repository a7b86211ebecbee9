"""
External integrations module
Handles connections to external services (Razorpay, public time APIs)
"""
from . import razorpay
from . import time_api

__all__ = ['razorpay', 'time_api']
