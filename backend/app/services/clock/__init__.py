"""
Clock module - Server-verified dates for date integrity
"""
from .service import ServerClock, server_clock, get_verified_today

__all__ = ['ServerClock', 'server_clock', 'get_verified_today']
