"""
Scheduler module
Background job scheduling for streak rollover and maintenance tasks
"""
from .service import start_scheduler, stop_scheduler
from . import jobs

__all__ = ['start_scheduler', 'stop_scheduler', 'jobs']
