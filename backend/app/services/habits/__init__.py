"""
Habits module - habit CRUD, completion toggles, logs and analytics
"""
from . import repository
from . import analytics
from . import service

from .service import (
    create_habit,
    update_habit,
    delete_habit,
    get_habits_with_status,
    toggle_completion,
    log_habit,
    get_logs,
    get_analytics,
    get_achievement_stats
)

__all__ = [
    # Modules
    'repository',
    'analytics',
    'service',

    # Service functions
    'create_habit',
    'update_habit',
    'delete_habit',
    'get_habits_with_status',
    'toggle_completion',
    'log_habit',
    'get_logs',
    'get_analytics',
    'get_achievement_stats'
]
