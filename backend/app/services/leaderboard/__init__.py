"""
Leaderboard module - cross-user rankings by habit completions
"""
from . import repository
from . import service

from .service import get_leaderboard, rank_entries

__all__ = [
    'repository',
    'service',
    'get_leaderboard',
    'rank_entries'
]
