"""
Business logic services
"""
from . import external
from . import clock
from . import rewards
from . import habits
from . import challenges
from . import leaderboard
from . import shop
from . import payments
from . import scheduler

__all__ = [
    'external',
    'clock',
    'rewards',
    'habits',
    'challenges',
    'leaderboard',
    'shop',
    'payments',
    'scheduler'
]
