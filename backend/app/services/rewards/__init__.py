"""
Rewards module - coin/XP economy with optimistic locking
"""
from . import repository
from . import ledger
from . import levels
from . import awards
from . import xp
from . import coins
from . import achievements

from .ledger import (
    get_or_create_rewards,
    apply_rewards_update,
    with_optimistic_retry,
    update_rewards_with_retry,
    add_coins_with_retry,
    spend_coins_with_retry,
    update_xp_with_retry,
    update_streaks_with_retry,
    update_profile_cosmetics
)

from .levels import calculate_level, xp_for_level, get_level_progress

__all__ = [
    # Modules
    'repository',
    'ledger',
    'levels',
    'awards',
    'xp',
    'coins',
    'achievements',

    # Ledger functions
    'get_or_create_rewards',
    'apply_rewards_update',
    'with_optimistic_retry',
    'update_rewards_with_retry',
    'add_coins_with_retry',
    'spend_coins_with_retry',
    'update_xp_with_retry',
    'update_streaks_with_retry',
    'update_profile_cosmetics',

    # Level math
    'calculate_level',
    'xp_for_level',
    'get_level_progress'
]
