"""
Level curve

Level = floor(sqrt(xp / 100)) + 1
Level 1: 0 XP, Level 2: 100 XP, Level 3: 400 XP, Level 4: 900 XP, etc.
"""
import math
from typing import Dict, Any

from app.core.constants import LEVEL_XP_BASE


def calculate_level(xp: int) -> int:
    """Calculate level from total XP"""
    return max(1, math.floor(math.sqrt(max(xp, 0) / LEVEL_XP_BASE)) + 1)


def xp_for_level(level: int) -> int:
    """Total XP needed to reach a level"""
    return (level - 1) ** 2 * LEVEL_XP_BASE


def get_level_progress(xp: int) -> Dict[str, Any]:
    """
    Calculate XP progress within the current level

    Returns:
        Dict with current_level, current_level_xp, next_level_xp,
        progress_xp and progress_percent
    """
    current_level = calculate_level(xp)
    current_level_xp = xp_for_level(current_level)
    next_level_xp = xp_for_level(current_level + 1)
    progress_xp = xp - current_level_xp
    xp_needed = next_level_xp - current_level_xp
    progress_percent = min(100.0, progress_xp / xp_needed * 100)

    return {
        "current_level": current_level,
        "current_level_xp": current_level_xp,
        "next_level_xp": next_level_xp,
        "progress_xp": progress_xp,
        "progress_percent": round(progress_percent, 2)
    }
