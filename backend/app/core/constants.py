"""
Application constants - reward tables, level curve and retry tuning
"""

# XP earned per event
XP_REWARDS = {
    "HABIT_COMPLETED": 10,
    "ACHIEVEMENT_UNLOCKED": 25,
    "WEEKLY_CHALLENGE": 50,
}

# Streak length -> bonus XP, granted when the streak first reaches the length
STREAK_XP_BONUSES = {
    3: 5,
    7: 10,
    14: 20,
    30: 50,
}

# Coins earned per event
COIN_REWARDS = {
    "HABIT_COMPLETED": 1,
    "ACHIEVEMENT_UNLOCKED": 5,
}

# Level = floor(sqrt(xp / LEVEL_XP_BASE)) + 1
LEVEL_XP_BASE = 100

# Optimistic locking
OPTIMISTIC_LOCK_MAX_RETRIES = 3
OPTIMISTIC_LOCK_BACKOFF_SECONDS = 0.05

# Reward defaults for a fresh user_rewards row
DEFAULT_THEME = "default"
DEFAULT_AVATAR = "user"

# Payment bounds
MAX_COINS_PER_PAYMENT = 100000

# Analytics
TREND_STABLE_THRESHOLD = 0.05
STREAK_HISTORY_LIMIT = 10
STREAK_BREAKS_LIMIT = 5

# Scheduler intervals
CLOCK_REFRESH_INTERVAL_MINUTES = 5
ORDER_EXPIRY_CHECK_INTERVAL_MINUTES = 60

# Leaderboard
LEADERBOARD_SIZE = 50
LEADERBOARD_PERIOD_DAYS = {
    "weekly": 7,
    "monthly": 30,
}
