from datetime import timedelta

import pytest

from app.core.exceptions import InvalidRequestError
from app.services import leaderboard
from conftest import OTHER_USER_ID, TODAY, USER_ID


def seed_completions(db, user_id, days_ago):
    db.seed("habit_logs", *[
        {"user_id": user_id, "habit_id": "h1", "date": (TODAY - timedelta(days=d)).isoformat(), "completed": True}
        for d in days_ago
    ])


@pytest.fixture
def players(db):
    db.seed(
        "profiles",
        {"id": USER_ID, "username": "sadhak"},
        {"id": OTHER_USER_ID, "username": None},
        {"id": "user-3", "username": "hidden", "show_on_leaderboard": False},
    )
    db.seed(
        "user_rewards",
        {"user_id": USER_ID, "xp": 100, "level": 2, "current_streak": 3},
        {"user_id": OTHER_USER_ID, "xp": 300, "level": 3, "current_streak": 1},
        {"user_id": "user-3", "xp": 900, "level": 5, "current_streak": 9},
    )


def test_rank_by_completions_then_xp():
    profiles = [{"id": "a"}, {"id": "b"}, {"id": "c"}]
    completions = [{"user_id": uid, "date": "2025-03-15"} for uid in ("a", "b", "b", "c", "c")]
    rewards = [{"user_id": "a", "xp": 10}, {"user_id": "b", "xp": 5}, {"user_id": "c", "xp": 50}]

    entries = leaderboard.rank_entries(profiles, completions, rewards, current_user_id="b")

    assert [(e["user_id"], e["rank"]) for e in entries] == [("c", 1), ("b", 2), ("a", 3)]
    assert [e["is_current_user"] for e in entries] == [False, True, False]


def test_active_days_count_distinct_dates():
    completions = [
        {"user_id": "a", "date": "2025-03-14"},
        {"user_id": "a", "date": "2025-03-14"},
        {"user_id": "a", "date": "2025-03-15"},
    ]

    [entry] = leaderboard.rank_entries([{"id": "a"}], completions, [])

    assert (entry["completions"], entry["active_days"]) == (3, 2)
    assert (entry["xp"], entry["level"], entry["username"]) == (0, 1, "Anonymous")


def test_weekly_window_covers_last_seven_days(db, players):
    seed_completions(db, USER_ID, [0, 6, 7, 20])
    seed_completions(db, OTHER_USER_ID, [1])

    board = leaderboard.get_leaderboard(USER_ID, "weekly")

    assert board["start_date"] == (TODAY - timedelta(days=6)).isoformat()
    assert board["end_date"] == TODAY.isoformat()
    assert [e["user_id"] for e in board["entries"]] == [USER_ID, OTHER_USER_ID]
    assert board["current_user"]["completions"] == 2
    assert board["entries"][1]["username"] == "Anonymous"


def test_monthly_window_and_hidden_profiles(db, players):
    seed_completions(db, USER_ID, [0, 20])
    seed_completions(db, "user-3", [0, 1, 2, 3])

    board = leaderboard.get_leaderboard(USER_ID, "monthly")

    assert board["total_users"] == 2
    assert "user-3" not in [e["user_id"] for e in board["entries"]]
    assert board["current_user"]["rank"] == 1
    assert board["current_user"]["completions"] == 2


def test_unknown_period():
    with pytest.raises(InvalidRequestError):
        leaderboard.get_leaderboard(USER_ID, "yearly")
