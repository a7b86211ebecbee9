from datetime import timedelta

import pytest

from app.core.exceptions import DatabaseError
from app.services.rewards import coins, repository, xp
from conftest import TODAY, USER_ID, rewards_of


def test_habit_xp_is_awarded_once_per_day(db, rewards_row):
    rewards_row()

    first = xp.award_habit_xp(USER_ID, "habit-1", TODAY)
    second = xp.award_habit_xp(USER_ID, "habit-1", TODAY)

    assert first["success"] is True
    assert first["amount"] == 10
    assert second["success"] is False
    assert second["message"] == "XP already awarded for this habit today"
    assert rewards_of(db)["xp"] == 10
    assert len(db.rows("xp_awards")) == 1


def test_level_up_message(rewards_row):
    rewards_row(xp=95)

    result = xp.award_habit_xp(USER_ID, "habit-1", TODAY)

    assert result["message"] == "Level up! You're now level 2!"


def test_award_row_is_removed_when_credit_fails(db, monkeypatch, rewards_row):
    rewards_row()

    def broken_update(*args):
        raise DatabaseError("connection reset")

    monkeypatch.setattr(repository, "update_rewards_if_version", broken_update)

    with pytest.raises(DatabaseError):
        coins.award_habit_coins(USER_ID, "habit-1", TODAY)

    assert db.rows("coin_awards") == []
    assert rewards_of(db)["coins"] == 0


def test_coin_history_failure_does_not_pay_twice(db, monkeypatch, rewards_row):
    rewards_row()
    real_history = repository.create_coin_transaction
    calls = {"count": 0}

    def flaky_history(*args):
        calls["count"] += 1
        if calls["count"] == 1:
            raise DatabaseError("insert timed out")
        return real_history(*args)

    monkeypatch.setattr(repository, "create_coin_transaction", flaky_history)

    first = coins.award_habit_coins(USER_ID, "habit-1", TODAY)
    retry = coins.award_habit_coins(USER_ID, "habit-1", TODAY)

    assert first["success"] is True
    assert retry["success"] is False
    assert len(db.rows("coin_awards")) == 1
    assert rewards_of(db)["coins"] == 1


def test_deduct_takes_back_the_award(db, rewards_row):
    rewards_row()
    coins.award_habit_coins(USER_ID, "habit-1", TODAY)

    result = coins.deduct_habit_coins(USER_ID, "habit-1", TODAY)

    assert result["amount"] == -1
    assert rewards_of(db)["coins"] == 0
    assert db.rows("coin_awards") == []
    assert not coins.check_coins_awarded(USER_ID, "habit-1", TODAY)


def test_deduct_never_goes_below_zero(db, rewards_row):
    rewards_row()
    xp.award_habit_xp(USER_ID, "habit-1", TODAY)
    rewards_of(db)["xp"] = 4

    result = xp.deduct_habit_xp(USER_ID, "habit-1", TODAY)

    assert result["amount"] == -4
    assert rewards_of(db)["xp"] == 0


def test_deduct_without_award_is_a_no_op(db, rewards_row):
    rewards_row(coins=7)

    result = coins.deduct_habit_coins(USER_ID, "habit-1", TODAY)

    assert result == {"success": True, "message": "No coins to deduct", "amount": 0}
    assert rewards_of(db)["version"] == 1


def test_failed_award_removal_restores_the_deduction(db, monkeypatch, rewards_row):
    rewards_row()
    xp.award_habit_xp(USER_ID, "habit-1", TODAY)

    def broken_delete(*args):
        raise DatabaseError("connection reset")

    monkeypatch.setattr(repository, "delete_award", broken_delete)

    with pytest.raises(DatabaseError):
        xp.deduct_habit_xp(USER_ID, "habit-1", TODAY)

    assert rewards_of(db)["xp"] == 10


@pytest.mark.parametrize("previous,new,expected", [
    (2, 3, [{"streak": 3, "xp": 5}]),
    (6, 7, [{"streak": 7, "xp": 10}]),
    (0, 14, [{"streak": 3, "xp": 5}, {"streak": 7, "xp": 10}, {"streak": 14, "xp": 20}]),
    (3, 4, []),
    (7, 2, []),
])
def test_streak_bonus_thresholds(previous, new, expected):
    assert xp.get_streak_bonus(previous, new) == expected


def test_award_streak_bonus(db, rewards_row):
    rewards_row()

    result = xp.award_streak_bonus(USER_ID, 29, 30, TODAY - timedelta(days=29))

    assert result["amount"] == 50
    assert rewards_of(db)["xp"] == 50


def test_streak_bonus_pays_once_per_streak(db, rewards_row):
    rewards_row()
    start = TODAY - timedelta(days=2)

    xp.award_streak_bonus(USER_ID, 2, 3, start)
    repeat = xp.award_streak_bonus(USER_ID, 2, 3, start)
    new_streak = xp.award_streak_bonus(USER_ID, 2, 3, TODAY + timedelta(days=10))

    assert repeat["amount"] == 0
    assert new_streak["amount"] == 5
    assert rewards_of(db)["xp"] == 10


def test_streak_bonus_record_is_removed_when_credit_fails(db, monkeypatch, rewards_row):
    rewards_row()

    def broken_update(*args):
        raise DatabaseError("connection reset")

    monkeypatch.setattr(repository, "update_rewards_if_version", broken_update)

    with pytest.raises(DatabaseError):
        xp.award_streak_bonus(USER_ID, 0, 7, TODAY - timedelta(days=6))

    assert db.rows("streak_bonus_awards") == []


def test_achievement_flat_rewards(db, rewards_row):
    rewards_row()

    xp.award_achievement_xp(USER_ID)
    coins.reward_achievement_unlock(USER_ID)

    assert rewards_of(db)["xp"] == 25
    assert rewards_of(db)["coins"] == 5


def test_user_xp_info(rewards_row):
    rewards_row(xp=250, level=2)

    info = xp.get_user_xp_info(USER_ID)

    assert info["level"] == 2
    assert info["progress"]["progress_percent"] == 50.0
