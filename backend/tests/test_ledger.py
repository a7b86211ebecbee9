import pytest

from app.core.exceptions import (
    InsufficientCoinsError,
    InvalidRequestError,
    MaxRetriesExceededError,
    RewardsNotFoundError,
    VersionConflictError
)
from app.models.rewards import RewardsUpdate
from app.services.rewards import ledger, repository
from conftest import USER_ID, rewards_of


def test_get_or_create_rewards_creates_default_row(db):
    rewards = ledger.get_or_create_rewards(USER_ID)

    assert rewards["version"] == 1
    assert rewards["coins"] == 0
    assert rewards["unlocked_themes"] == ["default"]
    assert len(db.rows("user_rewards")) == 1


def test_apply_update_bumps_version_and_recomputes_level(db, rewards_row):
    rewards_row(xp=90, coins=3)

    result = ledger.apply_rewards_update(USER_ID, 1, RewardsUpdate(xp_delta=10, coins_delta=2))

    assert result["success"] is True
    assert result["version"] == 2
    assert result["xp"] == 100
    assert result["coins"] == 5
    assert result["level"] == 2
    assert result["previous_level"] == 1
    assert result["leveled_up"] is True
    assert rewards_of(db)["version"] == 2


def test_apply_update_rejects_stale_version(rewards_row):
    rewards_row(version=4)

    with pytest.raises(VersionConflictError) as exc:
        ledger.apply_rewards_update(USER_ID, 3, RewardsUpdate(coins_delta=1))

    assert exc.value.expected_version == 3
    assert exc.value.current_version == 4


def test_apply_update_without_row():
    with pytest.raises(RewardsNotFoundError):
        ledger.apply_rewards_update(USER_ID, 1, RewardsUpdate(coins_delta=1))


def test_apply_update_never_makes_coins_negative(db, rewards_row):
    rewards_row(coins=3)

    with pytest.raises(InsufficientCoinsError) as exc:
        ledger.apply_rewards_update(USER_ID, 1, RewardsUpdate(coins_delta=-5))

    assert "You need 2 more coins" in str(exc.value)
    assert rewards_of(db)["coins"] == 3
    assert rewards_of(db)["version"] == 1


def test_xp_and_perfect_days_clamp_at_zero(rewards_row):
    rewards_row(xp=5, perfect_days=0)

    result = ledger.apply_rewards_update(USER_ID, 1, RewardsUpdate(xp_delta=-20, perfect_days_delta=-1))

    assert result["xp"] == 0
    assert result["perfect_days"] == 0


def test_longest_streak_never_below_current(rewards_row):
    rewards_row(longest_streak=3)

    result = ledger.apply_rewards_update(USER_ID, 1, RewardsUpdate(current_streak=5))

    assert result["current_streak"] == 5
    assert result["longest_streak"] == 5


def test_coin_change_with_reason_is_recorded(db, rewards_row):
    rewards_row(coins=10)

    ledger.apply_rewards_update(USER_ID, 1, RewardsUpdate(coins_delta=-4), reason="Purchase: Ocean")

    [entry] = db.rows("coin_transactions")
    assert entry["amount"] == -4
    assert entry["reason"] == "Purchase: Ocean"
    assert entry["balance_after"] == 6


def test_lost_compare_and_swap_raises_conflict(monkeypatch, rewards_row):
    rewards_row()
    monkeypatch.setattr(repository, "update_rewards_if_version", lambda *args: None)

    with pytest.raises(VersionConflictError):
        ledger.apply_rewards_update(USER_ID, 1, RewardsUpdate(coins_delta=1))


def test_retry_recovers_from_a_concurrent_writer(db, monkeypatch, rewards_row):
    rewards_row(coins=10)
    real_update = repository.update_rewards_if_version
    calls = {"count": 0}

    def racing_update(user_id, expected_version, update_data):
        calls["count"] += 1
        if calls["count"] == 1:
            # Another device spends 2 coins between our read and our write
            row = rewards_of(db)
            row["coins"] -= 2
            row["version"] += 1
        return real_update(user_id, expected_version, update_data)

    monkeypatch.setattr(repository, "update_rewards_if_version", racing_update)

    result = ledger.add_coins_with_retry(USER_ID, 5)

    assert calls["count"] == 2
    assert result["coins"] == 13
    assert result["version"] == 3


def test_retry_gives_up_after_max_attempts(monkeypatch, rewards_row):
    rewards_row()
    monkeypatch.setattr(repository, "update_rewards_if_version", lambda *args: None)

    with pytest.raises(MaxRetriesExceededError):
        ledger.add_coins_with_retry(USER_ID, 5, max_retries=3)


def test_retry_backs_off_linearly(monkeypatch, rewards_row):
    rewards_row()
    sleeps = []
    monkeypatch.setattr(ledger.time, "sleep", sleeps.append)
    monkeypatch.setattr(repository, "update_rewards_if_version", lambda *args: None)

    with pytest.raises(MaxRetriesExceededError):
        ledger.add_coins_with_retry(USER_ID, 5)

    assert sleeps == pytest.approx([0.05, 0.10])


def test_coin_history_failure_keeps_committed_update(db, rewards_row):
    rewards_row(coins=3)
    db.failing_tables.add("coin_transactions")

    result = ledger.add_coins_with_retry(USER_ID, 5, reason="Payment: pay_1")

    assert result["coins"] == 8
    assert rewards_of(db)["coins"] == 8
    assert rewards_of(db)["version"] == 2


def test_spend_coins_requires_positive_amount(rewards_row):
    rewards_row(coins=10)

    with pytest.raises(InvalidRequestError):
        ledger.spend_coins_with_retry(USER_ID, 0)


def test_spend_coins(rewards_row):
    rewards_row(coins=10)

    assert ledger.spend_coins_with_retry(USER_ID, 4)["coins"] == 6


def test_update_streaks_keeps_longest(rewards_row):
    rewards_row(current_streak=4, longest_streak=9)

    result = ledger.update_streaks_with_retry(USER_ID, 0)

    assert result["current_streak"] == 0
    assert result["longest_streak"] == 9


def test_update_xp_with_retry(rewards_row):
    rewards_row(xp=390)

    result = ledger.update_xp_with_retry(USER_ID, 10)

    assert result["level"] == 3
    assert result["leveled_up"] is True


def test_cosmetics_require_unlocked_items(rewards_row):
    rewards_row(unlocked_themes=["default", "ocean-blue"])

    with pytest.raises(InvalidRequestError):
        ledger.update_profile_cosmetics(USER_ID, current_theme="sunset")

    result = ledger.update_profile_cosmetics(USER_ID, current_theme="ocean-blue")
    assert result["current_theme"] == "ocean-blue"


def test_cosmetics_need_a_field(rewards_row):
    rewards_row()

    with pytest.raises(InvalidRequestError):
        ledger.update_profile_cosmetics(USER_ID)
