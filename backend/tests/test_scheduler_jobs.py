import functools
from datetime import timedelta

from app.services.rewards import repository as rewards_repository
from app.services.scheduler import jobs
from app.utils.timezone import IST_TZ
from conftest import OTHER_USER_ID, TODAY, USER_ID


def seed_rewards(db, user_id, streak):
    db.seed("user_rewards", {
        "user_id": user_id, "coins": 0, "xp": 0, "level": 1, "perfect_days": 0,
        "current_streak": streak, "longest_streak": streak, "version": 1
    })


def test_daily_rollover_resets_only_missed_streaks(db):
    seed_rewards(db, USER_ID, 4)
    seed_rewards(db, OTHER_USER_ID, 6)
    db.seed("habit_logs", {
        "user_id": USER_ID, "habit_id": "h1",
        "date": (TODAY - timedelta(days=1)).isoformat(), "completed": True
    })

    jobs.daily_rollover()

    streaks = {r["user_id"]: (r["current_streak"], r["longest_streak"]) for r in db.rows("user_rewards")}
    assert streaks[USER_ID] == (4, 4)
    assert streaks[OTHER_USER_ID] == (0, 6)


def test_daily_rollover_survives_database_errors(db):
    db.failing_tables.add("habit_logs")

    jobs.daily_rollover()


def test_daily_rollover_uses_a_fresh_date(db, monkeypatch):
    # The cache still says TODAY when the job fires at the next midnight
    monkeypatch.setattr(jobs.server_clock, "force_verify", lambda: (TODAY + timedelta(days=1)).isoformat())
    seed_rewards(db, USER_ID, 3)
    db.seed("habit_logs", {
        "user_id": USER_ID, "habit_id": "h1",
        "date": (TODAY - timedelta(days=1)).isoformat(), "completed": True
    })

    jobs.daily_rollover()

    assert db.rows("user_rewards")[0]["current_streak"] == 0


def test_daily_rollover_reaches_every_page(db, monkeypatch):
    listing = rewards_repository.list_rewards_with_streak
    monkeypatch.setattr(jobs.rewards_repository, "list_rewards_with_streak",
                        functools.partial(listing, page_size=2))
    for n in range(5):
        seed_rewards(db, f"user-{n + 10}", n + 1)

    jobs.daily_rollover()

    assert [r["current_streak"] for r in db.rows("user_rewards")] == [0] * 5


def test_rewards_with_streak_are_read_in_pages(db):
    for n in range(5):
        seed_rewards(db, f"user-{n + 10}", n + 1)
    seed_rewards(db, "user-99", 0)

    rows = rewards_repository.list_rewards_with_streak(page_size=2)

    assert [r["user_id"] for r in rows] == [f"user-{n + 10}" for n in range(5)]


def test_expire_stale_orders_job(monkeypatch):
    calls = []
    monkeypatch.setattr(jobs.payments_service, "expire_stale_orders", lambda hours: calls.append(hours) or 2)

    jobs.expire_stale_orders()

    assert calls == [24]


def test_scheduler_registers_jobs(monkeypatch):
    from app.services.scheduler import service

    started = {}

    class RecordingScheduler:
        def __init__(self, timezone):
            started["timezone"] = timezone
            self.jobs = []

        def add_job(self, func, trigger, id, name, replace_existing):
            self.jobs.append(id)

        def start(self):
            started["jobs"] = list(self.jobs)

        def shutdown(self):
            started["stopped"] = True

    monkeypatch.setattr(service, "BackgroundScheduler", RecordingScheduler)
    monkeypatch.setattr(service, "scheduler", None)

    service.start_scheduler()
    service.stop_scheduler()

    assert started["timezone"] is IST_TZ
    assert started["jobs"] == ["daily_rollover", "refresh_server_clock", "expire_stale_orders"]
    assert started["stopped"] is True
