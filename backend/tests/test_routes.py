from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.services.external import razorpay
from conftest import TODAY, USER_ID, rewards_of


def test_health_reports_checks(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert set(body["checks"]) == {"database", "auth"}


def test_health_degraded_when_database_fails(client, db):
    db.failing_tables.add("user_rewards")

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert client.head("/api/health").status_code == 503


def test_requests_without_token_are_rejected(db):
    from main import app
    response = TestClient(app).get("/api/rewards")

    assert response.status_code == 401


def test_bearer_token_is_resolved_through_supabase_auth(db):
    from main import app
    db.auth.tokens["good-token"] = {"id": USER_ID, "email": "sadhak@example.com"}
    client = TestClient(app)

    assert client.get("/api/rewards", headers={"Authorization": "Bearer good-token"}).status_code == 200
    assert client.get("/api/rewards", headers={"Authorization": "Bearer bad-token"}).status_code == 401


def test_maintenance_mode_blocks_everything_but_health(client, monkeypatch):
    monkeypatch.setattr(settings, "MAINTENANCE_MODE", True)

    assert client.get("/api/rewards").status_code == 503
    assert client.get("/api/health").status_code == 200


def test_time_today(client):
    response = client.get("/api/time/today")

    assert response.status_code == 200
    assert response.json()["date"] == TODAY.isoformat()


def test_time_verify_rejects_bad_dates(client):
    assert client.post("/api/time/verify", json={"client_date": "15-03-2025"}).status_code == 422


def test_habit_lifecycle(client, db):
    created = client.post("/api/habits", json={"name": "Meditate", "category": "morning"})
    assert created.status_code == 201
    habit_id = created.json()["data"]["id"]

    toggled = client.post(f"/api/habits/{habit_id}/toggle", json={"completed": True})
    assert toggled.status_code == 200
    assert toggled.json()["rewards"]["xp"]["amount"] == 10

    listed = client.get("/api/habits").json()
    assert listed["completed_count"] == 1

    renamed = client.patch(f"/api/habits/{habit_id}", json={"name": "Sit"})
    assert renamed.json()["data"]["name"] == "Sit"

    assert client.get("/api/rewards").json()["coins"] == 1
    assert client.get("/api/rewards/level").json()["xp"] == 10

    assert client.delete(f"/api/habits/{habit_id}").status_code == 200
    assert client.delete(f"/api/habits/{habit_id}").status_code == 404


def test_toggle_future_date_is_rejected(client, habit):
    mine = habit()
    tomorrow = (TODAY + timedelta(days=1)).isoformat()

    response = client.post(f"/api/habits/{mine['id']}/toggle", json={"completed": True, "date": tomorrow})

    assert response.status_code == 400


def test_habit_validation(client):
    assert client.post("/api/habits", json={"name": ""}).status_code == 422
    assert client.post("/api/habits", json={"name": "x", "category": "evening"}).status_code == 422


def test_logs_and_analytics(client, habit):
    mine = habit()
    logged = client.post("/api/habits/logs", json={
        "habit_id": mine["id"], "date": TODAY.isoformat(), "completed": True, "focus_score": 7
    })
    assert logged.status_code == 200

    logs = client.get("/api/habits/logs", params={"start_date": TODAY.isoformat()}).json()["logs"]
    assert len(logs) == 1

    analytics = client.get("/api/habits/analytics", params={"days": 7})
    assert analytics.status_code == 200
    assert analytics.json()["overview"]["total_completions"] == 1

    assert client.get("/api/habits/analytics", params={"days": 0}).status_code == 422


def test_cosmetics_route(client, rewards_row):
    rewards_row()

    assert client.patch("/api/rewards/cosmetics", json={"current_theme": "sunset"}).status_code == 400
    assert client.patch("/api/rewards/cosmetics", json={"current_avatar": "user"}).status_code == 200


def test_achievement_routes(client, db, habit, rewards_row):
    rewards_row()
    mine = habit()
    db.seed("habit_logs", {"user_id": USER_ID, "habit_id": mine["id"], "date": TODAY.isoformat(), "completed": True})

    listed = client.get("/api/achievements").json()
    assert listed["stats"]["total_completions"] == 1

    assert client.post("/api/achievements/early_bird/claim").status_code == 400
    assert client.post("/api/achievements/first_step/claim").status_code == 200
    assert client.post("/api/achievements/first_step/claim").status_code == 409
    assert client.post("/api/achievements/moonwalk/claim").status_code == 404

    auto = client.post("/api/achievements/auto-claim").json()
    assert auto["count"] == 0


def test_shop_purchase_route(client, db, rewards_row):
    rewards_row(coins=10)
    [plan] = db.seed("shop_plans", {"name": "Forest", "plan_type": "theme", "coin_price": 25, "is_active": True})

    response = client.post("/api/shop/purchase", json={"planId": plan["id"]})
    assert response.status_code == 400
    assert "You need 15 more coins" in response.json()["detail"]

    assert client.post("/api/shop/purchase", json={"planId": "missing"}).status_code == 404


@pytest.mark.parametrize("path", ["/api/razorpay/verify-payment", "/api/verify-payment"])
def test_verify_payment_routes(client, db, monkeypatch, path):
    monkeypatch.setattr(settings, "RAZORPAY_KEY_SECRET", "secret")
    db.seed("payment_orders", {"order_id": "order_1", "user_id": USER_ID, "amount": 9900,
                               "currency": "INR", "status": "created", "notes": {}})
    payload = {
        "razorpay_order_id": "order_1",
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": razorpay.compute_signature("order_1", "pay_1", "secret"),
        "coins": 100,
        "bonus": 0
    }

    response = client.post(path, json=payload)

    assert response.status_code == 200
    assert rewards_of(db)["coins"] == 100
    assert client.post(path, json=payload).status_code == 400


def test_payments_feature_flag(client, monkeypatch):
    monkeypatch.setattr(settings, "FEATURE_PAYMENTS", False)

    response = client.post("/api/create-order", json={"amount": 9900, "receipt": "r1"})

    assert response.status_code == 503


def test_payment_rate_limit(client, monkeypatch):
    monkeypatch.setattr(settings, "FEATURE_PAYMENTS", False)

    codes = [client.post("/api/create-order", json={"amount": 9900, "receipt": "r1"}).status_code
             for _ in range(12)]

    assert codes[:10] == [503] * 10
    assert 429 in codes[10:]


def test_verify_payment_route_rejects_non_ascii_signature(client, db, monkeypatch):
    monkeypatch.setattr(settings, "RAZORPAY_KEY_SECRET", "secret")
    db.seed("payment_orders", {"order_id": "order_1", "user_id": USER_ID, "amount": 9900,
                               "currency": "INR", "status": "created", "notes": {}})

    response = client.post("/api/verify-payment", json={
        "razorpay_order_id": "order_1",
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": "é" * 64,
        "coins": 100,
        "bonus": 0
    })

    assert response.status_code == 400


def test_challenge_routes(client, db, habit, rewards_row):
    rewards_row()
    mine = habit()
    db.seed("habit_logs", {"user_id": USER_ID, "habit_id": mine["id"], "date": TODAY.isoformat(), "completed": True})
    easy, hard = db.seed(
        "weekly_challenges",
        {"title": "One", "target_type": "completions", "target_value": 1, "coin_reward": 5,
         "xp_reward": 10, "week_start": TODAY.isoformat(), "week_end": TODAY.isoformat(), "is_active": True},
        {"title": "Ten", "target_type": "completions", "target_value": 10, "coin_reward": 50,
         "xp_reward": 100, "week_start": TODAY.isoformat(), "week_end": TODAY.isoformat(), "is_active": True},
    )

    assert len(client.get("/api/challenges").json()["challenges"]) == 2
    assert client.post(f"/api/challenges/{hard['id']}/claim").status_code == 400
    assert client.post(f"/api/challenges/{easy['id']}/claim").status_code == 200
    assert client.post(f"/api/challenges/{easy['id']}/claim").status_code == 409
    assert client.post("/api/challenges/missing/claim").status_code == 404
    assert rewards_of(db)["coins"] == 5


def test_leaderboard_route(client, db):
    db.seed("profiles", {"id": USER_ID, "username": "sadhak"})

    board = client.get("/api/leaderboard", params={"period": "monthly"}).json()

    assert board["current_user"]["username"] == "sadhak"
    assert client.get("/api/leaderboard", params={"period": "daily"}).status_code == 400
