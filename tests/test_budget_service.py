"""
Tests for the monthly user budget
"""
from datetime import datetime, timedelta, timezone

import pytest

from database_models import Expense, Pet
from services.budget_service import UserBudgetService
from tests.conftest import create_user, signup
from utils.date_utils import utc_month_bounds


async def _pet(db, user_id: str, name: str) -> Pet:
    pet = Pet(user_id=user_id, name=name, type="dog")
    db.add(pet)
    await db.flush()
    return pet


def _expense(user_id: str, pet: Pet, amount: float, date: datetime, currency: str = "TRY") -> Expense:
    return Expense(user_id=user_id, pet_id=pet.id, category="food", amount=amount, currency=currency, date=date)


@pytest.mark.asyncio
async def test_set_budget_upsert_and_defaults(test_db):
    user = await create_user(test_db)
    service = UserBudgetService(test_db)

    budget = await service.set_budget(user.id, amount=100, currency="try")
    assert budget.currency == "TRY"
    assert budget.alert_threshold == 0.8
    assert budget.is_active is True

    updated = await service.set_budget(user.id, amount=250, currency="USD", alert_threshold=0.5, is_active=False)
    await test_db.commit()
    assert updated.id == budget.id
    assert updated.amount == 250
    assert updated.alert_threshold == 0.5
    assert updated.is_active is False


@pytest.mark.asyncio
async def test_set_budget_validation(test_db):
    user = await create_user(test_db)
    service = UserBudgetService(test_db)

    with pytest.raises(ValueError, match="greater than 0"):
        await service.set_budget(user.id, amount=0, currency="TRY")
    with pytest.raises(ValueError, match="Currency is required"):
        await service.set_budget(user.id, amount=10, currency=" ")
    with pytest.raises(ValueError, match="between 0 and 1"):
        await service.set_budget(user.id, amount=10, currency="TRY", alert_threshold=1.5)


@pytest.mark.asyncio
async def test_budget_status_alert_at_85_percent(test_db):
    """100 TRY budget, 0.8 threshold, 85 TRY spent this month -> alert, not exceeded."""
    user = await create_user(test_db)
    service = UserBudgetService(test_db)
    now = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
    start, end = utc_month_bounds(now=now)

    rex = await _pet(test_db, user.id, "Rex")
    mia = await _pet(test_db, user.id, "Mia")
    test_db.add_all([
        _expense(user.id, rex, 50, start),  # first instant of the month counts
        _expense(user.id, mia, 35, now),
        _expense(user.id, rex, 999, end),  # first instant of next month does not
        _expense(user.id, rex, 40, start - timedelta(microseconds=1)),
        _expense(user.id, mia, 500, now, currency="USD"),
    ])
    await service.set_budget(user.id, amount=100, currency="TRY", alert_threshold=0.8)
    await test_db.commit()

    status = await service.get_budget_status(user.id, now=now)

    assert status["currentSpending"] == 85
    assert status["percentage"] == pytest.approx(85)
    assert status["remainingAmount"] == 15
    assert status["isAlert"] is True
    breakdown = {item["petName"]: item["spending"] for item in status["petBreakdown"]}
    assert breakdown == {"Rex": 50, "Mia": 35}
    assert status["budget"]["amount"] == 100

    alert = await service.check_budget_alert(user.id, now=now)
    assert alert["isExceeded"] is False
    assert alert["percentage"] == pytest.approx(85)


@pytest.mark.asyncio
async def test_budget_exceeded_only_at_100_percent(test_db):
    user = await create_user(test_db)
    service = UserBudgetService(test_db)
    now = datetime(2025, 6, 15, tzinfo=timezone.utc)
    pet = await _pet(test_db, user.id, "Rex")
    await service.set_budget(user.id, amount=100, currency="TRY")
    test_db.add(_expense(user.id, pet, 100, now))
    await test_db.commit()

    alert = await service.check_budget_alert(user.id, now=now)
    assert alert["isExceeded"] is True
    assert alert["remainingAmount"] == 0


@pytest.mark.asyncio
async def test_below_threshold_has_no_alert(test_db):
    user = await create_user(test_db)
    service = UserBudgetService(test_db)
    now = datetime(2025, 6, 15, tzinfo=timezone.utc)
    pet = await _pet(test_db, user.id, "Rex")
    await service.set_budget(user.id, amount=100, currency="TRY")
    test_db.add(_expense(user.id, pet, 79, now))
    await test_db.commit()

    status = await service.get_budget_status(user.id, now=now)
    assert status["isAlert"] is False
    assert await service.check_budget_alert(user.id, now=now) is None


@pytest.mark.asyncio
async def test_inactive_or_missing_budget_has_no_status(test_db):
    user = await create_user(test_db)
    service = UserBudgetService(test_db)

    assert await service.get_budget_status(user.id) is None

    await service.set_budget(user.id, amount=100, currency="TRY", is_active=False)
    await test_db.commit()
    assert await service.get_budget_status(user.id) is None


@pytest.mark.asyncio
async def test_delete_budget_is_idempotent(test_db):
    user = await create_user(test_db)
    service = UserBudgetService(test_db)
    await service.set_budget(user.id, amount=100, currency="TRY")
    await test_db.commit()

    assert await service.delete_budget(user.id) is True
    assert await service.delete_budget(user.id) is False
    assert await service.get_budget(user.id) is None


@pytest.mark.asyncio
async def test_budget_endpoints(async_client):
    _, headers = await signup(async_client, "budget@example.com")

    empty = await async_client.get("/api/budget", headers=headers)
    assert empty.status_code == 200
    assert empty.json()["data"] is None

    created = await async_client.put(
        "/api/budget", json={"amount": 100, "currency": "TRY", "alertThreshold": 0.5}, headers=headers
    )
    assert created.status_code == 201
    assert created.json()["data"]["alertThreshold"] == 0.5

    pet = await async_client.post("/api/pets", json={"name": "Rex", "type": "dog"}, headers=headers)
    pet_id = pet.json()["data"]["id"]
    await async_client.post(
        "/api/expenses",
        json={"petId": pet_id, "category": "food", "amount": 60, "currency": "TRY",
              "date": datetime.now(timezone.utc).isoformat()},
        headers=headers,
    )

    status = (await async_client.get("/api/budget/status", headers=headers)).json()["data"]
    assert status["currentSpending"] == 60
    assert status["isAlert"] is True
    assert status["petBreakdown"] == [{"petId": pet_id, "petName": "Rex", "spending": 60.0}]

    alerts = (await async_client.get("/api/budget/alerts", headers=headers)).json()["data"]
    assert alerts["isExceeded"] is False

    invalid = await async_client.put("/api/budget", json={"amount": -5, "currency": "TRY"}, headers=headers)
    assert invalid.status_code == 400
    assert invalid.json()["error"]["code"] == "VALIDATION_ERROR"

    deleted = await async_client.delete("/api/budget", headers=headers)
    assert deleted.json()["data"]["message"] == "Budget deleted successfully"
    again = await async_client.delete("/api/budget", headers=headers)
    assert again.json()["data"]["message"] == "No budget existed to delete"


@pytest.mark.asyncio
async def test_lowercase_currency_matches_budget(async_client):
    _, headers = await signup(async_client, "lowercase@example.com")
    pet = await async_client.post("/api/pets", json={"name": "Rex", "type": "dog"}, headers=headers)
    pet_id = pet.json()["data"]["id"]

    expense = await async_client.post(
        "/api/expenses",
        json={"petId": pet_id, "category": "food", "amount": 85, "currency": "usd",
              "date": datetime.now(timezone.utc).isoformat()},
        headers=headers,
    )
    assert expense.status_code == 201
    assert expense.json()["data"]["currency"] == "USD"

    await async_client.put("/api/budget", json={"amount": 100, "currency": "usd"}, headers=headers)

    status = (await async_client.get("/api/budget/status", headers=headers)).json()["data"]
    assert status["budget"]["currency"] == "USD"
    assert status["currentSpending"] == 85
    assert status["isAlert"] is True

    filtered = await async_client.get("/api/expenses", params={"currency": "usd"}, headers=headers)
    assert filtered.json()["meta"]["total"] == 1


@pytest.mark.asyncio
async def test_budget_status_at_utc_month_boundary(test_db):
    user = await create_user(test_db)
    service = UserBudgetService(test_db)
    pet = await _pet(test_db, user.id, "Rex")
    next_month = datetime(2025, 8, 1, tzinfo=timezone.utc)

    test_db.add_all([
        _expense(user.id, pet, 30, next_month - timedelta(seconds=1)),
        _expense(user.id, pet, 70, next_month),
    ])
    await service.set_budget(user.id, amount=100, currency="TRY")
    await test_db.commit()

    # Late evening of July 31st at UTC-5 is already August in UTC
    local_evening = datetime(2025, 7, 31, 22, 30, tzinfo=timezone(timedelta(hours=-5)))
    august = await service.get_budget_status(user.id, now=local_evening)
    assert august["currentSpending"] == 70

    july = await service.get_budget_status(user.id, now=next_month - timedelta(seconds=1))
    assert july["currentSpending"] == 30
