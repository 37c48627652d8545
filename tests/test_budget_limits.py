"""
Tests for per-pet budget limits
"""
from datetime import datetime, timezone

import pytest

from database_models import Expense, Pet
from services.budget_limit_service import BudgetLimitService
from tests.conftest import create_user, signup


async def _pet(db, user_id: str, name: str = "Rex") -> Pet:
    pet = Pet(user_id=user_id, name=name, type="dog")
    db.add(pet)
    await db.flush()
    return pet


def _expense(user_id: str, pet: Pet, amount: float, date: datetime, category: str = "food",
             currency: str = "TRY") -> Expense:
    return Expense(user_id=user_id, pet_id=pet.id, category=category, amount=amount, currency=currency, date=date)


@pytest.mark.asyncio
async def test_monthly_and_yearly_spending(test_db):
    user = await create_user(test_db)
    service = BudgetLimitService(test_db)
    rex = await _pet(test_db, user.id)
    mia = await _pet(test_db, user.id, "Mia")
    now = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

    test_db.add_all([
        _expense(user.id, rex, 50, datetime(2025, 6, 1, tzinfo=timezone.utc)),
        _expense(user.id, rex, 20, datetime(2025, 6, 20, tzinfo=timezone.utc), category="toys"),
        _expense(user.id, rex, 100, datetime(2025, 2, 10, tzinfo=timezone.utc)),
        _expense(user.id, rex, 999, datetime(2024, 12, 31, 23, 59, tzinfo=timezone.utc)),
        _expense(user.id, rex, 300, now, currency="USD"),
        _expense(user.id, mia, 400, now),
    ])
    monthly = await service.create_budget_limit(
        user.id, {"pet_id": rex.id, "amount": 100, "currency": "try", "period": "monthly"}
    )
    monthly_food = await service.create_budget_limit(
        user.id, {"pet_id": rex.id, "category": "food", "amount": 100, "period": "monthly"}
    )
    yearly = await service.create_budget_limit(
        user.id, {"pet_id": rex.id, "amount": 1000, "currency": "TRY", "period": "yearly"}
    )
    await test_db.commit()

    assert monthly.currency == "TRY"

    status = await service.get_budget_limit_status(user.id, monthly.id, now=now)
    assert status["currentSpending"] == 70
    assert status["percentage"] == pytest.approx(70)
    assert status["remainingAmount"] == 30

    assert (await service.get_budget_limit_status(user.id, monthly_food.id, now=now))["currentSpending"] == 50
    assert (await service.get_budget_limit_status(user.id, yearly.id, now=now))["currentSpending"] == 170


@pytest.mark.asyncio
async def test_alerts_only_for_active_limits_past_threshold(test_db):
    user = await create_user(test_db)
    service = BudgetLimitService(test_db)
    pet = await _pet(test_db, user.id)
    now = datetime(2025, 6, 15, tzinfo=timezone.utc)

    test_db.add(_expense(user.id, pet, 85, now))
    near = await service.create_budget_limit(
        user.id, {"pet_id": pet.id, "amount": 100, "period": "monthly", "alert_threshold": 0.8}
    )
    await service.create_budget_limit(user.id, {"pet_id": pet.id, "amount": 1000, "period": "monthly"})
    await service.create_budget_limit(
        user.id, {"pet_id": pet.id, "amount": 50, "period": "monthly", "is_active": False}
    )
    over = await service.create_budget_limit(user.id, {"pet_id": pet.id, "amount": 85, "period": "monthly"})
    await test_db.commit()

    alerts = await service.check_budget_limit_alerts(user.id, now=now)
    by_id = {alert["budgetLimit"]["id"]: alert for alert in alerts}
    assert set(by_id) == {near.id, over.id}
    assert by_id[near.id]["isExceeded"] is False
    assert by_id[over.id]["isExceeded"] is True
    assert by_id[over.id]["remainingAmount"] == 0

    assert len(await service.get_active_budget_limits(user.id)) == 3


@pytest.mark.asyncio
async def test_budget_limit_endpoints(async_client):
    _, headers = await signup(async_client, "limits@example.com")
    pet = await async_client.post("/api/pets", json={"name": "Rex", "type": "dog"}, headers=headers)
    pet_id = pet.json()["data"]["id"]

    created = await async_client.post(
        "/api/budget-limits",
        json={"petId": pet_id, "category": "food", "amount": 100, "period": "monthly"},
        headers=headers,
    )
    assert created.status_code == 201
    budget_limit = created.json()["data"]
    assert budget_limit["currency"] == "TRY"
    assert budget_limit["alertThreshold"] == 0.8
    assert budget_limit["isActive"] is True

    await async_client.post(
        "/api/expenses",
        json={"petId": pet_id, "category": "food", "amount": 90,
              "date": datetime.now(timezone.utc).isoformat()},
        headers=headers,
    )

    status = (await async_client.get(f"/api/budget-limits/{budget_limit['id']}/status", headers=headers)).json()
    assert status["data"]["currentSpending"] == 90

    alerts = (await async_client.get("/api/budget-limits/alerts", headers=headers)).json()["data"]
    assert [alert["budgetLimit"]["id"] for alert in alerts] == [budget_limit["id"]]

    listing = await async_client.get("/api/budget-limits?period=monthly", headers=headers)
    assert listing.json()["meta"]["total"] == 1
    nested = await async_client.get(f"/api/pets/{pet_id}/budget-limits", headers=headers)
    assert nested.json()["meta"]["total"] == 1

    updated = await async_client.put(
        f"/api/budget-limits/{budget_limit['id']}", json={"isActive": False, "amount": 200}, headers=headers
    )
    assert updated.json()["data"]["amount"] == 200
    assert (await async_client.get("/api/budget-limits/active", headers=headers)).json()["data"] == []

    bad_period = await async_client.post(
        "/api/budget-limits", json={"petId": pet_id, "amount": 100, "period": "weekly"}, headers=headers
    )
    assert bad_period.status_code == 400

    _, other_headers = await signup(async_client, "other-limits@example.com")
    hidden = await async_client.get(f"/api/budget-limits/{budget_limit['id']}", headers=other_headers)
    assert hidden.status_code == 404
    assert hidden.json()["error"]["code"] == "BUDGET_LIMIT_NOT_FOUND"

    deleted = await async_client.delete(f"/api/budget-limits/{budget_limit['id']}", headers=headers)
    assert deleted.status_code == 200
    assert (await async_client.get(f"/api/budget-limits/{budget_limit['id']}", headers=headers)).status_code == 404
