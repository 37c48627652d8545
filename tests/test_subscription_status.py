"""
Tests for the unified subscription status view
"""
from datetime import timedelta

import pytest

from config.settings import PROVIDER_REVENUECAT, STATUS_ACTIVE, STATUS_CANCELLED, STATUS_EXPIRED
from database_models import Subscription
from services.subscription_service import SubscriptionService
from services.trial_service import TrialService
from tests.conftest import create_user, signup
from utils.date_utils import utcnow


@pytest.mark.asyncio
async def test_new_user_without_subscription(test_db):
    user = await create_user(test_db)

    status = await SubscriptionService(test_db).get_subscription_status(user.id, "device-1")

    assert status == {
        "hasActiveSubscription": False,
        "subscriptionType": None,
        "tier": None,
        "expiresAt": None,
        "daysRemaining": 0,
        "isExpired": False,
        "isCancelled": False,
        "canStartTrial": True,
        "provider": None,
    }


@pytest.mark.asyncio
async def test_active_trial_status(test_db):
    user = await create_user(test_db)
    await TrialService(test_db).start_trial(user.id, "device-1")
    await test_db.commit()

    status = await SubscriptionService(test_db).get_subscription_status(user.id, "device-1")

    assert status["hasActiveSubscription"] is True
    assert status["subscriptionType"] == "trial"
    assert status["provider"] == "internal"
    assert status["tier"] == "pro"
    assert status["daysRemaining"] == 7
    assert status["canStartTrial"] is False


@pytest.mark.asyncio
async def test_expired_trial_cannot_restart_on_used_device(test_db):
    user = await create_user(test_db)
    other = await create_user(test_db, "other@example.com")
    trial = await TrialService(test_db).start_trial(user.id, "device-1")
    trial.expires_at = utcnow() - timedelta(hours=1)
    await test_db.commit()

    service = SubscriptionService(test_db)
    status = await service.get_subscription_status(user.id, "device-1")
    assert status["hasActiveSubscription"] is False
    assert status["isExpired"] is True
    assert status["canStartTrial"] is False

    # A different account on the same phone is blocked by the device registry
    other_status = await service.get_subscription_status(other.id, "device-1")
    assert other_status["canStartTrial"] is False
    other_fresh = await service.get_subscription_status(other.id, "device-2")
    assert other_fresh["canStartTrial"] is True


@pytest.mark.asyncio
async def test_cancelled_paid_subscription_keeps_access_until_expiry(test_db):
    user = await create_user(test_db)
    test_db.add(Subscription(
        user_id=user.id,
        provider=PROVIDER_REVENUECAT,
        external_id="txn-1",
        status=STATUS_CANCELLED,
        expires_at=utcnow() + timedelta(days=2, hours=1),
    ))
    await test_db.commit()

    status = await SubscriptionService(test_db).get_subscription_status(user.id)

    assert status["hasActiveSubscription"] is True
    assert status["subscriptionType"] == "paid"
    assert status["isCancelled"] is True
    assert status["daysRemaining"] == 3


@pytest.mark.asyncio
async def test_active_status_past_expiry_is_not_entitled(test_db):
    user = await create_user(test_db)
    test_db.add(Subscription(
        user_id=user.id,
        provider=PROVIDER_REVENUECAT,
        external_id="txn-1",
        status=STATUS_ACTIVE,
        expires_at=utcnow() - timedelta(minutes=5),
    ))
    await test_db.commit()

    status = await SubscriptionService(test_db).get_subscription_status(user.id)
    assert status["hasActiveSubscription"] is False
    assert status["isExpired"] is True


@pytest.mark.asyncio
async def test_expire_internal_trial(test_db):
    user = await create_user(test_db)
    service = SubscriptionService(test_db)
    assert await service.expire_internal_trial(user.id) is False

    trial = await TrialService(test_db).start_trial(user.id, "device-1")
    await test_db.commit()

    assert await service.expire_internal_trial(user.id) is True
    await test_db.commit()
    assert trial.status == STATUS_EXPIRED


@pytest.mark.asyncio
async def test_status_endpoints(async_client):
    _, headers = await signup(async_client, "status@example.com")

    response = await async_client.get("/api/subscription/status?deviceId=phone-9", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["canStartTrial"] is True

    await async_client.post("/api/subscription/start-trial", json={"deviceId": "phone-9"}, headers=headers)

    legacy = await async_client.get("/api/subscription/trial-status?deviceId=phone-9", headers=headers)
    data = legacy.json()["data"]
    assert data["hasActiveTrial"] is True
    assert data["trialStartDate"] is None
    assert data["trialEndDate"].endswith("Z")
    assert data["trialDaysRemaining"] == 7
    assert data["isTrialExpired"] is False
    assert data["canStartTrial"] is False

    eligibility = await async_client.get(
        "/api/subscription/device-eligibility?deviceId=phone-9", headers=headers
    )
    assert eligibility.json()["data"]["canStartTrial"] is False

    deactivate = await async_client.post("/api/subscription/deactivate-trial", headers=headers)
    assert deactivate.status_code == 200
    again = await async_client.post("/api/subscription/deactivate-trial", headers=headers)
    assert again.status_code == 404
    assert again.json()["error"]["code"] == "NO_ACTIVE_TRIAL"
