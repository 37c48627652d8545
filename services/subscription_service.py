"""
Subscription Service - unified subscription status for the app
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import (
    PROVIDER_INTERNAL,
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    STATUS_EXPIRED,
)
from crud.subscription import SubscriptionRepository
from database_models import Subscription
from services.trial_service import TrialService
from utils.date_utils import days_remaining, ensure_utc, utcnow

logger = logging.getLogger(__name__)


def subscription_summary(subscription: Subscription) -> dict:
    return {
        "id": subscription.id,
        "provider": subscription.provider,
        "tier": subscription.tier,
        "status": subscription.status,
        "expiresAt": ensure_utc(subscription.expires_at),
    }


class SubscriptionService:
    """
    Read side of subscriptions: the single status view the app polls, plus
    the legacy trial view and manual trial deactivation.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.subscription_repo = SubscriptionRepository(db)
        self.trial_service = TrialService(db, self.subscription_repo)

    async def get_subscription_status(self, user_id: str, device_id: Optional[str] = None) -> dict:
        """
        Get unified subscription status for a user.

        A cancelled subscription keeps its entitlement until it expires.
        """
        now = utcnow()
        subscription = await self.subscription_repo.get_entitled_for_user(
            user_id, (STATUS_ACTIVE, STATUS_CANCELLED), now=now
        )

        if not subscription:
            previous = await self.subscription_repo.get_current_for_user(user_id)
            if device_id:
                can_start_trial = await self.trial_service.can_start_trial(device_id, user_id)
            else:
                can_start_trial = (
                    previous is None
                    and await self.subscription_repo.get_user_trial(user_id) is None
                )
            return {
                "hasActiveSubscription": False,
                "subscriptionType": None,
                "tier": None,
                "expiresAt": None,
                "daysRemaining": 0,
                "isExpired": previous is not None,
                "isCancelled": bool(previous and previous.status == STATUS_CANCELLED),
                "canStartTrial": can_start_trial,
                "provider": None,
            }

        expires_at = ensure_utc(subscription.expires_at)
        return {
            "hasActiveSubscription": True,
            "subscriptionType": "trial" if subscription.provider == PROVIDER_INTERNAL else "paid",
            "tier": subscription.tier,
            "expiresAt": expires_at,
            "daysRemaining": days_remaining(expires_at, now),
            "isExpired": False,
            "isCancelled": subscription.status == STATUS_CANCELLED,
            "canStartTrial": False,
            "provider": subscription.provider,
        }

    async def get_trial_status(self, user_id: str, device_id: Optional[str] = None) -> dict:
        """Status mapped to the pre-unification trial shape older app builds read."""
        status = await self.get_subscription_status(user_id, device_id)
        return {
            "hasActiveTrial": status["hasActiveSubscription"] and status["subscriptionType"] == "trial",
            "trialStartDate": None,
            "trialEndDate": status["expiresAt"],
            "trialDaysRemaining": status["daysRemaining"],
            "isTrialExpired": status["isExpired"],
            "canStartTrial": status["canStartTrial"],
        }

    async def expire_internal_trial(self, user_id: str) -> bool:
        """
        Expire the user's active internal trial.

        Returns:
            False if the user has no active internal trial
        """
        trial = await self.subscription_repo.get_by_provider_status(user_id, PROVIDER_INTERNAL, STATUS_ACTIVE)
        if not trial:
            return False
        await self.subscription_repo.update(trial, {"status": STATUS_EXPIRED})
        logger.info(f"Internal trial {trial.id} expired manually for user {user_id}")
        return True
