"""
Trial Service: one internal trial per device and per user
"""
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import (
    settings,
    PROVIDER_INTERNAL,
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    TIER_PRO,
)
from crud.subscription import SubscriptionRepository
from database_models import Subscription
from utils.date_utils import utcnow
from utils.errors import ApiError

logger = logging.getLogger(__name__)

SUBSCRIPTION_EXISTS = "SUBSCRIPTION_EXISTS"
DEVICE_TRIAL_USED = "DEVICE_TRIAL_USED"
USER_TRIAL_USED = "USER_TRIAL_USED"

_TRIAL_MESSAGES = {
    SUBSCRIPTION_EXISTS: "User already has a subscription",
    DEVICE_TRIAL_USED: "This device has already used a trial",
    USER_TRIAL_USED: "This user has already used a trial",
}


class TrialError(ApiError):
    """A trial precondition failed. Always a 409 conflict."""

    def __init__(self, code: str):
        super().__init__(_TRIAL_MESSAGES[code], 409, code)


class TrialService:
    """
    Service for managing internal trial subscriptions.
    Handles eligibility checks and trial start.
    """

    def __init__(self, db: AsyncSession, subscription_repo: Optional[SubscriptionRepository] = None):
        self.db = db
        self.subscription_repo = subscription_repo or SubscriptionRepository(db)

    async def can_start_trial(self, device_id: str, user_id: Optional[str] = None) -> bool:
        """
        Check whether a trial may be started.

        Returns False if the device has ever started a trial, or (when a
        user is given) if the user has. Read only.
        """
        if await self.subscription_repo.get_device_trial(device_id):
            return False
        if user_id and await self.subscription_repo.get_user_trial(user_id):
            return False
        return True

    async def check_device_eligibility(self, device_id: str) -> dict:
        """Device eligibility with the reason and the first user that used it."""
        existing = await self.subscription_repo.get_device_trial(device_id)
        if existing:
            return {
                "canStartTrial": False,
                "reason": "Device has already used a trial",
                "existingTrialUserId": existing.first_trial_user_id,
            }
        return {"canStartTrial": True}

    async def start_trial(self, user_id: str, device_id: str) -> Subscription:
        """
        Start an internal trial for a user on a device.

        The subscription and both registry rows are flushed together, so
        they commit (or roll back) with the request's transaction.

        Raises:
            TrialError: SUBSCRIPTION_EXISTS, DEVICE_TRIAL_USED or USER_TRIAL_USED
        """
        now = utcnow()

        entitled = await self.subscription_repo.get_entitled_for_user(
            user_id, (STATUS_ACTIVE, STATUS_CANCELLED), now=now
        )
        if entitled:
            raise TrialError(SUBSCRIPTION_EXISTS)

        if await self.subscription_repo.get_device_trial(device_id):
            raise TrialError(DEVICE_TRIAL_USED)

        if await self.subscription_repo.get_user_trial(user_id):
            raise TrialError(USER_TRIAL_USED)

        subscription = Subscription(
            user_id=user_id,
            provider=PROVIDER_INTERNAL,
            external_id=None,
            tier=TIER_PRO,
            status=STATUS_ACTIVE,
            expires_at=now + timedelta(days=settings.trial_period_days),
            created_at=now,
            updated_at=now,
        )
        self.db.add(subscription)
        self.subscription_repo.add_device_trial(device_id, user_id, now)
        self.subscription_repo.add_user_trial(user_id, now)

        try:
            await self.db.flush()
        except IntegrityError as e:
            # A concurrent request registered the same device or user first
            await self.db.rollback()
            code = DEVICE_TRIAL_USED if "device" in str(e.orig).lower() else USER_TRIAL_USED
            logger.error(
                f"Trial creation for user {user_id} on device {device_id} rolled back "
                f"after unique-constraint conflict ({code}): {e.orig}"
            )
            raise TrialError(code) from e

        logger.info(f"Trial started for user {user_id} on device {device_id}, expires {subscription.expires_at}")
        return subscription
