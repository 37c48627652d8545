"""
SubscriptionRepository: persistence for subscriptions, the two trial
registries and the RevenueCat event ledger.
"""

from datetime import datetime
from typing import Optional, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import (
    DeviceTrialRegistry,
    RevenueCatEvent,
    Subscription,
    UserTrialRegistry,
)
from utils.date_utils import ensure_utc, utcnow


class SubscriptionRepository:
    """
    Repository class for Subscription and trial-registry database operations.

    Writes are flushed, never committed; the request session owns the commit.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_current_for_user(self, user_id: str) -> Optional[Subscription]:
        """
        Return the user's current subscription: the latest by expiry,
        whatever its status.
        """
        result = await self.db.execute(
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(Subscription.expires_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_entitled_for_user(
        self,
        user_id: str,
        statuses: Iterable[str],
        now: Optional[datetime] = None,
    ) -> Optional[Subscription]:
        """
        Return the latest subscription of the user whose status is in
        ``statuses`` and whose expiry is still in the future.
        """
        result = await self.db.execute(
            select(Subscription)
            .where(
                Subscription.user_id == user_id,
                Subscription.status.in_(list(statuses)),
                Subscription.expires_at > (now or utcnow()),
            )
            .order_by(Subscription.expires_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_provider_status(self, user_id: str, provider: str, status: str) -> Optional[Subscription]:
        result = await self.db.execute(
            select(Subscription)
            .where(
                Subscription.user_id == user_id,
                Subscription.provider == provider,
                Subscription.status == status,
            )
            .order_by(Subscription.expires_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_external_id(self, external_id: str) -> list[Subscription]:
        result = await self.db.execute(
            select(Subscription).where(Subscription.external_id == external_id)
        )
        return list(result.scalars().all())

    async def create(self, **fields) -> Subscription:
        subscription = Subscription(**fields)
        self.db.add(subscription)
        await self.db.flush()
        return subscription

    async def update(self, subscription: Subscription, updates: dict) -> Subscription:
        """
        Apply ``updates`` as unconditional field assignments.

        ``updated_at`` only moves when a field actually changes, so replaying
        the same update leaves the row byte-for-byte identical.
        """
        changed = False
        for key, value in updates.items():
            current = getattr(subscription, key)
            if isinstance(current, datetime) and isinstance(value, datetime):
                same = ensure_utc(current) == ensure_utc(value)
            else:
                same = current == value
            if not same:
                setattr(subscription, key, value)
                changed = True
        if changed:
            subscription.updated_at = utcnow()
            await self.db.flush()
        return subscription

    # Trial registries

    async def get_device_trial(self, device_id: str) -> Optional[DeviceTrialRegistry]:
        result = await self.db.execute(
            select(DeviceTrialRegistry).where(DeviceTrialRegistry.device_id == device_id)
        )
        return result.scalar_one_or_none()

    async def get_user_trial(self, user_id: str) -> Optional[UserTrialRegistry]:
        result = await self.db.execute(
            select(UserTrialRegistry).where(UserTrialRegistry.user_id == user_id)
        )
        return result.scalar_one_or_none()

    def add_device_trial(self, device_id: str, user_id: str, used_at: datetime) -> DeviceTrialRegistry:
        entry = DeviceTrialRegistry(
            device_id=device_id,
            first_trial_user_id=user_id,
            trial_used_at=used_at,
        )
        self.db.add(entry)
        return entry

    def add_user_trial(self, user_id: str, used_at: datetime) -> UserTrialRegistry:
        entry = UserTrialRegistry(user_id=user_id, trial_used_at=used_at)
        self.db.add(entry)
        return entry

    # Webhook ledger

    async def get_event(self, event_id: str) -> Optional[RevenueCatEvent]:
        result = await self.db.execute(
            select(RevenueCatEvent).where(RevenueCatEvent.event_id == event_id)
        )
        return result.scalar_one_or_none()

    async def record_event(self, **fields) -> RevenueCatEvent:
        entry = RevenueCatEvent(**fields)
        self.db.add(entry)
        await self.db.flush()
        return entry
