"""
RevenueCat Service
==================

Reconciles RevenueCat webhook events into the stored subscription state.

Every action is an unconditional assignment keyed by user id (upserts) or by
transaction id (status changes), so applying the same event twice leaves the
subscription exactly as applying it once. Deliveries are additionally
recorded in the ``revenuecat_events`` ledger; a delivery whose id was
already processed is acknowledged without being applied again.
"""

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import (
    settings,
    PROVIDER_REVENUECAT,
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    STATUS_EXPIRED,
    TIER_PRO,
)
from crud.subscription import SubscriptionRepository
from crud.user import UserRepository
from models.subscription import RevenueCatEventPayload
from utils.date_utils import from_epoch_ms

logger = logging.getLogger(__name__)

ANONYMOUS_PREFIX = "$RCAnonymousID:"

PURCHASE_EVENTS = {
    "INITIAL_PURCHASE",
    "RENEWAL",
    "UNCANCELLATION",
    "NON_RENEWING_PURCHASE",
    "PRODUCT_CHANGE",
}
CANCELLATION_EVENTS = {"CANCELLATION", "SUBSCRIPTION_PAUSED"}
EXPIRATION_EVENTS = {"EXPIRATION", "BILLING_ISSUE"}


@dataclass
class ReconcileResult:
    processed: bool
    reason: Optional[str] = None


def verify_webhook_authorization(authorization_header: Optional[str]) -> bool:
    """
    Check the ``Authorization: Bearer <secret>`` header RevenueCat sends.

    Fails closed when no secret is configured.
    """
    secret = settings.revenuecat_webhook_auth_key
    if not secret:
        logger.error("REVENUECAT_WEBHOOK_AUTH_KEY not configured")
        return False
    if not authorization_header or not authorization_header.startswith("Bearer "):
        return False
    token = authorization_header[len("Bearer "):]
    return hmac.compare_digest(token.encode(), secret.encode())


class SubscriptionReconciler:
    """
    Applies RevenueCat webhook events to the subscription store.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.subscription_repo = SubscriptionRepository(db)
        self.user_repo = UserRepository(db)

    async def find_user_by_app_user_id(self, app_user_id: Optional[str]) -> Optional[str]:
        """
        Map RevenueCat's app_user_id to an internal user id.

        The app logs in to RevenueCat with our user id, so the mapping is the
        identity. Anonymous RevenueCat ids never belong to a user here.
        """
        if not app_user_id or app_user_id.startswith(ANONYMOUS_PREFIX):
            return None
        user = await self.user_repo.get_user_by_id(app_user_id)
        return user.id if user else None

    async def apply(self, event: RevenueCatEventPayload, payload: Optional[dict] = None) -> ReconcileResult:
        """
        Apply one webhook event and record it in the ledger.

        Args:
            event: Parsed ``event`` object of the delivery
            payload: Raw delivery body, stored in the ledger for auditing

        Returns:
            ReconcileResult describing whether the event changed state
        """
        ledger_entry = None
        if event.id:
            ledger_entry = await self.subscription_repo.get_event(event.id)
            if ledger_entry and ledger_entry.processed:
                logger.info(f"RevenueCat event {event.id} ({event.type}) already processed, skipping")
                return ReconcileResult(processed=True, reason="Duplicate event")

        result = await self._dispatch(event)

        if event.id:
            if ledger_entry:
                ledger_entry.processed = result.processed
                ledger_entry.reason = result.reason
                await self.db.flush()
            else:
                await self.subscription_repo.record_event(
                    event_id=event.id,
                    event_type=event.type,
                    app_user_id=event.app_user_id,
                    external_id=event.external_id,
                    payload=payload,
                    processed=result.processed,
                    reason=result.reason,
                )

        logger.info(
            f"RevenueCat event {event.id} ({event.type}) for app user {event.app_user_id}: "
            f"processed={result.processed} reason={result.reason}"
        )
        return result

    async def _dispatch(self, event: RevenueCatEventPayload) -> ReconcileResult:
        if event.type == "TEST":
            return ReconcileResult(processed=True)

        if event.type not in PURCHASE_EVENTS | CANCELLATION_EVENTS | EXPIRATION_EVENTS:
            logger.warning(f"Unhandled RevenueCat event type: {event.type}")
            return ReconcileResult(processed=True, reason="Ignored event type")

        user_id = await self.find_user_by_app_user_id(event.app_user_id)
        if not user_id:
            return ReconcileResult(processed=False, reason="User not found")

        external_id = event.external_id
        expires_at = from_epoch_ms(event.expiration_at_ms)

        if event.type in PURCHASE_EVENTS:
            if not external_id:
                return ReconcileResult(processed=False, reason="Missing transaction identifier")
            if expires_at is None:
                return ReconcileResult(processed=False, reason="Missing expiration_at_ms")
            await self.upsert_revenuecat_subscription(user_id, external_id, expires_at)
            return ReconcileResult(processed=True)

        if event.type in CANCELLATION_EVENTS:
            return await self.update_subscription_status(external_id, STATUS_CANCELLED, expires_at)

        return await self.update_subscription_status(external_id, STATUS_EXPIRED)

    async def upsert_revenuecat_subscription(self, user_id: str, external_id: str, expires_at: datetime):
        """
        Point the user's current subscription at RevenueCat, creating one if
        the user has none. An internal trial is converted in place.
        """
        fields = {
            "provider": PROVIDER_REVENUECAT,
            "external_id": external_id,
            "status": STATUS_ACTIVE,
            "expires_at": expires_at,
        }
        subscription = await self.subscription_repo.get_current_for_user(user_id)
        if subscription:
            converted = subscription.provider != PROVIDER_REVENUECAT
            await self.subscription_repo.update(subscription, fields)
            if converted:
                logger.info(f"Converted subscription {subscription.id} of user {user_id} to RevenueCat")
            return subscription

        return await self.subscription_repo.create(user_id=user_id, tier=TIER_PRO, **fields)

    async def update_subscription_status(
        self,
        external_id: Optional[str],
        status: str,
        expires_at: Optional[datetime] = None,
    ) -> ReconcileResult:
        """Set the status (and, when given, the expiry) of every subscription with this transaction id."""
        if not external_id:
            return ReconcileResult(processed=False, reason="Missing transaction identifier")

        subscriptions = await self.subscription_repo.get_by_external_id(external_id)
        if not subscriptions:
            return ReconcileResult(processed=False, reason="Subscription not found")

        updates = {"status": status}
        if expires_at is not None:
            updates["expires_at"] = expires_at
        for subscription in subscriptions:
            await self.subscription_repo.update(subscription, updates)
        return ReconcileResult(processed=True)
