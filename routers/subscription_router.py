"""
Subscription Router - trial, status and RevenueCat webhook endpoints
Webhook is defined FIRST; it authenticates with the shared secret, not a session
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from database import get_db
from database_models import User
from models.subscription import RevenueCatWebhook, StartTrialRequest
from services.revenuecat_service import SubscriptionReconciler, verify_webhook_authorization
from services.subscription_service import SubscriptionService, subscription_summary
from services.trial_service import TrialService
from utils.errors import NotFoundError, ValidationFailed
from utils.responses import success_response

logger = logging.getLogger(__name__)

subscription_router = APIRouter(prefix="/api/subscription", tags=["subscription"])


# WEBHOOK ENDPOINT - MUST BE DEFINED FIRST
@subscription_router.post("/webhook")
async def revenuecat_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Handle RevenueCat webhook events.

    The bearer secret is checked before the body is read. After that the
    endpoint always returns 200, because RevenueCat retries any non-2xx
    delivery; the outcome is reported in the body instead.
    """
    if not verify_webhook_authorization(request.headers.get("authorization")):
        logger.error("RevenueCat webhook authorization failed")
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    try:
        payload = await request.json()
        webhook = RevenueCatWebhook.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logger.error(f"Invalid RevenueCat webhook payload: {e}")
        return JSONResponse(
            status_code=200,
            content={"received": True, "processed": False, "error": "Invalid payload"}
        )

    try:
        result = await SubscriptionReconciler(db).apply(webhook.event, payload)
    except Exception as e:
        logger.error(f"RevenueCat webhook processing error: {e}", exc_info=True)
        await db.rollback()
        return JSONResponse(
            status_code=200,
            content={"received": True, "processed": False, "error": "Processing error"}
        )

    content = {"received": True, "processed": result.processed}
    if result.reason:
        content["reason"] = result.reason
    return JSONResponse(status_code=200, content=content)


@subscription_router.get("/status")
async def get_subscription_status(
    deviceId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Unified subscription status; the app uses this for every entitlement check."""
    status = await SubscriptionService(db).get_subscription_status(user.id, deviceId)
    return success_response(status)


@subscription_router.get("/trial-status")
async def get_trial_status(
    deviceId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Deprecated: kept for older app builds, use /status instead."""
    status = await SubscriptionService(db).get_trial_status(user.id, deviceId)
    return success_response(status)


@subscription_router.get("/device-eligibility")
async def get_device_eligibility(
    deviceId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not deviceId:
        raise ValidationFailed("Device ID is required", code="MISSING_DEVICE_ID")
    eligibility = await TrialService(db).check_device_eligibility(deviceId)
    return success_response(eligibility)


@subscription_router.post("/start-trial")
async def start_trial(
    body: StartTrialRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Start an internal trial for the current user.

    Returns 409 with SUBSCRIPTION_EXISTS, DEVICE_TRIAL_USED or USER_TRIAL_USED
    when the user or device is not eligible.
    """
    if not body.deviceId or not body.deviceId.strip():
        raise ValidationFailed("Device ID is required", code="MISSING_DEVICE_ID")

    subscription = await TrialService(db).start_trial(user.id, body.deviceId.strip())
    return success_response(
        {"success": True, "subscription": subscription_summary(subscription)},
        status=201,
    )


@subscription_router.post("/deactivate-trial")
async def deactivate_trial(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Deprecated: a RevenueCat purchase now converts the trial automatically."""
    if not await SubscriptionService(db).expire_internal_trial(user.id):
        raise NotFoundError("Active trial", code="NO_ACTIVE_TRIAL")
    return success_response({"success": True, "message": "Trial deactivated successfully"})
