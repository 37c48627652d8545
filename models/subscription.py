from typing import Optional

from pydantic import BaseModel, ConfigDict


class StartTrialRequest(BaseModel):
    deviceId: Optional[str] = None


class RevenueCatEventPayload(BaseModel):
    """
    The ``event`` object of a RevenueCat webhook delivery.
    Only the fields reconciliation reads are declared.
    """
    model_config = ConfigDict(extra="allow")

    type: str
    id: Optional[str] = None
    app_user_id: Optional[str] = None
    original_app_user_id: Optional[str] = None
    product_id: Optional[str] = None
    expiration_at_ms: Optional[int] = None
    purchased_at_ms: Optional[int] = None
    transaction_id: Optional[str] = None
    original_transaction_id: Optional[str] = None
    environment: Optional[str] = None
    store: Optional[str] = None

    @property
    def external_id(self) -> Optional[str]:
        """Stable transaction identifier: original transaction, else transaction, else event id."""
        return self.original_transaction_id or self.transaction_id or self.id


class RevenueCatWebhook(BaseModel):
    model_config = ConfigDict(extra="allow")

    event: RevenueCatEventPayload
    api_version: Optional[str] = None
