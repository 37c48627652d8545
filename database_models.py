import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
)

from config.settings import (
    PROVIDER_INTERNAL,
    STATUS_ACTIVE,
    TIER_PRO,
)
from database import Base


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Account owning every other row. Only the session layer writes to it.
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Pet(Base):
    __tablename__ = "pets"
    __table_args__ = (Index("ix_pets_user_name", "user_id", "name"),)

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    breed = Column(String, nullable=True)
    birth_date = Column(DateTime(timezone=True), nullable=True)
    weight = Column(Float, nullable=True)
    gender = Column(String, nullable=True)  # male, female, other
    profile_photo = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_user_pet", "user_id", "pet_id"),
        Index("ix_expenses_user_date", "user_id", "date"),
        Index("ix_expenses_user_category", "user_id", "category"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    pet_id = Column(String(32), ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), default="TRY", nullable=False)
    payment_method = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    receipt_photo = Column(String, nullable=True)
    vendor = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class HealthRecord(Base):
    __tablename__ = "health_records"
    __table_args__ = (
        Index("ix_health_records_user_pet", "user_id", "pet_id"),
        Index("ix_health_records_user_date", "user_id", "date"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    pet_id = Column(String(32), ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)  # vaccination, checkup, surgery, ...
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    veterinarian = Column(String, nullable=True)
    clinic = Column(String, nullable=True)
    cost = Column(Float, nullable=True)
    next_due_date = Column(DateTime(timezone=True), nullable=True)
    attachments = Column(Text, nullable=True)
    vaccine_name = Column(String, nullable=True)
    vaccine_manufacturer = Column(String, nullable=True)
    batch_number = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (Index("ix_events_user_start", "user_id", "start_time"),)

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    pet_id = Column(String(32), ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    location = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    reminder = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class FeedingSchedule(Base):
    __tablename__ = "feeding_schedules"
    __table_args__ = (
        Index("ix_feeding_schedules_user_pet", "user_id", "pet_id"),
        Index("ix_feeding_schedules_user_active", "user_id", "is_active"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    pet_id = Column(String(32), ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True)
    time = Column(String(5), nullable=False)  # HH:MM
    food_type = Column(String, nullable=False)
    amount = Column(String, nullable=False)
    days = Column(String, nullable=False)  # comma separated weekday names
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class UserBudget(Base):
    """
    Single monthly budget per user covering the spending of all their pets.
    """
    __tablename__ = "user_budgets"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), default="TRY", nullable=False)
    alert_threshold = Column(Float, default=0.8, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class BudgetLimit(Base):
    """
    Spending cap for one pet over a calendar month or year, optionally
    restricted to a single expense category.
    """
    __tablename__ = "budget_limits"
    __table_args__ = (
        Index("ix_budget_limits_user_pet", "user_id", "pet_id"),
        Index("ix_budget_limits_user_category", "user_id", "category"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    pet_id = Column(String(32), ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String, nullable=True)  # None covers every category
    amount = Column(Float, nullable=False)
    currency = Column(String(3), default="TRY", nullable=False)
    period = Column(String, nullable=False)  # monthly, yearly
    alert_threshold = Column(Float, default=0.8, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Subscription(Base):
    """
    Current entitlement of a user: an internal trial or a RevenueCat
    subscription. A provider transition updates the row in place.
    """
    __tablename__ = "subscriptions"
    __table_args__ = (
        Index("ix_subscriptions_user_status", "user_id", "status"),
        Index("ix_subscriptions_user_expires", "user_id", "expires_at"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String, default=PROVIDER_INTERNAL, nullable=False)  # internal, revenuecat
    external_id = Column(String, nullable=True, index=True)  # RevenueCat transaction id
    tier = Column(String, default=TIER_PRO, nullable=False)
    status = Column(String, default=STATUS_ACTIVE, nullable=False)  # active, cancelled, expired
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class DeviceTrialRegistry(Base):
    """Insert-only record of every device that has started a trial."""
    __tablename__ = "device_trial_registry"

    id = Column(String(32), primary_key=True, default=generate_id)
    device_id = Column(String, unique=True, nullable=False, index=True)
    first_trial_user_id = Column(String(32), nullable=False, index=True)
    trial_used_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class UserTrialRegistry(Base):
    """Insert-only record of every user that has started a trial."""
    __tablename__ = "user_trial_registry"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), unique=True, nullable=False, index=True)
    trial_used_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class RevenueCatEvent(Base):
    """
    Append-only ledger of accepted RevenueCat webhook deliveries.
    """
    __tablename__ = "revenuecat_events"

    id = Column(String(32), primary_key=True, default=generate_id)
    event_id = Column(String(128), unique=True, nullable=False, index=True)
    event_type = Column(String(64), nullable=False)
    app_user_id = Column(String, nullable=True)
    external_id = Column(String, nullable=True)
    payload = Column(JSON, nullable=True)
    processed = Column(Boolean, default=False, nullable=False)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
