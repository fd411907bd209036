"""
SQLAlchemy models for the directory store.

These models back both the running application and Alembic migrations.
Timestamps are stored as naive UTC.
"""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, relationship

from app.domain.value_objects import ImageState, PaymentStatus, UserRole, UserStatus


def utcnow() -> datetime:
    """Current UTC time without tzinfo, as stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class User(Base):
    """Account of any role."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.NORMAL.value)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    profile_img = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    business_profile = relationship(
        "BusinessProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    subscriptions = relationship(
        "Subscription", back_populates="user", cascade="all, delete-orphan"
    )
    images = relationship("Image", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_business(self) -> bool:
        return self.role == UserRole.BUSINESS.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_banned(self) -> bool:
        return self.status == UserStatus.BANNED.value


class Category(Base):
    """Destination category."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)

    profiles = relationship("BusinessProfile", back_populates="category")


class BusinessProfile(Base):
    """Public listing of a business account (a destination)."""

    __tablename__ = "business_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    business_name = Column(String(255), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    district = Column(String(255), nullable=True)
    opening_hour = Column(String(8), nullable=True)
    closing_hour = Column(String(8), nullable=True)
    main_img = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    counter_booking = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="business_profile")
    category = relationship("Category", back_populates="profiles")

    __table_args__ = (
        Index("ix_business_profiles_category_id", "category_id"),
        Index("ix_business_profiles_district", "district"),
    )


class Subscription(Base):
    """Paid plan of a business account."""

    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subscription_type = Column(String(20), nullable=False)
    start_date = Column(DateTime, nullable=False, default=utcnow)
    end_date = Column(DateTime, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    price = Column(Integer, nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_reference = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="subscriptions")

    __table_args__ = (
        Index("ix_subscriptions_business_user_id", "business_user_id"),
        # At most one active subscription per business account
        Index(
            "uq_subscriptions_one_active",
            "business_user_id",
            unique=True,
            postgresql_where=text("active"),
            sqlite_where=text("active = 1"),
        ),
    )


class Booking(Base):
    """Customer reservation of one slot."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    business_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    booking_date = Column(Date, nullable=False)
    booking_time = Column(String(5), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    customer = relationship("User", foreign_keys=[user_id])
    business = relationship("User", foreign_keys=[business_user_id])

    __table_args__ = (
        Index("ix_bookings_slot", "business_user_id", "booking_date", "booking_time"),
        Index("ix_bookings_user_id", "user_id"),
    )


class BookingSlot(Base):
    """Lockable counter row for one (business, date, time) slot."""

    __tablename__ = "booking_slots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    booking_date = Column(Date, nullable=False)
    booking_time = Column(String(5), nullable=False)
    reserved = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
            "business_user_id", "booking_date", "booking_time", name="uq_booking_slots_slot"
        ),
    )


class UserActivity(Base):
    """Ledger entry for a save, rate or review."""

    __tablename__ = "user_activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    business_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    activity_type = Column(String(20), nullable=False)
    activity_value = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_user_activities_user_id", "user_id"),
        Index("ix_user_activities_business_type", "business_user_id", "activity_type"),
        # save and rate are single-row per (user, business)
        Index(
            "uq_user_activities_single",
            "user_id",
            "business_user_id",
            "activity_type",
            unique=True,
            postgresql_where=text("activity_type IN ('save', 'rate')"),
            sqlite_where=text("activity_type IN ('save', 'rate')"),
        ),
    )


class SavedDestination(Base):
    """Bookmark of a destination by a user."""

    __tablename__ = "saved_destinations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    business_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    business = relationship("User", foreign_keys=[business_user_id])

    __table_args__ = (
        UniqueConstraint("user_id", "business_user_id", name="uq_saved_destinations_pair"),
    )


class Image(Base):
    """User image stored in object storage."""

    __tablename__ = "images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    path_name = Column(String(500), nullable=False)
    state = Column(String(20), nullable=False, default=ImageState.PENDING_UPLOAD.value)
    is_3d = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="images")

    __table_args__ = (Index("ix_images_user_state", "user_id", "state"),)


class RevokedToken(Base):
    """JWT ids invalidated by logout or refresh."""

    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, default=utcnow)
