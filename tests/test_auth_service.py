"""Tests for registration, login, tokens and subscription changes."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    UnauthorizedException,
    UpstreamException,
)
from app.domain.models import BusinessProfile, Subscription, User
from app.domain.models.requests import (
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    SubscriptionUpdateRequest,
)
from app.domain.value_objects import UserRole, UserStatus
from app.services import AuthService

TEST_PASSWORD = "secret123"


def business_payload(categories, **overrides) -> RegisterRequest:
    data = {
        "name": "Dana",
        "email": "dana@example.com",
        "password": TEST_PASSWORD,
        "role": "business",
        "business_name": "Sunset Hotel",
        "category_id": categories["Hotel"].id,
        "district": "Riverside",
        "latitude": 41.2,
        "longitude": 69.1,
        "opening_hour": "08:00",
        "closing_hour": "22:00",
        "subscription_type": "monthly",
        "payment_method": "pm_card_visa",
    }
    data.update(overrides)
    return RegisterRequest(**data)


@pytest.fixture()
def auth_service(db, token_service, payments):
    return AuthService(db, token_service, payments)


class TestRegisterRequest:
    def test_business_requires_business_fields(self):
        with pytest.raises(ValidationError):
            RegisterRequest(name="Eve", email="eve@example.com", password=TEST_PASSWORD, role="business")

    def test_business_location_and_hours_are_optional(self, categories):
        payload = RegisterRequest(
            name="Dana",
            email="dana@example.com",
            password=TEST_PASSWORD,
            role="business",
            business_name="Sunset Hotel",
            category_id=categories["Hotel"].id,
            subscription_type="monthly",
            payment_method="pm_card_visa",
        )

        assert payload.district is None
        assert payload.opening_hour is None

    def test_business_requires_plan_and_payment(self, categories):
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(
                name="Dana",
                email="dana@example.com",
                password=TEST_PASSWORD,
                role="business",
                business_name="Sunset Hotel",
                category_id=categories["Hotel"].id,
            )

        assert "subscription_type, payment_method" in str(exc_info.value)

    def test_admin_cannot_self_register(self):
        with pytest.raises(ValidationError):
            RegisterRequest(name="Eve", email="eve@example.com", password=TEST_PASSWORD, role="admin")

    def test_email_is_normalized(self):
        payload = RegisterRequest(name="Eve", email=" Eve@Example.COM ", password=TEST_PASSWORD)
        assert payload.email == "eve@example.com"

    def test_hours_must_be_ordered(self, categories):
        with pytest.raises(ValidationError):
            business_payload(categories, opening_hour="18:00", closing_hour="09:00")


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_normal_user(self, db, auth_service, payments):
        payload = RegisterRequest(name="Eve", email="eve@example.com", password=TEST_PASSWORD)

        data = await auth_service.register(payload)

        assert data["user"]["role"] == "normal"
        assert data["access_token"]
        assert "business_profile" not in data
        assert payments.charges == []

    @pytest.mark.asyncio
    async def test_register_business_charges_plan(self, db, auth_service, payments, categories):
        data = await auth_service.register(business_payload(categories))

        assert payments.charges == [{"amount": 1499, "payment_method": "pm_card_visa"}]
        assert data["business_profile"]["business_name"] == "Sunset Hotel"
        assert data["subscription"]["active"] is True
        assert data["subscription"]["payment_status"] == "paid"
        subscription = db.query(Subscription).one()
        assert subscription.payment_reference == "pi_test_1"

    @pytest.mark.asyncio
    async def test_register_minimal_business(self, db, auth_service, categories):
        payload = business_payload(
            categories, district=None, latitude=None, longitude=None, opening_hour=None, closing_hour=None
        )

        data = await auth_service.register(payload)

        profile = db.query(BusinessProfile).one()
        assert profile.district is None
        assert profile.opening_hour is None
        assert data["subscription"]["active"] is True

    @pytest.mark.asyncio
    async def test_yearly_plan_price(self, db, auth_service, payments, categories):
        await auth_service.register(business_payload(categories, subscription_type="yearly"))

        assert payments.charges[0]["amount"] == 14999
        subscription = db.query(Subscription).one()
        assert (subscription.end_date - subscription.start_date).days >= 365

    @pytest.mark.asyncio
    async def test_payment_failure_leaves_no_rows(self, db, auth_service, payments, categories):
        payments.error = "Your card was declined."

        with pytest.raises(UpstreamException) as exc_info:
            await auth_service.register(business_payload(categories))

        assert exc_info.value.message == "Your card was declined."
        assert db.query(User).count() == 0
        assert db.query(BusinessProfile).count() == 0
        assert db.query(Subscription).count() == 0

    @pytest.mark.asyncio
    async def test_duplicate_email(self, auth_service, make_user):
        make_user(name="Eve")

        with pytest.raises(ConflictException):
            await auth_service.register(
                RegisterRequest(name="Eve", email="eve@example.com", password=TEST_PASSWORD)
            )


class TestLogin:
    def test_login_normal_user(self, auth_service, make_user):
        make_user(name="Eve")

        data = auth_service.login(LoginRequest(email="eve@example.com", password=TEST_PASSWORD))

        assert data["user"]["email"] == "eve@example.com"
        assert data["token_type"] == "bearer"

    def test_wrong_password(self, auth_service, make_user):
        make_user(name="Eve")

        with pytest.raises(UnauthorizedException):
            auth_service.login(LoginRequest(email="eve@example.com", password="wrong-password"))

    def test_banned_user_rejected(self, auth_service, make_user):
        make_user(name="Eve", status=UserStatus.BANNED)

        with pytest.raises(ForbiddenException):
            auth_service.login(LoginRequest(email="eve@example.com", password=TEST_PASSWORD))

    def test_business_login_includes_profile(self, auth_service, make_business):
        make_business()

        data = auth_service.login(
            LoginRequest(email="blue.lagoon.owner@example.com", password=TEST_PASSWORD)
        )

        assert data["business_profile"]["business_name"] == "Blue Lagoon"
        assert data["subscription"]["status"] == "Active"

    def test_business_login_with_expired_plan(self, auth_service, make_business):
        make_business(subscription_days=-1)

        with pytest.raises(ForbiddenException):
            auth_service.login(
                LoginRequest(email="blue.lagoon.owner@example.com", password=TEST_PASSWORD)
            )

    def test_admin_login_requires_admin(self, auth_service, make_user):
        make_user(name="Eve")
        make_user(name="Root", role=UserRole.ADMIN)

        with pytest.raises(ForbiddenException):
            auth_service.admin_login(LoginRequest(email="eve@example.com", password=TEST_PASSWORD))
        data = auth_service.admin_login(LoginRequest(email="root@example.com", password=TEST_PASSWORD))
        assert data["user"]["role"] == "admin"


class TestTokens:
    def test_logout_revokes_token(self, auth_service, token_service, make_user):
        user = make_user()
        token = token_service.issue(user.id, user.role).access_token
        _, claims = auth_service.resolve_token(token)

        auth_service.logout(claims)

        with pytest.raises(UnauthorizedException):
            auth_service.resolve_token(token)

    def test_refresh_issues_new_token(self, auth_service, token_service, make_user):
        user = make_user()
        old = token_service.issue(user.id, user.role).access_token
        resolved, claims = auth_service.resolve_token(old)

        fresh = auth_service.refresh(resolved, claims)

        assert fresh["access_token"] != old
        with pytest.raises(UnauthorizedException):
            auth_service.resolve_token(old)
        assert auth_service.resolve_token(fresh["access_token"])[0].id == user.id

    def test_banned_token_rejected(self, db, auth_service, token_service, make_user):
        user = make_user()
        token = token_service.issue(user.id, user.role).access_token
        user.status = UserStatus.BANNED.value
        db.commit()

        with pytest.raises(ForbiddenException):
            auth_service.resolve_token(token)

    def test_token_for_deleted_user(self, auth_service, token_service):
        token = token_service.issue(9999, "normal").access_token

        with pytest.raises(UnauthorizedException):
            auth_service.resolve_token(token)


class TestProfileAndSubscription:
    def test_update_business_profile(self, auth_service, make_business, categories):
        owner = make_business()

        data = auth_service.update_profile(
            owner,
            ProfileUpdateRequest(
                name="New Owner", district="Harbor", category_id=categories["Entertainment"].id
            ),
        )

        assert data["user"]["name"] == "New Owner"
        assert data["business_profile"]["district"] == "Harbor"
        assert data["business_profile"]["category_name"] == "Entertainment"

    @pytest.mark.asyncio
    async def test_switch_subscription_keeps_single_active(self, db, auth_service, payments, make_business):
        owner = make_business()

        data = await auth_service.update_subscription(
            owner, SubscriptionUpdateRequest(subscription_type="yearly", payment_method="pm_card_visa")
        )

        assert data["subscription_type"] == "yearly"
        rows = db.query(Subscription).filter_by(business_user_id=owner.id).all()
        assert len(rows) == 2
        assert [row.active for row in rows].count(True) == 1

    @pytest.mark.asyncio
    async def test_failed_payment_keeps_current_plan(self, db, auth_service, payments, make_business):
        owner = make_business()
        payments.error = "Insufficient funds."

        with pytest.raises(UpstreamException):
            await auth_service.update_subscription(
                owner, SubscriptionUpdateRequest(subscription_type="yearly", payment_method="pm_x")
            )

        rows = db.query(Subscription).filter_by(business_user_id=owner.id).all()
        assert len(rows) == 1
        assert rows[0].active is True
