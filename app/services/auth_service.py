"""Account service: registration, login, tokens, profile and subscription edits."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.async_db import run_sync
from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    UnauthorizedException,
    ValidationException,
)
from app.core.security import IssuedToken, TokenClaims, TokenService, hash_password, verify_password
from app.core.utils import add_months
from app.domain.models import BusinessProfile, Subscription, User, utcnow
from app.domain.models.requests import (
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    SubscriptionUpdateRequest,
)
from app.domain.value_objects import PaymentStatus, SubscriptionType, UserRole, UserStatus
from app.integrations.payment_service import PaymentProcessor, PaymentResult
from app.repositories import BusinessRepository, SubscriptionRepository, UserRepository

from .destination_service import serialize_profile
from .subscription_gate import SubscriptionGate

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "The email has already been taken."


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "status": user.status,
        "profile_img": user.profile_img,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def serialize_subscription(subscription: Subscription) -> dict:
    return {
        "id": subscription.id,
        "subscription_type": subscription.subscription_type,
        "start_date": subscription.start_date.isoformat(),
        "end_date": subscription.end_date.isoformat(),
        "active": bool(subscription.active),
        "status": "Active" if subscription.active else "Inactive",
        "price": subscription.price,
        "payment_status": subscription.payment_status,
    }


def build_subscription(
    business_user_id: int, plan: SubscriptionType, payment: PaymentResult
) -> Subscription:
    start = utcnow()
    end = add_months(start, 1 if plan == SubscriptionType.MONTHLY else 12)
    return Subscription(
        business_user_id=business_user_id,
        subscription_type=plan.value,
        start_date=start,
        end_date=end,
        active=True,
        price=plan.price_cents,
        payment_status=PaymentStatus.PAID.value,
        payment_reference=payment.reference,
    )


class AuthService:
    """Accounts and access tokens.

    Payment happens before any row is written so a declined charge leaves no
    partial account behind.
    """

    def __init__(
        self,
        session: Session,
        tokens: TokenService,
        payments: PaymentProcessor | None = None,
    ) -> None:
        self.session = session
        self.tokens = tokens
        self.payments = payments
        self.users = UserRepository(session)
        self.businesses = BusinessRepository(session)
        self.subscriptions = SubscriptionRepository(session)

    # Registration

    def _check_registration(self, payload: RegisterRequest) -> None:
        if self.users.email_exists(payload.email):
            raise ConflictException(EMAIL_TAKEN)
        if payload.role == UserRole.BUSINESS:
            self._check_category(payload.category_id)

    def _check_category(self, category_id: int | None) -> None:
        if category_id is not None and self.businesses.get_category(category_id) is None:
            raise ValidationException("The selected category is invalid.")

    async def _charge(self, plan: SubscriptionType, payment_method: str, email: str) -> PaymentResult:
        if self.payments is None:
            raise ValidationException("Payments are not available.")
        return await self.payments.create_intent(
            amount=plan.price_cents,
            payment_method=payment_method,
            description=f"{plan.value} subscription for {email}",
        )

    def _create_account(self, payload: RegisterRequest, payment: PaymentResult | None) -> dict:
        user = User(
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password),
            role=payload.role.value,
            status=UserStatus.ACTIVE.value,
            profile_img=payload.profile_img,
        )
        self.session.add(user)
        try:
            self.users.flush()
            if payload.role == UserRole.BUSINESS:
                self.session.add(BusinessProfile(user_id=user.id, **payload.business_updates()))
                self.session.add(build_subscription(user.id, payload.subscription_type, payment))
            self.users.commit()
        except IntegrityError as e:
            self.users.rollback()
            raise ConflictException(EMAIL_TAKEN) from e

        logger.info(f"Registered {user.role} user {user.id}")
        return self._session_payload(user, self.tokens.issue(user.id, user.role))

    async def register(self, payload: RegisterRequest) -> dict:
        await run_sync(self._check_registration, payload)
        payment = None
        if payload.role == UserRole.BUSINESS:
            payment = await self._charge(payload.subscription_type, payload.payment_method, payload.email)
        return await run_sync(self._create_account, payload, payment)

    # Login / tokens

    def _session_payload(self, user: User, token: IssuedToken) -> dict[str, Any]:
        data: dict[str, Any] = {"user": serialize_user(user), **token.as_dict()}
        if user.is_business:
            profile = self.businesses.get_profile(user.id)
            subscription = self.subscriptions.get_current(user.id)
            data["business_profile"] = serialize_profile(profile) if profile else None
            data["subscription"] = serialize_subscription(subscription) if subscription else None
        return data

    def _authenticate(self, payload: LoginRequest) -> User:
        user = self.users.get_by_email(payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            raise UnauthorizedException()
        if user.is_banned:
            raise ForbiddenException("Your account has been banned.")
        return user

    def login(self, payload: LoginRequest) -> dict:
        """Issue a token; business accounts must also pass the subscription gate."""
        user = self._authenticate(payload)
        if user.is_business:
            SubscriptionGate(self.session).check(user)
        logger.info(f"User {user.id} logged in")
        return self._session_payload(user, self.tokens.issue(user.id, user.role))

    def admin_login(self, payload: LoginRequest) -> dict:
        user = self._authenticate(payload)
        if not user.is_admin:
            raise ForbiddenException("Access denied. Admins only.")
        return self._session_payload(user, self.tokens.issue(user.id, user.role))

    def resolve_token(self, token: str) -> tuple[User, TokenClaims]:
        """Decode a bearer token into its (active, non-revoked) user.

        Raises:
            UnauthorizedException: Invalid, revoked or orphaned token
            ForbiddenException: Account banned
        """
        claims = self.tokens.decode(token)
        if self.users.is_token_revoked(claims.jti):
            raise UnauthorizedException()
        user = self.users.get_user(claims.user_id)
        if user is None:
            raise UnauthorizedException()
        if user.is_banned:
            raise ForbiddenException("Your account has been banned.")
        return user, claims

    def me(self, user: User) -> dict:
        data: dict[str, Any] = {"user": serialize_user(user)}
        if user.is_business:
            profile = self.businesses.get_profile(user.id)
            subscription = self.subscriptions.get_current(user.id)
            data["business_profile"] = serialize_profile(profile) if profile else None
            data["subscription"] = serialize_subscription(subscription) if subscription else None
        return data

    def logout(self, claims: TokenClaims) -> None:
        self.users.revoke_token(claims.jti, claims.expires_at)
        self.users.commit()
        logger.info(f"User {claims.user_id} logged out")

    def refresh(self, user: User, claims: TokenClaims) -> dict:
        """Revoke the presented token and issue a fresh one."""
        self.users.revoke_token(claims.jti, claims.expires_at)
        self.users.commit()
        return self.tokens.issue(user.id, user.role).as_dict()

    # Profile

    def update_profile(self, user: User, payload: ProfileUpdateRequest) -> dict:
        user.name = payload.name
        if payload.profile_img is not None:
            user.profile_img = payload.profile_img

        if user.is_business:
            updates = payload.business_updates()
            self._check_category(updates.get("category_id"))
            profile = self.businesses.get_profile_or_raise(user.id)
            for field_name, value in updates.items():
                setattr(profile, field_name, value)
            self._check_hours(profile)
            self.users.commit()
            self.session.refresh(profile)
        else:
            self.users.commit()
        return self.me(user)

    @staticmethod
    def _check_hours(profile: BusinessProfile) -> None:
        if profile.opening_hour and profile.closing_hour and profile.opening_hour >= profile.closing_hour:
            raise ValidationException("closing_hour must be after opening_hour")

    # Subscription

    def _swap_subscription(
        self, user: User, plan: SubscriptionType, payment: PaymentResult
    ) -> Subscription:
        try:
            self.subscriptions.deactivate_all(user.id)
            subscription = build_subscription(user.id, plan, payment)
            self.session.add(subscription)
            self.subscriptions.commit()
        except IntegrityError as e:
            self.subscriptions.rollback()
            raise ConflictException("Subscription changed concurrently, please retry.") from e
        logger.info(f"User {user.id} switched to {plan.value} subscription {subscription.id}")
        return subscription

    async def update_subscription(self, user: User, payload: SubscriptionUpdateRequest) -> dict:
        """Charge the new plan, then atomically replace the active subscription."""
        payment = await self._charge(payload.subscription_type, payload.payment_method, user.email)
        subscription = await run_sync(self._swap_subscription, user, payload.subscription_type, payment)
        return serialize_subscription(subscription)
