"""Shared pytest fixtures: in-memory database, fakes for external services."""
from __future__ import annotations

import io
import os
from datetime import timedelta
from typing import Any

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["RATE_LIMIT_DISABLED"] = "1"

import pytest
from fastapi.testclient import TestClient
from PIL import Image as PILImage

from app.core.config import AuthConfig, OpenAIConfig, PaymentConfig, Settings, StorageConfig
from app.core.database import create_engine_from_url, create_session_factory, init_db, seed_categories
from app.core.exceptions import UpstreamException
from app.core.security import TokenService, hash_password
from app.core.storage import LocalObjectStorage, TempUploadStore
from app.domain.models import BusinessProfile, Category, Subscription, User, utcnow
from app.domain.value_objects import PaymentStatus, UserRole, UserStatus
from app.integrations.payment_service import PaymentResult

TEST_PASSWORD = "secret123"


class FakePaymentProcessor:
    """Records charges; set ``error`` to make the next charges fail."""

    def __init__(self) -> None:
        self.charges: list[dict[str, Any]] = []
        self.error: str | None = None

    async def create_intent(self, amount: int, payment_method: str, description: str = "") -> PaymentResult:
        if self.error:
            raise UpstreamException(self.error)
        self.charges.append({"amount": amount, "payment_method": payment_method})
        return PaymentResult(
            reference=f"pi_test_{len(self.charges)}", status="succeeded", amount=amount, currency="usd"
        )


class FakeTextGenerator:
    """Scripted text generator."""

    def __init__(self) -> None:
        self.respond_text = ""
        self.extract_result: str | None = None
        self.classify_result: str | None = None
        self.prompts: list[str] = []
        self.fail = False

    async def respond(self, prompt: str, system: str | None = None, max_tokens: int = 150) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise UpstreamException("Text generation failed: boom")
        return self.respond_text

    async def extract(self, text: str) -> str | None:
        return self.extract_result

    async def classify(self, text: str, candidates) -> str | None:
        return self.classify_result


class FakeJobQueue:
    def __init__(self) -> None:
        self.jobs: list[tuple[str, tuple]] = []

    async def enqueue(self, job_name: str, *args: Any) -> None:
        self.jobs.append((job_name, args))


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(TEST_PASSWORD)


@pytest.fixture()
def engine():
    engine = create_engine_from_url("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    factory = create_session_factory(engine)
    with factory() as session:
        seed_categories(session)
    return factory


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def categories(db) -> dict[str, Category]:
    return {c.name: c for c in db.query(Category).all()}


@pytest.fixture()
def make_user(db, password_hash):
    def _make_user(
        name: str = "Alice",
        email: str | None = None,
        role: UserRole = UserRole.NORMAL,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> User:
        user = User(
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}@example.com",
            password_hash=password_hash,
            role=role.value,
            status=status.value,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture()
def make_business(db, make_user, categories):
    def _make_business(
        business_name: str = "Blue Lagoon",
        category: str = "Restaurant",
        district: str = "Old Town",
        opening_hour: str = "09:00",
        closing_hour: str = "17:00",
        counter_booking: int = 2,
        subscription_days: int = 30,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> User:
        owner = make_user(name=f"{business_name} Owner", role=UserRole.BUSINESS, status=status)
        db.add(
            BusinessProfile(
                user_id=owner.id,
                business_name=business_name,
                category_id=categories[category].id,
                district=district,
                latitude=41.3,
                longitude=69.2,
                opening_hour=opening_hour,
                closing_hour=closing_hour,
                counter_booking=counter_booking,
            )
        )
        now = utcnow()
        db.add(
            Subscription(
                business_user_id=owner.id,
                subscription_type="monthly",
                start_date=now - timedelta(days=1),
                end_date=now + timedelta(days=subscription_days),
                active=True,
                price=1499,
                payment_status=PaymentStatus.PAID.value,
            )
        )
        db.commit()
        return owner

    return _make_business


@pytest.fixture()
def payments() -> FakePaymentProcessor:
    return FakePaymentProcessor()


@pytest.fixture()
def text_generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture()
def job_queue() -> FakeJobQueue:
    return FakeJobQueue()


@pytest.fixture()
def storage(tmp_path) -> LocalObjectStorage:
    return LocalObjectStorage(str(tmp_path / "storage"), "http://cdn.test/storage")


@pytest.fixture()
def temp_store(tmp_path) -> TempUploadStore:
    return TempUploadStore(str(tmp_path / "tmp"))


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        database_url="sqlite://",
        redis_url=None,
        auth=AuthConfig(jwt_secret="test-secret"),
        storage=StorageConfig(
            root=str(tmp_path / "storage"),
            public_url="http://cdn.test/storage",
            temp_dir=str(tmp_path / "tmp"),
        ),
        payment=PaymentConfig(secret_key="sk_test"),
        openai=OpenAIConfig(api_key=None),
    )


@pytest.fixture()
def token_service(settings) -> TokenService:
    return TokenService(settings.auth)


@pytest.fixture()
def client(settings, session_factory, payments, text_generator, job_queue, storage, temp_store):
    from app.api.api_server import create_api_app

    app = create_api_app(
        settings=settings,
        session_factory=session_factory,
        payments=payments,
        text_generator=text_generator,
        jobs=job_queue,
        storage=storage,
        temp_store=temp_store,
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def auth_headers(token_service):
    def _auth_headers(user: User) -> dict[str, str]:
        token = token_service.issue(user.id, user.role).access_token
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture()
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    PILImage.new("RGB", (64, 64), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()
