"""Environment-driven configuration objects for the directory API."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///./destinations.db"


def _str_to_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"true", "1", "yes", "y"}


def normalize_database_url(url: str) -> str:
    """Point bare postgres URLs at the psycopg driver."""
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


@dataclass(slots=True)
class AuthConfig:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    token_ttl_minutes: int = 60


@dataclass(slots=True)
class StorageConfig:
    root: str
    public_url: str
    temp_dir: str
    max_image_mb: int = 5


@dataclass(slots=True)
class PaymentConfig:
    secret_key: str | None
    api_url: str = "https://api.stripe.com/v1"
    currency: str = "usd"


@dataclass(slots=True)
class OpenAIConfig:
    api_key: str | None
    model: str = "gpt-3.5-turbo"


@dataclass(slots=True)
class Settings:
    environment: str
    database_url: str
    redis_url: str | None
    auth: AuthConfig
    storage: StorageConfig
    payment: PaymentConfig
    openai: OpenAIConfig
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=list)

    @property
    def is_dev(self) -> bool:
        return self.environment in ("development", "dev", "local", "test")


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    environment = os.getenv("ENVIRONMENT", "production").lower()

    jwt_secret = os.getenv("JWT_SECRET", "")
    if not jwt_secret:
        if environment not in ("development", "dev", "local", "test"):
            raise ValueError("JWT_SECRET environment variable is not set")
        jwt_secret = "dev-secret-change-me"

    auth = AuthConfig(
        jwt_secret=jwt_secret,
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        token_ttl_minutes=int(os.getenv("JWT_TTL_MINUTES", "60")),
    )

    storage_root = os.getenv("STORAGE_ROOT", "./storage")
    storage = StorageConfig(
        root=storage_root,
        public_url=os.getenv("STORAGE_PUBLIC_URL", "http://localhost:8000/storage").rstrip("/"),
        temp_dir=os.getenv("TEMP_UPLOAD_DIR", os.path.join(storage_root, "tmp")),
        max_image_mb=int(os.getenv("MAX_IMAGE_MB", "5")),
    )

    payment = PaymentConfig(
        secret_key=os.getenv("STRIPE_SECRET_KEY") or None,
        api_url=os.getenv("STRIPE_API_URL", "https://api.stripe.com/v1").rstrip("/"),
        currency=os.getenv("PAYMENT_CURRENCY", "usd").lower(),
    )

    openai = OpenAIConfig(
        api_key=os.getenv("OPENAI_API_KEY") or None,
        model=os.getenv("OPENAI_MODEL", "gpt-3.5-turbo"),
    )

    cors_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]

    return Settings(
        environment=environment,
        database_url=normalize_database_url(os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)),
        redis_url=os.getenv("REDIS_URL") or None,
        auth=auth,
        storage=storage,
        payment=payment,
        openai=openai,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=cors_origins,
    )
