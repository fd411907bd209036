"""
SQLAlchemy metadata for Alembic migrations.

The application models are the single schema definition; Alembic compares
against them for autogenerate.
"""
from app.domain.models import Base

__all__ = ["Base"]
