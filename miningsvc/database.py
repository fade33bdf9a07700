"""Relational storage for OTP verification records."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Engine, Integer, String, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


class _Base(DeclarativeBase):
    pass


class OtpVerification(_Base):
    """An OTP issued to a referred user, with its expiry and verification state."""

    __tablename__ = "otp_verifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)
    referal: Mapped[str] = mapped_column(String(191), unique=True)
    otp: Mapped[str] = mapped_column(String(255), default="")
    expired_time: Mapped[Optional[datetime]] = mapped_column("expiredTime", DateTime, nullable=True)
    verified: Mapped[bool] = mapped_column(Boolean, default=False)


def start_database(url: str) -> Engine:
    """Connect to the database, create the schema and remember the engine."""
    global _engine
    parsed = make_url(url)
    options = {}
    if parsed.get_backend_name() != "sqlite":
        options = {"pool_size": 10, "max_overflow": 90, "pool_recycle": 300}
    engine = create_engine(parsed, **options)
    _Base.metadata.create_all(engine)
    _engine = engine
    logger.info("database connected")
    return engine


def get_engine() -> Optional[Engine]:
    """The engine set by start_database, or None before it has run."""
    return _engine