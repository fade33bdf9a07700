"""Persistence of OTP verification records."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import Engine, delete, select, update
from sqlalchemy.orm import sessionmaker

from .database import OtpVerification

logger = logging.getLogger(__name__)


class OtpRepository:
    """Stores, checks and removes OTPs keyed by referal address."""

    def __init__(self, engine: Engine):
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def save_otp_verification(self, referal: str, otp: str, expired_time: datetime) -> None:
        """Insert an OTP, replacing any earlier record for the same referal."""
        logger.debug("saving otp for %s, expires %s", referal, expired_time)
        with self._sessions.begin() as session:
            row = session.scalar(select(OtpVerification).where(OtpVerification.referal == referal))
            if row is None:
                session.add(
                    OtpVerification(referal=referal, otp=otp, expired_time=expired_time, verified=False)
                )
                return
            row.otp = otp
            row.expired_time = expired_time
            row.verified = False
            row.deleted_at = None
            row.updated_at = datetime.now()

    def check_otp_verification(self, referal: str, otp: str, now_time: datetime) -> bool:
        """Mark a matching unexpired OTP as verified; True if one was found."""
        with self._sessions.begin() as session:
            row_id = session.scalar(
                select(OtpVerification.id)
                .where(
                    OtpVerification.referal == referal,
                    OtpVerification.otp == otp,
                    OtpVerification.expired_time > now_time,
                    OtpVerification.deleted_at.is_(None),
                )
                .order_by(OtpVerification.id)
                .limit(1)
            )
            if row_id is None:
                return False
            result = session.execute(
                update(OtpVerification)
                .where(OtpVerification.id == row_id)
                .values(verified=True, updated_at=datetime.now())
            )
            return result.rowcount > 0

    def delete_otp_verification(self, referal: str, otp: str) -> None:
        """Permanently remove the record for a referal and OTP."""
        with self._sessions.begin() as session:
            session.execute(
                delete(OtpVerification).where(
                    OtpVerification.referal == referal, OtpVerification.otp == otp
                )
            )