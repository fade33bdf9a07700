"""Issuing and checking one-time passwords."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from .config import VERIFICATION_EXPIRED_TIME
from .models import OtpAuthenticationRequest, OtpVerificationRequest
from .repository import OtpRepository


class InvalidOtpError(Exception):
    """Raised when an OTP does not match or has expired."""


class OtpUsecase:
    """OTP rules on top of the repository."""

    def __init__(self, otp_repo: OtpRepository, clock: Callable[[], datetime] = datetime.now):
        self._repo = otp_repo
        self._clock = clock

    def otp_verification(self, request: OtpVerificationRequest, otp: str) -> None:
        """Store an OTP for the referal, valid for the configured number of minutes."""
        expired_time = self._clock() + timedelta(minutes=VERIFICATION_EXPIRED_TIME)
        self._repo.save_otp_verification(request.referal, otp, expired_time)

    def otp_authentication(self, request: OtpAuthenticationRequest) -> None:
        """Accept the OTP or raise InvalidOtpError."""
        if not self._repo.check_otp_verification(request.referal, request.otp, self._clock()):
            raise InvalidOtpError("Invalid otp or otp expired")