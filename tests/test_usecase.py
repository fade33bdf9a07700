from datetime import datetime, timedelta

import pytest

from miningsvc.config import VERIFICATION_EXPIRED_TIME
from miningsvc.database import start_database
from miningsvc.models import OtpAuthenticationRequest, OtpVerificationRequest
from miningsvc.repository import OtpRepository
from miningsvc.usecase import InvalidOtpError, OtpUsecase

START = datetime(2030, 5, 1, 9, 0)


class _Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def setup(tmp_path):
    engine = start_database(f"sqlite:///{tmp_path / 'use.db'}")
    clock = _Clock(START)
    yield OtpUsecase(OtpRepository(engine), clock=clock), clock
    engine.dispose()


def test_issued_otp_authenticates(setup):
    usecase, _ = setup
    usecase.otp_verification(OtpVerificationRequest("0xref"), "code")
    assert usecase.otp_authentication(OtpAuthenticationRequest("0xref", "code")) is None


def test_wrong_otp_raises(setup):
    usecase, _ = setup
    usecase.otp_verification(OtpVerificationRequest("0xref"), "code")
    with pytest.raises(InvalidOtpError, match="Invalid otp or otp expired"):
        usecase.otp_authentication(OtpAuthenticationRequest("0xref", "wrong"))


def test_otp_expires_after_window(setup):
    usecase, clock = setup
    usecase.otp_verification(OtpVerificationRequest("0xref"), "code")
    clock.now = START + timedelta(minutes=VERIFICATION_EXPIRED_TIME, seconds=1)
    with pytest.raises(InvalidOtpError):
        usecase.otp_authentication(OtpAuthenticationRequest("0xref", "code"))


def test_otp_valid_just_before_expiry(setup):
    usecase, clock = setup
    usecase.otp_verification(OtpVerificationRequest("0xref"), "code")
    clock.now = START + timedelta(minutes=VERIFICATION_EXPIRED_TIME, seconds=-1)
    assert usecase.otp_authentication(OtpAuthenticationRequest("0xref", "code")) is None


def test_unknown_referal_raises(setup):
    usecase, _ = setup
    with pytest.raises(InvalidOtpError):
        usecase.otp_authentication(OtpAuthenticationRequest("0xnobody", "code"))