from datetime import datetime

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from miningsvc.database import OtpVerification, start_database
from miningsvc.repository import OtpRepository

EXPIRY = datetime(2030, 1, 1, 12, 0)
BEFORE = datetime(2030, 1, 1, 11, 0)
AFTER = datetime(2030, 1, 1, 13, 0)


@pytest.fixture
def engine(tmp_path):
    eng = start_database(f"sqlite:///{tmp_path / 'repo.db'}")
    yield eng
    eng.dispose()


@pytest.fixture
def repo(engine):
    return OtpRepository(engine)


def _rows(engine):
    with Session(engine) as session:
        return list(session.scalars(select(OtpVerification)))


def test_valid_otp_is_verified(repo, engine):
    repo.save_otp_verification("0xuser", "otp1", EXPIRY)
    assert repo.check_otp_verification("0xuser", "otp1", BEFORE) is True
    assert _rows(engine)[0].verified is True


def test_wrong_otp_is_rejected(repo, engine):
    repo.save_otp_verification("0xuser", "otp1", EXPIRY)
    assert repo.check_otp_verification("0xuser", "other", BEFORE) is False
    assert _rows(engine)[0].verified is False


def test_expired_otp_is_rejected(repo):
    repo.save_otp_verification("0xuser", "otp1", EXPIRY)
    assert repo.check_otp_verification("0xuser", "otp1", AFTER) is False


def test_save_replaces_existing_record(repo, engine):
    repo.save_otp_verification("0xuser", "otp1", EXPIRY)
    repo.check_otp_verification("0xuser", "otp1", BEFORE)
    repo.save_otp_verification("0xuser", "otp2", AFTER)
    rows = _rows(engine)
    assert len(rows) == 1
    assert (rows[0].otp, rows[0].expired_time, rows[0].verified) == ("otp2", AFTER, False)
    assert repo.check_otp_verification("0xuser", "otp1", BEFORE) is False


def test_delete_removes_record(repo, engine):
    repo.save_otp_verification("0xuser", "otp1", EXPIRY)
    repo.delete_otp_verification("0xuser", "otp1")
    assert _rows(engine) == []
    assert repo.check_otp_verification("0xuser", "otp1", BEFORE) is False