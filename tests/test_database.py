from datetime import datetime

import pytest
from sqlalchemy import inspect, select
from sqlalchemy.exc import ArgumentError, IntegrityError
from sqlalchemy.orm import Session

from miningsvc.database import OtpVerification, get_engine, start_database


@pytest.fixture
def engine(tmp_path):
    eng = start_database(f"sqlite:///{tmp_path / 'otp.db'}")
    yield eng
    eng.dispose()


def test_start_sets_engine(engine):
    assert get_engine() is engine


def test_schema_has_table_and_columns(engine):
    inspector = inspect(engine)
    assert "otp_verifications" in inspector.get_table_names()
    columns = {c["name"] for c in inspector.get_columns("otp_verifications")}
    assert {"referal", "otp", "expiredTime", "verified", "deleted_at"} <= columns


def test_verified_defaults_false(engine):
    with Session(engine) as session:
        session.add(OtpVerification(referal="0xabc", otp="1", expired_time=datetime(2030, 1, 1)))
        session.commit()
        row = session.scalar(select(OtpVerification))
        assert row.verified is False
        assert row.created_at is not None


def test_referal_is_unique(engine):
    with Session(engine) as session:
        session.add(OtpVerification(referal="0xabc", otp="1"))
        session.add(OtpVerification(referal="0xabc", otp="2"))
        with pytest.raises(IntegrityError):
            session.commit()


def test_invalid_url_raises():
    with pytest.raises(ArgumentError):
        start_database("not a database url")