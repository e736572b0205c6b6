import logging
from pathlib import Path

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from pickem.config import Config
from pickem.services import base
from pickem.services.base import BaseService
from pickem.utils.logger import setup_logger


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    async def instant(_delay):
        return None
    monkeypatch.setattr(base.asyncio, 'sleep', instant)


def locked():
    return OperationalError("SELECT 1", {}, Exception("database is locked"))


async def test_retries_operational_errors_until_success(db):
    service = BaseService(db.session_factory)
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise locked()
        return "ok"

    assert await service.execute_with_retry(flaky) == "ok"
    assert len(calls) == 3


async def test_gives_up_after_max_retries(db):
    service = BaseService(db.session_factory)
    calls = []

    async def always_locked():
        calls.append(1)
        raise locked()

    with pytest.raises(OperationalError):
        await service.execute_with_retry(always_locked, max_retries=2)
    assert len(calls) == 2


async def test_other_errors_are_not_retried(db):
    service = BaseService(db.session_factory)
    calls = []

    async def broken():
        calls.append(1)
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    with pytest.raises(IntegrityError):
        await service.execute_with_retry(broken)
    assert len(calls) == 1


def test_logger_writes_daily_file_under_configured_dir():
    logger = setup_logger("pickem.tests.file_logging")
    try:
        logger.info("leaderboard rebuilt")
        for handler in logger.handlers:
            handler.flush()

        log_files = list(Path(Config.LOG_DIR).glob("pickem_*.log"))
        assert len(log_files) == 1
        assert "leaderboard rebuilt" in log_files[0].read_text(encoding="utf-8")
        assert setup_logger("pickem.tests.file_logging") is logger
        assert len(logger.handlers) == 2
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
