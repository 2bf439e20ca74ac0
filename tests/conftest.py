"""Shared fixtures — controllable clock, scripted codes, captured deliveries."""

from __future__ import annotations

from collections import deque
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from otp_auth.database.store import InMemoryRecordStore, SqlRecordStore
from otp_auth.models.otp import Base
from otp_auth.otp.generator import CodeGenerator
from otp_auth.services.delivery import DeliveryChannel

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class ScriptedGenerator(CodeGenerator):
    """Hands out queued codes first, then falls back to random ones."""

    def __init__(self) -> None:
        self._queued: deque[str] = deque()

    def queue(self, *codes: str) -> None:
        self._queued.extend(codes)

    def generate(self) -> str:
        if self._queued:
            return self._queued.popleft()
        return super().generate()


class RecordingDelivery(DeliveryChannel):
    """Keeps every dispatched ``(phone, code)`` pair instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def dispatch(self, phone: str, code: str) -> None:
        self.sent.append((phone, code))


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def codes() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest.fixture
def delivery() -> RecordingDelivery:
    return RecordingDelivery()


async def _sql_store():
    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine, SqlRecordStore(async_sessionmaker(engine, expire_on_commit=False))


async def _teardown(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request):
    """Every record store implementation, one test run each."""
    if request.param == "memory":
        yield InMemoryRecordStore()
        return
    engine, sql = await _sql_store()
    yield sql
    await _teardown(engine)
