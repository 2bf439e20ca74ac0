"""Record stores — phone-keyed persistence for OTP records.

Every store offers the same four operations.  The one that matters for
correctness is :meth:`RecordStore.compare_and_mark_verified`, which must
check and flip the ``verified`` flag as a single indivisible step so that
concurrent verify / issue requests can never interleave between the read
and the write.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from otp_auth.errors import StoreFailure
from otp_auth.models.otp import OtpCode
from otp_auth.otp.records import OtpRecord, VerifyOutcome, classify

logger = logging.getLogger(__name__)

# Attempts before giving up when a re-issue keeps racing a verification
_MAX_VERIFY_ATTEMPTS = 3


class RecordStore(ABC):
    """Abstract phone → :class:`OtpRecord` mapping."""

    @abstractmethod
    async def get(self, phone: str) -> OtpRecord | None:
        """Return the current record for *phone*, or ``None``."""

    @abstractmethod
    async def put(self, record: OtpRecord) -> None:
        """Store *record*, unconditionally replacing any record for its phone."""

    @abstractmethod
    async def compare_and_mark_verified(
        self, phone: str, expected_code: str, now: datetime
    ) -> VerifyOutcome:
        """Atomically check *expected_code* and mark the record verified.

        The record is only mutated when the outcome is ``VALID``.
        """

    @abstractmethod
    async def purge_expired(self, before: datetime) -> int:
        """Delete records whose ``expires_at`` is earlier than *before*.

        Returns the number of records removed.
        """


class InMemoryRecordStore(RecordStore):
    """Dict-backed store for tests and single-process deployments.

    Each entry maps ``phone → OtpRecord``.  Records are immutable and
    swapped whole under an ``asyncio.Lock``.
    """

    def __init__(self) -> None:
        self._records: dict[str, OtpRecord] = {}
        self._lock = asyncio.Lock()

    async def get(self, phone: str) -> OtpRecord | None:
        async with self._lock:
            return self._records.get(phone)

    async def put(self, record: OtpRecord) -> None:
        async with self._lock:
            self._records[record.phone] = record

    async def compare_and_mark_verified(
        self, phone: str, expected_code: str, now: datetime
    ) -> VerifyOutcome:
        async with self._lock:
            record = self._records.get(phone)
            outcome = classify(record, expected_code, now)
            if outcome.is_valid and not record.verified:
                self._records[phone] = record.mark_verified()
            return outcome

    async def purge_expired(self, before: datetime) -> int:
        async with self._lock:
            stale = [phone for phone, rec in self._records.items() if rec.expires_at < before]
            for phone in stale:
                del self._records[phone]
            return len(stale)

    def __len__(self) -> int:
        return len(self._records)


class SqlRecordStore(RecordStore):
    """Store backed by the ``otps`` table through SQLAlchemy's async ORM.

    Atomicity comes from the database: the verification is a single
    conditional ``UPDATE`` and every write runs in its own transaction.
    Any SQLAlchemy error surfaces as :class:`StoreFailure`.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, phone: str) -> OtpRecord | None:
        try:
            async with self._session_factory() as session:
                return await self._load(session, phone)
        except SQLAlchemyError as exc:
            raise StoreFailure(f"Could not read OTP record for {phone}") from exc

    async def _load(self, session: AsyncSession, phone: str) -> OtpRecord | None:
        row = await session.scalar(select(OtpCode).where(OtpCode.phone == phone))
        return row.to_record() if row is not None else None

    async def put(self, record: OtpRecord) -> None:
        try:
            try:
                await self._upsert(record)
            except IntegrityError:
                # Another request inserted the same phone first; now it's an update.
                logger.debug("Insert race for %s, retrying as update", record.phone)
                await self._upsert(record)
        except SQLAlchemyError as exc:
            raise StoreFailure(f"Could not store OTP record for {record.phone}") from exc

    async def _upsert(self, record: OtpRecord) -> None:
        values = {
            "code": record.code,
            "created_at": record.created_at,
            "expires_at": record.expires_at,
            "verified": record.verified,
        }
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                update(OtpCode).where(OtpCode.phone == record.phone).values(**values)
            )
            if result.rowcount == 0:
                session.add(OtpCode(phone=record.phone, **values))

    async def compare_and_mark_verified(
        self, phone: str, expected_code: str, now: datetime
    ) -> VerifyOutcome:
        stmt = (
            update(OtpCode)
            .where(
                OtpCode.phone == phone,
                OtpCode.code == expected_code,
                OtpCode.expires_at > now,
            )
            .values(verified=True)
        )
        try:
            for _ in range(_MAX_VERIFY_ATTEMPTS):
                async with self._session_factory() as session, session.begin():
                    result = await session.execute(stmt)
                    if result.rowcount:
                        return VerifyOutcome.VALID
                    record = await self._load(session, phone)

                outcome = classify(record, expected_code, now)
                if not outcome.is_valid:
                    return outcome
                if record.verified:
                    # Some drivers only count rows whose values actually changed.
                    return VerifyOutcome.VALID
                # The record was replaced between the update and the read.
                logger.debug("OTP for %s changed during verification, retrying", phone)
        except SQLAlchemyError as exc:
            raise StoreFailure(f"Could not verify OTP record for {phone}") from exc
        raise StoreFailure(f"OTP record for {phone} kept changing during verification")

    async def purge_expired(self, before: datetime) -> int:
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(delete(OtpCode).where(OtpCode.expires_at < before))
                return result.rowcount
        except SQLAlchemyError as exc:
            raise StoreFailure("Could not purge expired OTP records") from exc
