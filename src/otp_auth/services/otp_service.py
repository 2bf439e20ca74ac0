"""OTP service — issues codes for phone numbers and verifies submissions.

The service owns no state of its own; everything shared lives in the
injected :class:`~otp_auth.database.store.RecordStore`.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from otp_auth.database.store import RecordStore
from otp_auth.errors import OtpValidationError
from otp_auth.otp.clock import Clock, SystemClock
from otp_auth.otp.generator import CodeGenerator
from otp_auth.otp.records import OtpRecord, VerifyOutcome
from otp_auth.services.delivery import DeliveryChannel, LoggingDelivery

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=5)
DEFAULT_RETENTION = timedelta(hours=24)


class OtpService:
    """Issue / verify state machine over one record per phone.

    Parameters
    ----------
    store:
        Where records live.  Must provide an atomic conditional update.
    ttl:
        How long an issued code stays valid.
    retention:
        How long an expired record is kept before :meth:`purge_stale`
        removes it.
    generator, clock, delivery:
        Collaborators; default to the production implementations.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        ttl: timedelta = DEFAULT_TTL,
        retention: timedelta = DEFAULT_RETENTION,
        generator: CodeGenerator | None = None,
        clock: Clock | None = None,
        delivery: DeliveryChannel | None = None,
    ) -> None:
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")
        self._store = store
        self._ttl = ttl
        self._retention = retention
        self._generator = generator or CodeGenerator()
        self._clock = clock or SystemClock()
        self._delivery = delivery or LoggingDelivery()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def issue(self, phone: str) -> OtpRecord:
        """Generate a fresh code for *phone*, replacing any earlier one."""
        if not phone or not phone.strip():
            raise OtpValidationError("phone is required")

        # Evict first: a failure here must not cost the phone its current code
        purged = await self.purge_stale()
        if purged:
            logger.debug("Purged %d stale OTP record(s)", purged)

        created_at = self._clock.now()
        record = OtpRecord(
            phone=phone,
            code=self._generator.generate(),
            created_at=created_at,
            expires_at=created_at + self._ttl,
        )
        await self._store.put(record)
        logger.info("OTP issued for %s (expires %s)", phone, record.expires_at.isoformat())
        return record

    async def verify(self, phone: str, code: str) -> VerifyOutcome:
        """Check *code* against the stored record for *phone*.

        Returns a :class:`VerifyOutcome`; only store problems raise.
        A correct, unexpired code keeps verifying until it expires.
        """
        if not phone or not phone.strip():
            raise OtpValidationError("phone is required")
        if not code:
            raise OtpValidationError("otp is required")

        outcome = await self._store.compare_and_mark_verified(phone, code, self._clock.now())
        if outcome.is_valid:
            logger.info("OTP verified for %s", phone)
        else:
            logger.info("OTP verification failed for %s: %s", phone, outcome.reason)
        return outcome

    async def deliver(self, record: OtpRecord) -> None:
        """Pass an issued code to the delivery channel.

        A failed delivery never invalidates the stored record; the user can
        simply request a new code.
        """
        try:
            await self._delivery.dispatch(record.phone, record.code)
        except Exception:
            logger.exception("OTP delivery to %s failed", record.phone)

    async def purge_stale(self) -> int:
        """Evict records that expired more than ``retention`` ago."""
        return await self._store.purge_expired(self._clock.now() - self._retention)
