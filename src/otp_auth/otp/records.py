"""OTP record value object and verification outcomes."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from datetime import datetime


@dataclass(frozen=True)
class OtpRecord:
    """The single live OTP for one phone number.

    Instances are immutable; a state change (e.g. marking the record
    verified) produces a new instance so a reader never sees a mix of
    old and new fields.
    """

    phone: str
    code: str
    created_at: datetime
    expires_at: datetime
    verified: bool = False

    def __post_init__(self) -> None:
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be later than created_at")

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def mark_verified(self) -> OtpRecord:
        return replace(self, verified=True)


class VerifyOutcome(enum.Enum):
    """Result of checking a submitted code against the stored record.

    The enum value doubles as the ``reason`` reported to clients.
    """

    VALID = "valid"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    MISMATCH = "mismatch"

    @property
    def is_valid(self) -> bool:
        return self is VerifyOutcome.VALID

    @property
    def reason(self) -> str | None:
        """Failure reason, or ``None`` for a successful verification."""
        return None if self.is_valid else self.value


def classify(record: OtpRecord | None, submitted_code: str, now: datetime) -> VerifyOutcome:
    """Evaluate *submitted_code* against *record* without mutating anything.

    Checks run in a fixed order: existence, then expiry, then code match.
    An expired record with a wrong code is therefore ``EXPIRED``.
    """
    if record is None:
        return VerifyOutcome.NOT_FOUND
    if record.is_expired(now):
        return VerifyOutcome.EXPIRED
    if record.code != submitted_code:
        return VerifyOutcome.MISMATCH
    return VerifyOutcome.VALID
