"""SQLAlchemy model for stored OTP records."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from otp_auth.otp.records import OtpRecord


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class OtpCode(Base):
    """Row holding the current OTP for a phone number.

    The phone number is the primary key, so a phone can never have more
    than one outstanding code.
    """

    __tablename__ = "otps"

    phone: Mapped[str] = mapped_column(
        String(32), primary_key=True, doc="E.164 phone number the code was issued to"
    )
    code: Mapped[str] = mapped_column(String(8), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (Index("ix_otps_expires_at", "expires_at"),)

    def to_record(self) -> OtpRecord:
        return OtpRecord(
            phone=self.phone,
            code=self.code,
            created_at=_as_utc(self.created_at),
            expires_at=_as_utc(self.expires_at),
            verified=self.verified,
        )

    def __repr__(self) -> str:
        return f"<OtpCode phone={self.phone!r} expires_at={self.expires_at!s} verified={self.verified}>"
