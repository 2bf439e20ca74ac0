"""OTP endpoints.

Endpoints
---------
POST /otpSend     → issue a code for a phone number
POST /otpVerify   → check a submitted code
OPTIONS (both)    → 204 for requests without CORS preflight headers
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator

from otp_auth.api.deps import get_otp_service
from otp_auth.errors import StoreFailure
from otp_auth.services.otp_service import OtpService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["otp"])


# ── Request / response models ────────────────────────────

class OTPSendRequest(BaseModel):
    phone: str | None = None


class OTPSendResponse(BaseModel):
    success: bool


class OTPVerifyRequest(BaseModel):
    phone: str | None = None
    otp: str | None = None

    @field_validator("otp", mode="before")
    @classmethod
    def _digits_as_text(cls, value):
        # Some clients send the code as a JSON number
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class OTPVerifyResponse(BaseModel):
    valid: bool
    reason: str | None = None


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


# ── Endpoints ────────────────────────────────────────────

@router.post("/otpSend", response_model=OTPSendResponse)
async def send_otp(
    background_tasks: BackgroundTasks,
    body: OTPSendRequest | None = None,
    service: OtpService = Depends(get_otp_service),
):
    """Issue a code for ``phone`` and schedule its delivery.

    Any earlier code for the same phone stops working immediately.
    An empty body is treated as ``{}``.
    """
    body = body or OTPSendRequest()
    phone = (body.phone or "").strip()
    if not phone:
        return _error(400, "phone is required")

    try:
        record = await service.issue(phone)
    except StoreFailure as exc:
        logger.exception("Error in /otpSend")
        return _error(500, "Failed to send OTP", str(exc))

    # Delivery runs after the response is sent and never fails the request
    background_tasks.add_task(service.deliver, record)
    return OTPSendResponse(success=True)


@router.post("/otpVerify", response_model=OTPVerifyResponse, response_model_exclude_none=True)
async def verify_otp(
    body: OTPVerifyRequest | None = None,
    service: OtpService = Depends(get_otp_service),
):
    """Check ``otp`` for ``phone``; every business outcome is a 200."""
    body = body or OTPVerifyRequest()
    phone = (body.phone or "").strip()
    if not phone or not body.otp:
        return _error(400, "phone and otp are required")

    try:
        outcome = await service.verify(phone, body.otp)
    except StoreFailure as exc:
        logger.exception("Error in /otpVerify")
        return _error(500, "Failed to verify OTP", str(exc))

    return OTPVerifyResponse(valid=outcome.is_valid, reason=outcome.reason)


@router.options("/otpSend", status_code=204)
@router.options("/otpVerify", status_code=204)
async def otp_options() -> Response:
    """Answer bare OPTIONS requests; CORS preflights are handled by the middleware."""
    return Response(status_code=204)
