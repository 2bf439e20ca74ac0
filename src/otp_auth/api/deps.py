"""FastAPI dependencies resolving the collaborators stored on ``app.state``."""

from fastapi import Request

from otp_auth.services.commerce_client import CommerceClient
from otp_auth.services.otp_service import OtpService


def get_otp_service(request: Request) -> OtpService:
    return request.app.state.otp_service


def get_commerce_client(request: Request) -> CommerceClient:
    return request.app.state.commerce_client
