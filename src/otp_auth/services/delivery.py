"""Delivery channels — hand an issued code to whatever sends it to the user."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class DeliveryChannel(ABC):
    """Abstract sink for ``(phone, code)`` pairs."""

    @abstractmethod
    async def dispatch(self, phone: str, code: str) -> None:
        """Send *code* to *phone*.

        Implementations may raise on failure; the OTP service logs the
        error and leaves the stored record untouched.
        """


class LoggingDelivery(DeliveryChannel):
    """Development channel: writes the code to the log instead of sending an SMS.

    A real deployment would replace this with an SMS provider (Twilio,
    MSG91, ...) behind the same interface.
    """

    async def dispatch(self, phone: str, code: str) -> None:
        logger.info("OTP for %s: %s", phone, code)
