"""Interactive CLI simulator — issue and verify OTPs without the HTTP layer."""

import asyncio
from datetime import timedelta

from otp_auth.config import settings
from otp_auth.database.engine import build_engine, build_session_factory, init_db
from otp_auth.database.store import SqlRecordStore
from otp_auth.services.otp_service import OtpService

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"


async def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print(f"  🔐  {settings.app_name} — OTP Simulator")
    print(f"{'=' * 52}{RESET}\n")

    # ── Initialise the record store ──────────────────────
    engine = build_engine(settings.database_url)
    await init_db(engine)
    service = OtpService(
        SqlRecordStore(build_session_factory(engine)),
        ttl=timedelta(minutes=settings.otp_expiry_minutes),
        retention=timedelta(hours=settings.otp_retention_hours),
    )

    print(f"{DIM}Commands: 'send' issues a new code, anything else is verified as a code{RESET}")
    print(f"{DIM}          'switch' changes phone number, 'quit' exits{RESET}\n")

    phone = input(f"{YELLOW}Enter phone number to simulate: {RESET}").strip()
    if not phone:
        phone = "+911234567890"
    print(f"{DIM}Simulating as {phone}{RESET}\n")

    while True:
        try:
            user_input = input(f"{BLUE}{BOLD}You:{RESET} ").strip()
        except (KeyboardInterrupt, EOFError):
            print(f"\n{DIM}Goodbye!{RESET}")
            break

        if not user_input:
            continue

        if user_input.lower() == "quit":
            print(f"{DIM}Goodbye!{RESET}")
            break

        if user_input.lower() == "switch":
            phone = input(f"{YELLOW}New phone number: {RESET}").strip() or phone
            print(f"{DIM}Switched to {phone}{RESET}\n")
            continue

        if user_input.lower() == "send":
            record = await service.issue(phone)
            # Stands in for the SMS the user would receive
            print(
                f"{GREEN}{BOLD}SMS:{RESET} Your code is {BOLD}{record.code}{RESET} "
                f"{DIM}(valid until {record.expires_at:%H:%M:%S} UTC){RESET}\n"
            )
            continue

        outcome = await service.verify(phone, user_input)
        if outcome.is_valid:
            print(f"{GREEN}{BOLD}Service:{RESET} ✅ Code accepted\n")
        else:
            print(f"{RED}{BOLD}Service:{RESET} ❌ Rejected ({outcome.reason})\n")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
