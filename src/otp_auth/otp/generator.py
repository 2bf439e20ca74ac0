"""Numeric OTP code generation."""

from __future__ import annotations

import secrets

CODE_MIN = 1000
CODE_MAX = 9999


class CodeGenerator:
    """Produces 4-digit decimal codes from the OS CSPRNG.

    Codes are drawn uniformly from ``CODE_MIN``..``CODE_MAX`` inclusive and
    returned as strings, since they are compared as opaque strings.
    """

    def generate(self) -> str:
        return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))
