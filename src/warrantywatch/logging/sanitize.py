"""Contact masking for log output.

Phone numbers and email addresses identify end users, so only a
masked form is ever written to logs.
"""

from __future__ import annotations


def mask_phone(phone_number: str | None) -> str:
    """Keep only the last four digits: ``+15551234567`` -> ``****4567``."""
    if not phone_number or len(phone_number) < 4:
        return "****"
    return f"****{phone_number[-4:]}"


def mask_email(email: str | None) -> str:
    """Keep the first character of the local part and the domain."""
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"
