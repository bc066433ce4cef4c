# checkout/domain/order_number.py
import secrets
import string
from datetime import datetime, timezone

from checkout.utils.settings import ORDER_NUMBER_PREFIX

_ALPHABET = string.ascii_letters + string.digits


def generate_order_number(now: datetime | None = None, prefix: str = ORDER_NUMBER_PREFIX) -> str:
    """MC-ORD-20250630214501aZ3k9Q: timestamp plus 6 random characters, unique only in practice."""
    now = now or datetime.now(timezone.utc)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(6))
    return f"{prefix}{now.strftime('%Y%m%d%H%M%S')}{suffix}"
