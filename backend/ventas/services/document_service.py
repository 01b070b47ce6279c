# Overview: Sale document numbering.

from __future__ import annotations

from datetime import datetime

SALE_PREFIX = "V"


def generate_sale_number(now: datetime | None = None) -> str:
    """
    Sale number: "V" + YY + MM + DD + last 4 digits of epoch milliseconds.

    11 characters, derived from the clock only. There is no sequence and no
    collision check, so two sales in the same day whose timestamps share the
    last four millisecond digits get the same number.
    """
    now = now or datetime.now()
    millis = str(int(now.timestamp() * 1000))
    return f"{SALE_PREFIX}{now:%y%m%d}{millis[-4:]}"
