"""Invoice number formats"""

import secrets
import time
from datetime import datetime
from typing import Optional

DEFAULT_PREFIX = "INV"


def format_invoice_number(year: int, sequence: int, prefix: str = DEFAULT_PREFIX) -> str:
    """Primary, human-readable form: INV-YYYY-NNNN"""
    return f"{prefix}-{year}-{sequence:04d}"


def fallback_invoice_number(prefix: str = DEFAULT_PREFIX, now: Optional[datetime] = None) -> str:
    """
    Timestamp-derived number used when sequencing is unavailable

    Milliseconds alone repeat under concurrent creation, so a random suffix
    is appended: INV-1718000000000-3FA9C1.
    """
    millis = int(now.timestamp() * 1000) if now else int(time.time() * 1000)
    return f"{prefix}-{millis}-{secrets.token_hex(3).upper()}"
