"""Human-readable document numbers."""

import uuid
from datetime import date


def sequential(prefix: str, existing: int, start: int = 1001) -> str:
    """INV-1001, ORD-1002, ...: the next number after ``existing`` documents."""
    return f"{prefix}-{existing + start}"


def yearly(prefix: str, year: int, existing: int, start: int = 1001) -> str:
    """LOAD-2024-1001 style numbers."""
    return f"{prefix}-{year}-{existing + start}"


def daily(prefix: str, day: date, existing: int) -> str:
    """GP-20240131-1 style numbers, counted within the day."""
    return f"{prefix}-{day:%Y%m%d}-{existing + 1}"


def unique(prefix: str, day: date | None = None) -> str:
    """Collision-free reference for ledger rows (TXN-, DEP-, RET-, DMG-)."""
    day = day or date.today()
    return f"{prefix}-{day:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"
