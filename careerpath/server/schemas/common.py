"""
Shared API schema pieces.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class CategoryCount(BaseModel):
    """Number of items in one category."""

    name: str
    count: int


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC; convert aware input accordingly."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
