from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from pydantic import BaseModel, ConfigDict, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Clock(BaseModel):
    """Source of creation timestamps for documents, entities and labels.

    Services take a clock so tests can pin timestamps.
    """

    model_config = ConfigDict(frozen=True)

    source: Callable[[], datetime] = utc_now

    def now(self) -> datetime:
        return self.check_aware(self.source())

    @staticmethod
    def check_aware(value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError("Clock value must be timezone-aware")
        return value


class FixedClock(Clock):
    """A clock that always returns the same instant."""

    instant: datetime

    @field_validator("instant")
    @classmethod
    def instant_must_be_timezone_aware(cls, value: datetime) -> datetime:
        return Clock.check_aware(value)

    def now(self) -> datetime:
        return self.instant
