"""
Trial Service for the 14-day free trial that every account starts with.

The trial window is derived from the account's creation timestamp on every
read. Nothing here touches the database: callers look up the account record
and pass its created_at in.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

TRIAL_DAYS = 14
ONE_DAY = timedelta(days=1)

Timestamp = Union[datetime, str]


def parse_timestamp(value: Timestamp) -> datetime:
    """
    Normalize a datetime or ISO-8601 string to an aware UTC datetime.

    Naive values are treated as UTC, which is how SQLite hands back the
    timestamps we stored. A trailing "Z" is accepted.

    Raises:
        ValueError: If a string is not a valid ISO-8601 timestamp
        TypeError: If value is neither a datetime nor a string
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        raise TypeError(f"Expected datetime or ISO-8601 string, got {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def ceil_days(delta: timedelta) -> int:
    """Whole days in delta, rounding any partial day up."""
    return -((-delta) // ONE_DAY)


@dataclass(frozen=True)
class TrialStatus:
    trial_start: datetime
    trial_end: datetime
    trial_length_days: int
    is_expired: bool
    days_remaining: int

    @property
    def is_trial(self) -> bool:
        return not self.is_expired

    def to_dict(self) -> dict:
        return {
            "trial_start": self.trial_start.isoformat(),
            "trial_end": self.trial_end.isoformat(),
            "trial_length_days": self.trial_length_days,
            "is_trial": self.is_trial,
            "is_expired": self.is_expired,
            "days_remaining": self.days_remaining,
        }


def compute_trial_status(
    trial_start: Timestamp,
    now: Optional[datetime] = None,
    trial_length_days: int = TRIAL_DAYS,
) -> TrialStatus:
    """
    Compute the trial state for an account created at trial_start.

    A trial is expired strictly after trial_end, so at the exact end instant
    the account still has access with zero days remaining. Any partial day
    left counts as a full day. If the clock reads earlier than trial_start
    the trial is treated as just started.

    Args:
        trial_start: Account creation time (datetime or ISO-8601 string)
        now: Current time, defaults to the wall clock (injectable for tests)
        trial_length_days: Length of the trial window in days

    Returns:
        TrialStatus for the given instant
    """
    start = parse_timestamp(trial_start)
    current = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)

    trial_end = start + timedelta(days=trial_length_days)
    is_expired = current > trial_end

    if is_expired:
        days_remaining = 0
    else:
        days_remaining = min(trial_length_days, max(0, ceil_days(trial_end - current)))

    return TrialStatus(
        trial_start=start,
        trial_end=trial_end,
        trial_length_days=trial_length_days,
        is_expired=is_expired,
        days_remaining=days_remaining,
    )
