from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING
from uuid import UUID

from campus_events.config.settings import ReminderTierSettings, settings

if TYPE_CHECKING:
    from campus_events.models.user import User


class NotifierFailure(Exception):
    """A reminder could not be handed to the notifier; retried on the next scan."""


@dataclass(frozen=True)
class ScanWindow:
    """Half-open window ``(start, end]`` of event start times."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start < moment <= self.end


@dataclass(frozen=True)
class ReminderTier:
    name: str
    lookahead: timedelta
    scan_interval: timedelta
    window: timedelta
    description: str

    @classmethod
    def from_settings(cls, tier: ReminderTierSettings) -> "ReminderTier":
        return cls(
            name=tier.name,
            lookahead=timedelta(minutes=tier.lookahead_minutes),
            scan_interval=timedelta(minutes=tier.scan_interval_minutes),
            window=timedelta(minutes=tier.window_minutes or tier.scan_interval_minutes),
            description=tier.description,
        )

    def window_for(self, now: datetime) -> ScanWindow:
        end = now + self.lookahead
        return ScanWindow(start=end - self.window, end=end)


def load_tiers(tier_settings: list[ReminderTierSettings] | None = None) -> list[ReminderTier]:
    """Configured tiers, longest lookahead first."""
    if tier_settings is None:
        tier_settings = settings.reminder_tiers
    tiers = [ReminderTier.from_settings(tier) for tier in tier_settings]
    return sorted(tiers, key=lambda tier: tier.lookahead, reverse=True)


@dataclass(frozen=True)
class RecipientDTO:
    user_id: UUID
    email: str
    name: str
    is_active: bool = True
    email_reminders: bool = True
    reminder_tiers: tuple[str, ...] | None = None

    def wants_reminder(self, tier_name: str) -> bool:
        if not self.is_active or not self.email_reminders:
            return False
        return self.reminder_tiers is None or tier_name in self.reminder_tiers

    @classmethod
    def from_user(cls, user: "User") -> "RecipientDTO":
        return cls(
            user_id=user.uuid,
            email=user.email,
            name=user.name,
            is_active=bool(user.is_active),
            email_reminders=bool(user.email_reminders),
            reminder_tiers=tuple(user.reminder_tiers) if user.reminder_tiers is not None else None,
        )


@dataclass(frozen=True)
class ReminderTargetDTO:
    """An active registration as seen by the dispatcher."""

    registration_id: UUID
    recipient: RecipientDTO
    delivered_tiers: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class DispatchResult:
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    # opted out or inactive recipients
    excluded: int = 0

    def __add__(self, other: "DispatchResult") -> "DispatchResult":
        return DispatchResult(
            sent=self.sent + other.sent,
            skipped=self.skipped + other.skipped,
            failed=self.failed + other.failed,
            excluded=self.excluded + other.excluded,
        )


@dataclass(frozen=True)
class ScanResult:
    tier: str
    window: ScanWindow
    events: int
    dispatch: DispatchResult
    failed_events: int = 0


@dataclass(frozen=True)
class SweepResult:
    cutoff: datetime
    registrations: int
    markers_cleared: int


@dataclass(frozen=True)
class JobStatusDTO:
    name: str
    schedule: str
    runs: int
    last_run_at: datetime | None = None
    next_run_at: datetime | None = None
    last_error: str | None = None


@dataclass(frozen=True)
class SchedulerStatusDTO:
    is_running: bool
    jobs: list[JobStatusDTO] = field(default_factory=list)
