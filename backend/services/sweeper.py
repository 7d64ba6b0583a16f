"""Moves events whose end time has passed to ``completed``.

``process_expired_events`` is the sweep itself; ``EventCompletionSweeper``
throttles it to once per interval per process and makes concurrent callers
share the sweep already in flight.
"""
import asyncio
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from config import SWEEP_INTERVAL_SECONDS
from models.enums import NotificationType
from repositories.event import EventRepository
from repositories.notification import NotificationRepository
from repositories.user import UserProfileRepository
from utils.dates import as_utc, utc_now
from utils.duration import parse_duration_hours, parse_duration_minutes




logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    completed_event_ids: list[int] = field(default_factory=list)
    skipped_event_ids: list[int] = field(default_factory=list)
    processed_at: datetime = field(default_factory=utc_now)
    dry_run: bool = False

    @property
    def completed_count(self) -> int:
        return len(self.completed_event_ids)


def event_end(event) -> datetime:
    return as_utc(event.date) + timedelta(hours=parse_duration_hours(event.duration))


def event_has_ended(event, now: datetime) -> bool:
    return event_end(event) <= now


async def record_completion_impact(events) -> None:
    """Organization impact counters and a recap invitation per completed event.

    Errors are logged and swallowed: the events are already completed.
    """
    per_organization = defaultdict(lambda: {"events": 0, "volunteers": 0, "minutes": 0})
    for event in events:
        aggregate = per_organization[event.organization_id]
        volunteers = max(0, event.volunteers_registered or 0)
        aggregate["events"] += 1
        aggregate["volunteers"] += volunteers
        aggregate["minutes"] += parse_duration_minutes(event.duration) * volunteers

    for organization_id, aggregate in per_organization.items():
        try:
            await UserProfileRepository.add_impact_stats(
                organization_id,
                events_held=aggregate["events"],
                volunteers_impacted=aggregate["volunteers"],
                hours_contributed=round(aggregate["minutes"] / 60)
            )
        except Exception:
            logger.warning("Failed to update impact stats of organization %s", organization_id, exc_info=True)

    try:
        await NotificationRepository.create_many([
            {
                "user_id": event.organization_id,
                "type": NotificationType.EVENT_COMPLETED.value,
                "title": "Evento concluído",
                "message": (
                    f'O evento "{event.title or "Sem título"}" terminou. '
                    "Adicione fotografias e um resumo ao seu perfil."
                ),
                "link": f"/organization/events/{event.id}/recap",
            }
            for event in events
        ])
    except Exception:
        logger.warning("Failed to create completion notifications", exc_info=True)


async def process_expired_events(*, dry_run: bool = False, now: datetime | None = None) -> SweepReport:
    """Complete every open/closed event whose start + duration is at or before now"""
    now = as_utc(now) or utc_now()
    report = SweepReport(processed_at=now, dry_run=dry_run)

    candidates = await EventRepository.get_completion_candidates(now)
    finished = []
    for event in candidates:
        if event_has_ended(event, now):
            finished.append(event)
            report.completed_event_ids.append(event.id)
        else:
            report.skipped_event_ids.append(event.id)

    if dry_run or not finished:
        logger.info(
            "Sweep%s: %d to complete, %d still running",
            " (dry run)" if dry_run else "", len(finished), len(report.skipped_event_ids)
        )
        return report

    await EventRepository.mark_completed(report.completed_event_ids, now)
    logger.info("Completed events %s", report.completed_event_ids)
    await record_completion_impact(finished)
    return report


class EventCompletionSweeper:
    """Process-wide throttle around the sweep.

    ``last_run_at`` is taken from ``clock`` when a sweep starts; a new sweep is
    started only when ``interval_seconds`` have passed since then. While a sweep
    is running every caller awaits that same task.
    """

    def __init__(
        self,
        interval_seconds: float = SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sweep: Callable[[], Awaitable[SweepReport]] = process_expired_events,
    ):
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._sweep = sweep
        self.last_run_at: float | None = None
        self._in_flight: asyncio.Task | None = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    def is_due(self) -> bool:
        if self.last_run_at is None:
            return True
        return self.clock() - self.last_run_at >= self.interval_seconds

    async def _run(self) -> SweepReport | None:
        try:
            return await self._sweep()
        except Exception:
            logger.exception("Event completion sweep failed")
            return None
        finally:
            self._in_flight = None

    async def ensure_swept(self) -> SweepReport | None:
        """Sweep if due; returns the report of the sweep awaited, or None when throttled or failed"""
        if self._in_flight is None:
            if not self.is_due():
                return None
            self.last_run_at = self.clock()
            self._in_flight = asyncio.create_task(self._run())
        # shield: a cancelled request must not cancel the sweep others are waiting on
        return await asyncio.shield(self._in_flight)

    def reset(self) -> None:
        self.last_run_at = None
        self._in_flight = None


event_sweeper = EventCompletionSweeper()
