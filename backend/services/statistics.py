"""Dashboard metrics folded over application + event rows."""
import math
from dataclasses import dataclass, field
from datetime import datetime

from models.enums import ApplicationStatus, EventStatus
from repositories.application import ApplicationRepository
from repositories.event import EventRepository
from utils.dates import as_utc, utc_now
from utils.duration import parse_duration_hours




APPROVED = ApplicationStatus.APPROVED.value
COMPLETED = EventStatus.COMPLETED.value
STATUS_KEYS = tuple(status.value for status in ApplicationStatus)


def round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


@dataclass
class VolunteerStatistics:
    events_attended: int = 0
    events_completed: int = 0
    total_volunteer_hours: float = 0.0
    participation_rate: float = 0.0
    total_applications: int = 0


@dataclass
class StatusCounts:
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0

    def add(self, status: str) -> None:
        if status in STATUS_KEYS:
            setattr(self, status, getattr(self, status) + 1)


@dataclass
class EventApplicationStats(StatusCounts):
    event_id: int = 0
    title: str = ""
    date: datetime | None = None
    status: str = ""
    volunteers_needed: int = 0
    volunteers_registered: int = 0


@dataclass
class OrganizationStatistics:
    total_events: int = 0
    open_events: int = 0
    approved_volunteers: int = 0
    applications: StatusCounts = field(default_factory=StatusCounts)
    events: list[EventApplicationStats] = field(default_factory=list)


def compute_volunteer_statistics(rows, now: datetime | None = None) -> VolunteerStatistics:
    """Fold (application status, event date, event duration, event status) rows.

    An approved application counts as attended once its event date has passed
    or the event is completed; hours are summed over the attended ones.
    """
    now = as_utc(now) or utc_now()
    stats = VolunteerStatistics()
    hours = 0.0

    for application_status, event_date, event_duration, event_status in rows:
        stats.total_applications += 1
        if application_status != APPROVED:
            continue

        event_completed = event_status == COMPLETED
        if event_completed:
            stats.events_completed += 1

        date = as_utc(event_date)
        if event_completed or (date is not None and date <= now):
            stats.events_attended += 1
            hours += parse_duration_hours(event_duration)

    stats.total_volunteer_hours = round_half_up(hours, 1)
    if stats.total_applications:
        rate = stats.events_attended / stats.total_applications
        stats.participation_rate = min(1.0, max(0.0, rate))
    return stats


def compute_organization_statistics(events, status_rows) -> OrganizationStatistics:
    """Per-event and aggregate application counts for an organization's events"""
    stats = OrganizationStatistics()
    per_event = {}

    for event in events:
        item = EventApplicationStats(
            event_id=event.id,
            title=event.title,
            date=as_utc(event.date),
            status=event.status,
            volunteers_needed=event.volunteers_needed or 0,
            volunteers_registered=max(0, event.volunteers_registered or 0)
        )
        per_event[event.id] = item
        stats.events.append(item)
        stats.total_events += 1
        if event.status == EventStatus.OPEN.value:
            stats.open_events += 1
        stats.approved_volunteers += item.volunteers_registered

    for event_id, status in status_rows:
        stats.applications.add(status)
        if event_id in per_event:
            per_event[event_id].add(status)

    return stats


async def get_volunteer_statistics(volunteer_id: int, now: datetime | None = None) -> VolunteerStatistics:
    rows = await ApplicationRepository.get_statistics_rows(volunteer_id)
    return compute_volunteer_statistics(rows, now)


async def get_organization_statistics(organization_id: int) -> OrganizationStatistics:
    events = await EventRepository.get_organization_events(organization_id)
    status_rows = await ApplicationRepository.get_organization_status_rows(organization_id)
    return compute_organization_statistics(events, status_rows)


async def get_organization_dashboard(organization_id: int, now: datetime | None = None) -> dict:
    """Statistics plus the next five events and the applications awaiting review"""
    now = as_utc(now) or utc_now()
    return {
        "statistics": await get_organization_statistics(organization_id),
        "upcoming_events": await EventRepository.get_upcoming_events(organization_id, now, limit=5),
        "pending_applications": await ApplicationRepository.get_pending_for_organization(organization_id),
    }
