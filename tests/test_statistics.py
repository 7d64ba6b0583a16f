from datetime import datetime, timedelta, timezone

import pytest

from conftest import create_event, create_user
from schemas.application import SApplicationCreate
from services.statistics import (
    compute_organization_statistics,
    compute_volunteer_statistics,
    get_organization_dashboard,
    get_volunteer_statistics,
    round_half_up,
)
from utils.dates import utc_now


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def row(status, date, duration, event_status):
    return (status, datetime.fromisoformat(date), duration, event_status)


def test_volunteer_statistics_over_mixed_applications():
    rows = [
        row("approved", "2024-04-10T10:00:00+00:00", "2h 30m", "completed"),
        row("approved", "2024-06-01T10:00:00+00:00", "01:45", "completed"),
        row("approved", "2024-03-15T15:00:00+00:00", "90m", "open"),
        row("rejected", "2024-02-01T09:00:00+00:00", "3h", "completed"),
    ]

    stats = compute_volunteer_statistics(rows, NOW)

    assert stats.total_volunteer_hours == 5.8
    assert stats.events_attended == 3
    assert stats.events_completed == 2
    assert stats.participation_rate == 0.75
    assert stats.total_applications == 4


def test_hours_round_half_up():
    rows = [
        row("approved", "2024-04-10T10:00:00+00:00", "2h30", "completed"),
        row("approved", "2024-04-11T10:00:00+00:00", "1:45", "completed"),
    ]

    stats = compute_volunteer_statistics(rows, NOW)

    assert stats.total_volunteer_hours == 4.3
    assert stats.events_completed == 2


def test_no_applications_gives_zeroes():
    stats = compute_volunteer_statistics([], NOW)

    assert stats.participation_rate == 0
    assert stats.total_applications == 0
    assert stats.total_volunteer_hours == 0


def test_future_approved_event_is_not_attended_yet():
    rows = [row("approved", "2024-06-01T10:00:00+00:00", "2h", "open")]

    stats = compute_volunteer_statistics(rows, NOW)

    assert stats.events_attended == 0
    assert stats.total_volunteer_hours == 0
    assert stats.participation_rate == 0


def test_naive_dates_are_treated_as_utc():
    rows = [("approved", datetime(2024, 4, 30, 10, 0), "1h", "open")]

    assert compute_volunteer_statistics(rows, NOW).events_attended == 1


def test_adding_completed_approved_application_is_monotonic():
    rows = [
        row("approved", "2024-04-10T10:00:00+00:00", "2h", "completed"),
        row("pending", "2024-06-10T10:00:00+00:00", "2h", "open"),
    ]
    before = compute_volunteer_statistics(rows, NOW)
    after = compute_volunteer_statistics(
        rows + [row("approved", "2024-04-20T10:00:00+00:00", "1h", "completed")], NOW
    )

    assert after.events_attended == before.events_attended + 1
    assert after.events_completed == before.events_completed + 1
    assert after.total_applications == before.total_applications + 1
    assert after.participation_rate == pytest.approx(after.events_attended / after.total_applications)


@pytest.mark.parametrize("value, expected", [(4.25, 4.3), (5.75, 5.8), (0.04, 0.0), (1000.0, 1000.0)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_participation_rate_stays_in_unit_interval():
    rows = [row("approved", "2024-04-01T08:00:00+00:00", "2h", "completed") for _ in range(500)]

    stats = compute_volunteer_statistics(rows, NOW)

    assert stats.participation_rate == 1
    assert stats.total_volunteer_hours == 1000


class EventStub:
    def __init__(self, id, status, volunteers_registered, volunteers_needed=10):
        self.id = id
        self.title = f"Evento {id}"
        self.date = NOW
        self.status = status
        self.volunteers_needed = volunteers_needed
        self.volunteers_registered = volunteers_registered


def test_organization_statistics():
    events = [EventStub(1, "open", 2), EventStub(2, "closed", 1), EventStub(3, "completed", 4)]
    status_rows = [
        (1, "pending"), (1, "approved"), (1, "approved"), (1, "cancelled"),
        (2, "approved"), (2, "rejected"),
        (3, "pending"),
    ]

    stats = compute_organization_statistics(events, status_rows)

    assert stats.total_events == 3
    assert stats.open_events == 1
    assert stats.approved_volunteers == 7
    assert (stats.applications.pending, stats.applications.approved) == (2, 3)
    assert (stats.applications.rejected, stats.applications.cancelled) == (1, 1)
    first = stats.events[0]
    assert (first.pending, first.approved, first.cancelled) == (1, 2, 1)


async def test_volunteer_statistics_from_store(lifecycle, organization, volunteer):
    past = await create_event(organization.id, date=utc_now() + timedelta(hours=1), duration="2h30")
    submitted = await lifecycle.submit(SApplicationCreate(event_id=past.id), volunteer.id)
    await lifecycle.transition("approve", submitted.application.id, organization.id)
    future = await create_event(organization.id, date=utc_now() + timedelta(days=5))
    await lifecycle.submit(SApplicationCreate(event_id=future.id), volunteer.id)

    stats = await get_volunteer_statistics(volunteer.id, now=utc_now() + timedelta(days=1))

    assert stats.total_applications == 2
    assert stats.events_attended == 1
    assert stats.total_volunteer_hours == 2.5
    assert stats.participation_rate == 0.5


async def test_organization_dashboard(lifecycle, organization, volunteer):
    for days in range(1, 8):
        await create_event(organization.id, date=utc_now() + timedelta(days=days))
    event = await create_event(organization.id, date=utc_now() + timedelta(hours=6))
    await lifecycle.submit(SApplicationCreate(event_id=event.id), volunteer.id)
    other_organization = await create_user("organization")
    await create_event(other_organization.id)

    dashboard = await get_organization_dashboard(organization.id)

    assert dashboard["statistics"].total_events == 8
    assert len(dashboard["upcoming_events"]) == 5
    assert dashboard["upcoming_events"][0].id == event.id
    assert [row["volunteer_name"] for row in dashboard["pending_applications"]] == ["Ana Costa"]
