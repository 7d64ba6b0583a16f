import asyncio
from datetime import timedelta

import pytest

from conftest import create_event, create_user, get_event
from repositories.notification import NotificationRepository
from repositories.user import UserProfileRepository
from schemas.application import SApplicationCreate
from services.sweeper import EventCompletionSweeper, SweepReport, process_expired_events
from utils.dates import utc_now


async def test_event_dated_yesterday_is_completed(organization):
    event = await create_event(organization.id, date=utc_now() - timedelta(days=1), duration="3h")

    report = await process_expired_events()

    assert report.completed_event_ids == [event.id]
    assert report.completed_count == 1
    assert (await get_event(event.id)).status == "completed"


async def test_running_event_is_skipped_until_it_ends(organization):
    now = utc_now()
    event = await create_event(organization.id, date=now - timedelta(hours=1), duration="2h30")

    report = await process_expired_events(now=now)
    assert report.skipped_event_ids == [event.id]
    assert report.completed_count == 0
    assert (await get_event(event.id)).status == "open"

    later = await process_expired_events(now=now + timedelta(hours=2))
    assert later.completed_event_ids == [event.id]


async def test_closed_events_are_completed_and_future_events_ignored(organization):
    past_closed = await create_event(organization.id, status="closed", date=utc_now() - timedelta(days=2))
    future = await create_event(organization.id, date=utc_now() + timedelta(days=2))

    report = await process_expired_events()

    assert report.completed_event_ids == [past_closed.id]
    assert future.id not in report.skipped_event_ids
    assert (await get_event(future.id)).status == "open"


async def test_sweep_is_idempotent(organization):
    await create_event(organization.id, date=utc_now() - timedelta(days=1))

    first = await process_expired_events()
    second = await process_expired_events()

    assert first.completed_count == 1
    assert second.completed_count == 0
    assert second.skipped_event_ids == []


async def test_dry_run_changes_nothing(organization):
    event = await create_event(organization.id, date=utc_now() - timedelta(days=1))

    report = await process_expired_events(dry_run=True)

    assert report.dry_run is True
    assert report.completed_event_ids == [event.id]
    assert (await get_event(event.id)).status == "open"


async def test_completion_updates_impact_stats_and_invites_recap(lifecycle, organization, volunteer):
    event = await create_event(organization.id, date=utc_now() + timedelta(days=1), duration="2h30")
    submitted = await lifecycle.submit(SApplicationCreate(event_id=event.id), volunteer.id)
    await lifecycle.transition("approve", submitted.application.id, organization.id)
    second_volunteer = await create_user("volunteer")
    other = await lifecycle.submit(SApplicationCreate(event_id=event.id), second_volunteer.id)
    await lifecycle.transition("approve", other.application.id, organization.id)

    report = await process_expired_events(now=utc_now() + timedelta(days=2))

    assert report.completed_event_ids == [event.id]
    profile = await UserProfileRepository.get_profile_by_user_id(organization.id)
    assert profile.stats_events_held == 1
    assert profile.stats_volunteers_impacted == 2
    assert profile.stats_hours_contributed == 5

    inbox = await NotificationRepository.get_user_notifications(organization.id)
    completed = [n for n in inbox if n.type == "event_completed"]
    assert len(completed) == 1
    assert completed[0].link == f"/organization/events/{event.id}/recap"


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def test_sweeper_runs_at_most_once_per_interval():
    calls = []

    async def sweep():
        calls.append(1)
        return SweepReport()

    clock = FakeClock()
    sweeper = EventCompletionSweeper(interval_seconds=300, clock=clock, sweep=sweep)

    assert await sweeper.ensure_swept() is not None
    assert await sweeper.ensure_swept() is None
    clock.advance(299)
    assert await sweeper.ensure_swept() is None
    assert len(calls) == 1

    clock.advance(1)
    await sweeper.ensure_swept()
    assert len(calls) == 2
    assert sweeper.last_run_at == clock.now


async def test_concurrent_callers_share_one_sweep():
    calls = []
    release = asyncio.Event()

    async def sweep():
        calls.append(1)
        await release.wait()
        return SweepReport(completed_event_ids=[1])

    sweeper = EventCompletionSweeper(interval_seconds=0, clock=FakeClock(), sweep=sweep)

    waiters = [asyncio.create_task(sweeper.ensure_swept()) for _ in range(5)]
    await asyncio.sleep(0)
    assert sweeper.in_flight
    release.set()
    reports = await asyncio.gather(*waiters)

    assert len(calls) == 1
    assert all(report is reports[0] for report in reports)
    assert reports[0].completed_event_ids == [1]
    assert not sweeper.in_flight


async def test_sweep_failure_is_swallowed_and_throttled():
    calls = []

    async def sweep():
        calls.append(1)
        raise RuntimeError("database unavailable")

    clock = FakeClock()
    sweeper = EventCompletionSweeper(interval_seconds=300, clock=clock, sweep=sweep)

    assert await sweeper.ensure_swept() is None
    assert not sweeper.in_flight
    assert await sweeper.ensure_swept() is None
    assert len(calls) == 1

    clock.advance(300)
    await sweeper.ensure_swept()
    assert len(calls) == 2


async def test_cancelled_caller_does_not_cancel_shared_sweep():
    release = asyncio.Event()
    finished = []

    async def sweep():
        await release.wait()
        finished.append(1)
        return SweepReport()

    sweeper = EventCompletionSweeper(interval_seconds=0, clock=FakeClock(), sweep=sweep)
    impatient = asyncio.create_task(sweeper.ensure_swept())
    patient = asyncio.create_task(sweeper.ensure_swept())
    await asyncio.sleep(0)

    impatient.cancel()
    with pytest.raises(asyncio.CancelledError):
        await impatient
    release.set()

    assert isinstance(await patient, SweepReport)
    assert finished == [1]
