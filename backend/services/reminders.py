"""Day-before reminders for volunteers approved on upcoming events."""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from html import escape

from models.enums import NotificationType
from repositories.application import ApplicationRepository
from repositories.notification import NotificationRepository
from services.email import ResendEmailClient
from services.notifications import SIGNATURE_NAME, EmailMessage
from utils.dates import format_pt_datetime, utc_now




logger = logging.getLogger(__name__)

SAMPLE_SIZE = 3


@dataclass
class ReminderReport:
    processed: int = 0
    to_notify: int = 0
    notifications_created: int = 0
    emails_sent: int = 0
    email_failures: int = 0
    skipped: int = 0
    window_start: datetime | None = None
    window_end: datetime | None = None
    dry_run: bool = False
    sample: list[dict] = field(default_factory=list)


def reminder_window(target_date: date | None = None) -> tuple[datetime, datetime]:
    """The UTC calendar day after ``target_date`` (today when omitted)"""
    base = target_date or utc_now().date()
    start = datetime.combine(base + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def event_link(event_id: int) -> str:
    return f"/events/{event_id}"


def build_reminder_email(candidate: dict) -> EmailMessage:
    event = candidate["event"]
    title = (event.title or "").strip() or "Evento de voluntariado"
    when = format_pt_datetime(event.date)
    name = candidate.get("volunteer_name")
    organization = candidate.get("organization_name")
    greeting = f"Olá {name}," if name else "Olá,"

    html = "".join(part for part in (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #1f2937;">',
        f"<p>{escape(greeting)}</p>",
        f"<p>Lembramos que o evento <strong>{escape(title)}</strong> acontece amanhã.</p>",
        f"<p><strong>Data e hora:</strong> {escape(when)}</p>",
        f"<p><strong>Organização:</strong> {escape(organization)}</p>" if organization else "",
        f"<p><strong>Local:</strong> {escape(event.address)}</p>" if event.address else "",
        f"<p>{escape(event.description)}</p>" if event.description else "",
        "<p>Obrigado por fazer parte da comunidade ImpactoLocal!</p>",
        f"<p>Com os melhores cumprimentos,<br/>{SIGNATURE_NAME}</p>",
        "</div>",
    ) if part)
    text = "\n\n".join(line for line in (
        greeting,
        f'Lembramos que o evento "{title}" acontece amanhã.',
        f"Data e hora: {when}",
        f"Organização: {organization}" if organization else "",
        f"Local: {event.address}" if event.address else "",
        event.description or "",
        "Obrigado por fazer parte da comunidade ImpactoLocal!",
    ) if line)
    return EmailMessage(f"Lembrete: {title} é amanhã", html, text)


async def _pending_candidates(candidates: list[dict]) -> list[dict]:
    """Drop pairs already reminded and duplicates inside the batch"""
    volunteer_ids = sorted({candidate["volunteer_id"] for candidate in candidates})
    links = sorted({event_link(candidate["event"].id) for candidate in candidates})
    already_sent = await NotificationRepository.get_reminder_keys(volunteer_ids, links)

    seen = set(already_sent)
    pending = []
    for candidate in candidates:
        key = (candidate["volunteer_id"], event_link(candidate["event"].id))
        if key in seen:
            continue
        seen.add(key)
        pending.append(candidate)
    return pending


async def send_event_reminders(
    email_client: ResendEmailClient,
    *,
    dry_run: bool = False,
    target_date: date | None = None,
) -> ReminderReport:
    window_start, window_end = reminder_window(target_date)
    report = ReminderReport(window_start=window_start, window_end=window_end, dry_run=dry_run)

    candidates = await ApplicationRepository.get_reminder_candidates(window_start, window_end)
    pending = await _pending_candidates(candidates) if candidates else []
    report.processed = len(candidates)
    report.to_notify = len(pending)
    report.skipped = len(candidates) - len(pending)

    if dry_run:
        report.sample = [
            {
                "event_id": candidate["event"].id,
                "event_title": candidate["event"].title,
                "volunteer_email": candidate["volunteer_email"],
            }
            for candidate in pending[:SAMPLE_SIZE]
        ]
        return report

    if not pending:
        logger.info("No reminders to send for %s", window_start.date())
        return report

    report.notifications_created = await NotificationRepository.create_many([
        {
            "user_id": candidate["volunteer_id"],
            "type": NotificationType.EVENT_REMINDER.value,
            "title": "Lembrete de evento",
            "message": (
                f'O evento "{candidate["event"].title}" decorre amanhã '
                f"({format_pt_datetime(candidate['event'].date)})."
            ),
            "link": event_link(candidate["event"].id),
        }
        for candidate in pending
    ])

    for candidate in pending:
        message = build_reminder_email(candidate)
        result = await email_client.send(candidate["volunteer_email"], message.subject, message.html, message.text)
        if result.success:
            report.emails_sent += 1
        else:
            report.email_failures += 1
            logger.warning(
                "Reminder e-mail to volunteer %s for event %s failed: %s",
                candidate["volunteer_id"], candidate["event"].id, result.error
            )

    logger.info(
        "Reminders for %s: %d notifications, %d e-mails sent, %d failed, %d skipped",
        window_start.date(), report.notifications_created, report.emails_sent,
        report.email_failures, report.skipped
    )
    return report
