"""E-mail and in-app notifications fanned out by the application lifecycle.

The dispatcher e-mails the counterpart of a lifecycle event (the organization
for a submission, the volunteer for a decision) and reports the outcome as
sent / failed / skipped. It never raises.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from html import escape

from models.enums import ApplicationStatus, NotificationType
from repositories.notification import NotificationRepository
from services.email import ResendEmailClient
from utils.dates import format_pt_datetime




logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class NotificationOutcome:
    status: NotificationStatus
    error: str | None = None


@dataclass
class EmailMessage:
    subject: str
    html: str
    text: str


SIGNATURE_NAME = "Equipa ImpactoLocal"

_WRAPPER = '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #1f2937;">{}</div>'


def _html(*paragraphs: str) -> str:
    return _WRAPPER.format("".join(p for p in paragraphs if p))


def _text(*lines: str) -> str:
    return "\n\n".join(line for line in lines if line)


def _greeting(name: str | None) -> str:
    return f"Olá {name}," if name else "Olá,"


def build_approved_email(details: dict) -> EmailMessage:
    event = details["event"]
    volunteer = details.get("volunteer") or {}
    organization = details.get("organization") or {}
    title = event.title
    when = format_pt_datetime(event.date)
    org_name = organization.get("name")
    org_email = organization.get("email")

    html = _html(
        f"<p>{escape(_greeting(volunteer.get('name')))}</p>",
        f"<p>Temos o prazer de informar que a sua candidatura ao evento <strong>{escape(title)}</strong> foi aprovada.</p>",
        f"<p><strong>Data e hora:</strong> {escape(when)}</p>" if when else "",
        f"<p><strong>Organização:</strong> {escape(org_name)}</p>" if org_name else "",
        "<p>A organização irá contactá-lo em breve com mais detalhes. Obrigado por fazer parte da comunidade ImpactoLocal!</p>",
        (
            f'<p>Para qualquer questão, pode contactar a organização através de '
            f'<a href="mailto:{escape(org_email)}">{escape(org_email)}</a>.</p>'
        ) if org_email else "",
        f"<p>Com os melhores cumprimentos,<br/>{SIGNATURE_NAME}</p>",
    )
    text = _text(
        _greeting(volunteer.get("name")),
        f'A sua candidatura ao evento "{title}" foi aprovada.',
        f"Data e hora: {when}" if when else "",
        f"Organização: {org_name}" if org_name else "",
        "A organização irá contactá-lo em breve com mais detalhes.",
        f"Contacto da organização: {org_email}" if org_email else "",
        f"Com os melhores cumprimentos,\n{SIGNATURE_NAME}",
    )
    return EmailMessage(f"Candidatura aprovada: {title}", html, text)


def build_rejected_email(details: dict) -> EmailMessage:
    event = details["event"]
    volunteer = details.get("volunteer") or {}
    organization = details.get("organization") or {}
    title = event.title
    org_name = organization.get("name")
    org_email = organization.get("email")

    html = _html(
        f"<p>{escape(_greeting(volunteer.get('name')))}</p>",
        f"<p>Informamos que a sua candidatura ao evento <strong>{escape(title)}</strong> não foi aprovada neste momento.</p>",
        f"<p><strong>Organização:</strong> {escape(org_name)}</p>" if org_name else "",
        "<p>Agradecemos o seu interesse e encorajamos a candidatar-se a outros eventos na plataforma ImpactoLocal.</p>",
        (
            f'<p>Para mais informações, pode contactar a organização através de '
            f'<a href="mailto:{escape(org_email)}">{escape(org_email)}</a>.</p>'
        ) if org_email else "",
        f"<p>Com os melhores cumprimentos,<br/>{SIGNATURE_NAME}</p>",
    )
    text = _text(
        _greeting(volunteer.get("name")),
        f'A sua candidatura ao evento "{title}" não foi aprovada neste momento.',
        f"Organização: {org_name}" if org_name else "",
        "Agradecemos o seu interesse e encorajamos a candidatar-se a outros eventos na plataforma ImpactoLocal.",
        f"Contacto da organização: {org_email}" if org_email else "",
        f"Com os melhores cumprimentos,\n{SIGNATURE_NAME}",
    )
    return EmailMessage(f"Candidatura não aprovada: {title}", html, text)


def build_submitted_email(details: dict) -> EmailMessage:
    event = details["event"]
    application = details["application"]
    volunteer = details.get("volunteer") or {}
    title = event.title
    when = format_pt_datetime(event.date)
    volunteer_name = volunteer.get("name") or "Voluntário"
    volunteer_email = volunteer.get("email") or "-"
    attachment = (application.attachment_name or "Ficheiro submetido") if application.attachment_path else None

    html = _html(
        "<p>Olá,</p>",
        f"<p>Recebeu uma nova candidatura para o evento <strong>{escape(title)}</strong>.</p>",
        f"<p><strong>Voluntário:</strong> {escape(volunteer_name)}<br/><strong>Email:</strong> {escape(volunteer_email)}</p>",
        f"<p><strong>Data do evento:</strong> {escape(when)}</p>" if when else "",
        f"<p><strong>Mensagem do voluntário:</strong><br/><em>{escape(application.message)}</em></p>" if application.message else "",
        f"<p><strong>Anexo enviado:</strong> {escape(attachment)}</p>" if attachment else "",
        "<p>Aceda à sua dashboard para gerir esta candidatura.</p>",
        f"<p>Com os melhores cumprimentos,<br/>{SIGNATURE_NAME}</p>",
    )
    text = _text(
        "Olá,",
        f'Recebeu uma nova candidatura para o evento "{title}".',
        f"Voluntário: {volunteer_name}",
        f"Email: {volunteer_email}",
        f"Data do evento: {when}" if when else "",
        f"Mensagem: {application.message}" if application.message else "",
        f"Anexo enviado: {attachment}" if attachment else "",
        "Aceda à sua dashboard para gerir esta candidatura.",
        f"Com os melhores cumprimentos,\n{SIGNATURE_NAME}",
    )
    return EmailMessage(f"Nova candidatura: {title}", html, text)


_BUILDERS = {
    NotificationKind.SUBMITTED: build_submitted_email,
    NotificationKind.APPROVED: build_approved_email,
    NotificationKind.REJECTED: build_rejected_email,
}


class NotificationDispatcher:
    def __init__(self, email_client: ResendEmailClient):
        self.email_client = email_client

    @staticmethod
    def recipient_for(details: dict, kind: NotificationKind) -> dict:
        if kind == NotificationKind.SUBMITTED:
            return details.get("organization") or {}
        return details.get("volunteer") or {}

    async def dispatch(self, details: dict, kind: NotificationKind) -> NotificationOutcome:
        """E-mail the counterpart; missing address is skipped, provider errors are failed"""
        kind = NotificationKind(kind)
        recipient_email = self.recipient_for(details, kind).get("email")
        if not recipient_email:
            logger.info(
                "No e-mail for %s notification of application %s, skipping",
                kind.value, details["application"].id
            )
            return NotificationOutcome(NotificationStatus.SKIPPED)

        try:
            message = _BUILDERS[kind](details)
            result = await self.email_client.send(recipient_email, message.subject, message.html, message.text)
        except Exception as exc:
            logger.exception("Unexpected failure sending %s notification", kind.value)
            return NotificationOutcome(NotificationStatus.FAILED, str(exc) or exc.__class__.__name__)

        if result.success:
            logger.info("Sent %s notification for application %s", kind.value, details["application"].id)
            return NotificationOutcome(NotificationStatus.SENT)
        return NotificationOutcome(NotificationStatus.FAILED, result.error)


_STATUS_NOTIFICATIONS = {
    ApplicationStatus.APPROVED.value: (
        NotificationType.APPLICATION_APPROVED, "Candidatura aprovada",
        'A sua candidatura ao evento "{title}" foi aprovada.'
    ),
    ApplicationStatus.REJECTED.value: (
        NotificationType.APPLICATION_REJECTED, "Candidatura rejeitada",
        'A sua candidatura ao evento "{title}" não foi aceite desta vez.'
    ),
    ApplicationStatus.CANCELLED.value: (
        NotificationType.APPLICATION_UPDATED, "Candidatura cancelada",
        'Cancelou a sua candidatura ao evento "{title}".'
    ),
}
_DEFAULT_STATUS_NOTIFICATION = (
    NotificationType.APPLICATION_UPDATED, "Candidatura atualizada",
    'O estado da sua candidatura ao evento "{title}" foi atualizado.'
)


async def create_status_notification(details: dict, status: str) -> None:
    """In-app notice to the volunteer after a status change; failures are logged only"""
    event = details.get("event")
    application = details["application"]
    type_, title, template = _STATUS_NOTIFICATIONS.get(status, _DEFAULT_STATUS_NOTIFICATION)
    try:
        await NotificationRepository.create_notification(
            user_id=application.volunteer_id,
            type=type_.value,
            title=title,
            message=template.format(title=event.title if event else "Evento"),
            status=status,
            link=f"/events/{event.id}" if event else None
        )
    except Exception:
        logger.warning("Failed to persist status notification for application %s", application.id, exc_info=True)


async def create_submission_notification(details: dict) -> None:
    """In-app notice to the organization about a new or renewed application"""
    event = details["event"]
    volunteer = details.get("volunteer") or {}
    volunteer_name = volunteer.get("name")
    if volunteer_name:
        message = f'Recebeu uma nova candidatura de {volunteer_name} para "{event.title}".'
    else:
        message = f'Recebeu uma nova candidatura para "{event.title}".'
    try:
        await NotificationRepository.create_notification(
            user_id=event.organization_id,
            type=NotificationType.APPLICATION_UPDATED.value,
            title="Nova candidatura recebida",
            message=message,
            status=ApplicationStatus.PENDING.value,
            link="/organization/dashboard"
        )
    except Exception:
        logger.warning("Failed to persist submission notification for event %s", event.id, exc_info=True)
