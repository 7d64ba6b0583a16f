"""Application lifecycle: submission and the cancel / approve / reject / reapply transitions.

Each transition loads the application with its event, organization and
volunteer, checks the actor and the current status, commits the new status
(compare-and-set, together with the event's registered-volunteers counter) and
only then notifies the counterpart. Notification problems are reported in the
result, never raised.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from exceptions import AuthorizationError, ConflictError, InvalidStateError, NotFoundError, TransientBackendError
from models.enums import ApplicationStatus, EventStatus
from repositories.application import ApplicationRepository
from repositories.event import EventRepository
from schemas.application import SApplicationCreate, SAttachment
from services.notifications import (
    NotificationDispatcher,
    NotificationKind,
    NotificationOutcome,
    NotificationStatus,
    create_status_notification,
    create_submission_notification,
)
from utils.dates import utc_now




logger = logging.getLogger(__name__)

PENDING = ApplicationStatus.PENDING.value
APPROVED = ApplicationStatus.APPROVED.value
REJECTED = ApplicationStatus.REJECTED.value
CANCELLED = ApplicationStatus.CANCELLED.value


class ManageAction(str, Enum):
    CANCEL = "cancel"
    APPROVE = "approve"
    REJECT = "reject"
    REAPPLY = "reapply"


# action -> (statuses it may start from, resulting status)
TRANSITIONS = {
    ManageAction.APPROVE: ({PENDING}, APPROVED),
    ManageAction.REJECT: ({PENDING}, REJECTED),
    ManageAction.CANCEL: ({PENDING, APPROVED, REJECTED}, CANCELLED),
    ManageAction.REAPPLY: ({CANCELLED}, PENDING),
}

ORGANIZATION_ACTIONS = {ManageAction.APPROVE, ManageAction.REJECT}

NOTIFICATION_KINDS = {
    ManageAction.APPROVE: NotificationKind.APPROVED,
    ManageAction.REJECT: NotificationKind.REJECTED,
    ManageAction.REAPPLY: NotificationKind.SUBMITTED,
}

_REFUSALS = {
    (ManageAction.APPROVE, APPROVED): "A candidatura já foi aprovada.",
    (ManageAction.APPROVE, REJECTED): "A candidatura já foi rejeitada.",
    (ManageAction.APPROVE, CANCELLED): "A candidatura foi cancelada pelo voluntário.",
    (ManageAction.REJECT, APPROVED): "A candidatura já foi aprovada.",
    (ManageAction.REJECT, REJECTED): "A candidatura já foi rejeitada.",
    (ManageAction.REJECT, CANCELLED): "A candidatura foi cancelada pelo voluntário.",
    (ManageAction.CANCEL, CANCELLED): "A candidatura já está cancelada.",
}


CLOSED_EVENT_MESSAGE = "Este evento já não aceita candidaturas."


def refusal_message(action: ManageAction, current_status: str) -> str:
    if action == ManageAction.REAPPLY:
        return "A candidatura não está cancelada."
    return _REFUSALS.get(
        (action, current_status),
        f"Não é possível executar '{action.value}' numa candidatura com estado '{current_status}'."
    )


@dataclass
class TransitionResult:
    application: object
    notification_status: NotificationStatus
    notification_error: str | None = None


class ApplicationLifecycle:
    def __init__(self, dispatcher: NotificationDispatcher, clock: Callable = utc_now):
        self.dispatcher = dispatcher
        self.clock = clock

    async def _load(self, application_id: int) -> dict:
        try:
            details = await ApplicationRepository.get_application_with_details(application_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to load application %s: %s", application_id, exc)
            raise TransientBackendError("Não foi possível carregar a candidatura.") from exc
        if not details:
            raise NotFoundError("Candidatura não encontrada.")
        return details

    @staticmethod
    def _check_actor(action: ManageAction, details: dict, actor_id: int) -> None:
        application = details["application"]
        if action in ORGANIZATION_ACTIONS:
            if details["event"].organization_id != actor_id:
                logger.warning(
                    "Actor %s tried to %s application %s of another organization",
                    actor_id, action.value, application.id
                )
                raise AuthorizationError("Não tem permissão para atualizar esta candidatura.")
        elif application.volunteer_id != actor_id:
            logger.warning(
                "Actor %s tried to %s application %s of another volunteer",
                actor_id, action.value, application.id
            )
            raise AuthorizationError("Não tem permissão para gerir esta candidatura.")

    @staticmethod
    def _reapply_values(now, message: str | None, attachment: SAttachment | None) -> dict:
        values = {"applied_at": now}
        if message is not None:
            values["message"] = message
        if attachment is not None and attachment.attachment_path:
            values.update(attachment.model_dump(include=set(SAttachment.model_fields)))
        return values

    async def _notify(self, action: ManageAction, details: dict, new_status: str) -> NotificationOutcome:
        kind = NOTIFICATION_KINDS.get(action)
        outcome = NotificationOutcome(NotificationStatus.SKIPPED)
        if kind is not None:
            outcome = await self.dispatcher.dispatch(details, kind)

        if kind == NotificationKind.SUBMITTED:
            await create_submission_notification(details)
        else:
            await create_status_notification(details, new_status)
        return outcome

    async def transition(
        self,
        action: ManageAction | str,
        application_id: int,
        actor_id: int,
        message: str | None = None,
        attachment: SAttachment | None = None,
    ) -> TransitionResult:
        action = ManageAction(action)
        details = await self._load(application_id)
        self._check_actor(action, details, actor_id)

        application = details["application"]
        allowed_from, new_status = TRANSITIONS[action]
        if application.status not in allowed_from:
            raise InvalidStateError(refusal_message(action, application.status))
        if action == ManageAction.REAPPLY and details["event"].status != EventStatus.OPEN.value:
            raise InvalidStateError(CLOSED_EVENT_MESSAGE)

        now = self.clock()
        extra_values = self._reapply_values(now, message, attachment) if action == ManageAction.REAPPLY else None

        logger.info(
            "Application %s: %s -> %s (%s by %s)",
            application_id, application.status, new_status, action.value, actor_id
        )
        try:
            updated = await ApplicationRepository.apply_transition(
                application_id,
                application.event_id,
                expected_status=application.status,
                new_status=new_status,
                extra_values=extra_values,
                now=now
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to update application %s: %s", application_id, exc)
            raise TransientBackendError("Não foi possível atualizar a candidatura.") from exc

        if updated is None:
            # another writer moved the status after we validated it
            current = await ApplicationRepository.get_application_by_id(application_id)
            current_status = current.status if current else application.status
            raise InvalidStateError(refusal_message(action, current_status))

        details["application"] = updated
        outcome = await self._notify(action, details, new_status)
        logger.info(
            "Application %s managed: %s, notification %s",
            application_id, new_status, outcome.status.value
        )
        return TransitionResult(updated, outcome.status, outcome.error)

    async def submit(self, application_data: SApplicationCreate, volunteer_id: int) -> TransitionResult:
        """Create a pending application, or reactivate a cancelled one through reapply"""
        try:
            event = await EventRepository.get_event_by_id(application_data.event_id)
            existing = await ApplicationRepository.find_for_pair(application_data.event_id, volunteer_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to prepare submission for event %s: %s", application_data.event_id, exc)
            raise TransientBackendError() from exc

        if not event:
            raise NotFoundError("Evento não encontrado.")
        if event.status != EventStatus.OPEN.value:
            raise InvalidStateError(CLOSED_EVENT_MESSAGE)

        if existing is not None:
            if existing.status != CANCELLED:
                raise ConflictError()
            return await self.transition(
                ManageAction.REAPPLY,
                existing.id,
                volunteer_id,
                message=application_data.message,
                attachment=SAttachment(**application_data.model_dump(include=set(SAttachment.model_fields)))
            )

        try:
            application = await ApplicationRepository.insert_application(application_data, volunteer_id)
            details = await self._load(application.id)
        except SQLAlchemyError as exc:
            logger.error("Failed to create application for event %s: %s", application_data.event_id, exc)
            raise TransientBackendError("Não foi possível criar a candidatura.") from exc

        logger.info("Application %s submitted to event %s by %s", application.id, event.id, volunteer_id)
        outcome = await self.dispatcher.dispatch(details, NotificationKind.SUBMITTED)
        await create_submission_notification(details)
        return TransitionResult(details["application"], outcome.status, outcome.error)
