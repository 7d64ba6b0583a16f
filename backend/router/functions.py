"""Job-style endpoints with the ``{success, data | error}`` wire shape and camelCase fields."""
import logging
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from schemas.application import SApplication, SAttachment
from schemas.functions import (
    SFunctionError,
    SManageApplicationData,
    SManageApplicationRequest,
    SManageApplicationResponse,
    SProcessExpiredEventsRequest,
    SProcessExpiredEventsResponse,
    SReminderSample,
    SSendEventRemindersRequest,
    SSendEventRemindersResponse,
)
from models.auth import UserOrm
from exceptions import ImpactoError
from services.email import ResendEmailClient
from services.lifecycle import ApplicationLifecycle
from services.reminders import send_event_reminders
from services.sweeper import process_expired_events
from utils.security import get_current_user, verify_internal_secret
from utils.dependencies import get_email_client, get_lifecycle




logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/functions",
    tags=["Funções"]
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=SFunctionError(error=message).model_dump())


def _ok(model) -> JSONResponse:
    return JSONResponse(status_code=200, content=model.model_dump(mode="json", by_alias=True))


@router.post("/manage-application")
async def manage_application(
    body: dict | None = Body(None),
    current_user: UserOrm = Depends(get_current_user),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle)
):
    try:
        request = SManageApplicationRequest.model_validate(body or {})
    except ValidationError:
        logger.warning("Invalid manage-application payload: %s", body)
        return _error(400, "Parâmetros obrigatórios em falta ou ação não suportada.")
    
    if request.actor_id != current_user.id:
        logger.warning("Actor %s does not match authenticated user %s", request.actor_id, current_user.id)
        return _error(403, "Não tem permissão para gerir esta candidatura.")
    
    try:
        result = await lifecycle.transition(
            request.action,
            request.application_id,
            request.actor_id,
            message=request.message,
            attachment=SAttachment(
                attachment_path=request.attachment_path,
                attachment_name=request.attachment_name,
                attachment_mime_type=request.attachment_mime_type,
                attachment_size_bytes=request.attachment_size_bytes
            )
        )
    except ImpactoError as e:
        return _error(e.status_code, e.message)
    except Exception:
        logger.exception("manage-application failed for application %s", request.application_id)
        return _error(500, "Erro ao atualizar a candidatura.")
    
    return _ok(SManageApplicationResponse(
        data=SManageApplicationData(
            application=SApplication.model_validate(result.application),
            notification_status=result.notification_status.value,
            notification_error=result.notification_error
        )
    ))


@router.post("/process-expired-events", dependencies=[Depends(verify_internal_secret)])
async def run_process_expired_events(body: dict | None = Body(None)):
    """Complete elapsed events now, bypassing the request-time throttle"""
    try:
        request = SProcessExpiredEventsRequest.model_validate(body or {})
    except ValidationError:
        return _error(400, "Parâmetros inválidos.")
    
    try:
        report = await process_expired_events(dry_run=request.dry_run)
    except Exception as e:
        logger.exception("process-expired-events failed")
        return _error(500, str(e) or "Erro ao processar eventos expirados.")
    
    return _ok(SProcessExpiredEventsResponse(
        completed_event_ids=report.completed_event_ids,
        skipped_event_ids=report.skipped_event_ids,
        completed_count=report.completed_count,
        processed_at=report.processed_at,
        dry_run=report.dry_run
    ))


@router.post("/send-event-reminders", dependencies=[Depends(verify_internal_secret)])
async def run_send_event_reminders(
    body: dict | None = Body(None),
    email_client: ResendEmailClient = Depends(get_email_client)
):
    try:
        request = SSendEventRemindersRequest.model_validate(body or {})
    except ValidationError:
        return _error(400, "Parâmetros inválidos.")
    
    try:
        report = await send_event_reminders(
            email_client,
            dry_run=request.dry_run,
            target_date=request.target_date
        )
    except Exception as e:
        logger.exception("send-event-reminders failed")
        return _error(500, str(e) or "Erro ao enviar lembretes.")
    
    return _ok(SSendEventRemindersResponse(
        processed=report.processed,
        to_notify=report.to_notify,
        notifications_created=report.notifications_created,
        emails_sent=report.emails_sent,
        email_failures=report.email_failures,
        skipped=report.skipped,
        window_start=report.window_start,
        window_end=report.window_end,
        dry_run=report.dry_run,
        sample=[SReminderSample(**item) for item in report.sample]
    ))
