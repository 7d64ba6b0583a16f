import logging
from fastapi import APIRouter, HTTPException, Depends, Query
from repositories.application import ApplicationRepository
from repositories.event import EventRepository
from schemas.application import (
    SApplication, SApplicationAction, SApplicationCreate, SApplicationListResponse,
    SApplicationTransitionResult, SApplicationWithEvent, SApplicationWithVolunteer
)
from models.auth import UserOrm
from models.enums import UserRole
from exceptions import ImpactoError
from services.lifecycle import ApplicationLifecycle, ManageAction, TransitionResult
from utils.security import get_current_user
from utils.admin_security import get_current_organization, get_current_volunteer
from utils.dependencies import get_lifecycle




logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/applications",
    tags=["Candidaturas"]
)


def _transition_response(result: TransitionResult) -> SApplicationTransitionResult:
    return SApplicationTransitionResult(
        application=SApplication.model_validate(result.application),
        notification_status=result.notification_status.value,
        notification_error=result.notification_error
    )


@router.post("/create", response_model=SApplicationTransitionResult)
async def create_application(
    application_data: SApplicationCreate,
    current_user: UserOrm = Depends(get_current_volunteer),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle)
):
    """Apply to an open event; a previously cancelled application is reactivated"""
    try:
        result = await lifecycle.submit(application_data, current_user.id)
        return _transition_response(result)
    except ImpactoError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to submit application to event %s", application_data.event_id)
        raise HTTPException(status_code=500, detail="Erro ao criar a candidatura")


@router.get("/my-applications", response_model=SApplicationListResponse)
async def get_my_applications(
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Tamanho da página"),
    current_user: UserOrm = Depends(get_current_volunteer)
):
    try:
        applications_with_details, total_count = await ApplicationRepository.get_volunteer_applications(
            current_user.id, page, page_size
        )
    except Exception:
        logger.exception("Failed to list applications of volunteer %s", current_user.id)
        raise HTTPException(status_code=500, detail="Erro ao obter as candidaturas")
    
    applications = [
        SApplicationWithEvent(
            **SApplication.model_validate(app_data["application"]).model_dump(),
            event_title=app_data["event_title"],
            event_date=app_data["event_date"],
            event_address=app_data["event_address"],
            event_status=app_data["event_status"],
            organization_name=app_data["organization_name"]
        )
        for app_data in applications_with_details
    ]
    total_pages = (total_count + page_size - 1) // page_size if page_size > 0 else 0
    
    return SApplicationListResponse(
        applications=applications,
        total_count=total_count,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get("/event/{event_id}", response_model=list[SApplicationWithVolunteer])
async def get_event_applications(
    event_id: int,
    current_user: UserOrm = Depends(get_current_organization)
):
    """Applications received for one of the organization's events"""
    if not await EventRepository.is_event_owner(event_id, current_user.id):
        raise HTTPException(status_code=403, detail="Sem permissão para ver as candidaturas deste evento")
    
    rows = await ApplicationRepository.get_event_applications(event_id)
    return [
        SApplicationWithVolunteer(
            **SApplication.model_validate(row["application"]).model_dump(),
            volunteer_name=row["volunteer_name"],
            volunteer_email=row["volunteer_email"],
            volunteer_avatar_url=row["volunteer_avatar_url"]
        )
        for row in rows
    ]


@router.get("/{application_id}", response_model=SApplicationWithVolunteer)
async def get_application_details(
    application_id: int,
    current_user: UserOrm = Depends(get_current_user)
):
    """Visible to the applying volunteer, the event's organization and admins"""
    details = await ApplicationRepository.get_application_with_details(application_id)
    if not details:
        raise HTTPException(status_code=404, detail="Candidatura não encontrada")
    
    application = details["application"]
    allowed = (
        application.volunteer_id == current_user.id
        or details["event"].organization_id == current_user.id
        or current_user.role == UserRole.ADMIN.value
    )
    if not allowed:
        raise HTTPException(status_code=403, detail="Sem permissão para ver esta candidatura")
    
    volunteer = details["volunteer"] or {}
    return SApplicationWithVolunteer(
        **SApplication.model_validate(application).model_dump(),
        volunteer_name=volunteer.get("name") or "",
        volunteer_email=volunteer.get("email"),
        volunteer_avatar_url=volunteer.get("avatar_url")
    )


@router.post("/{application_id}/{action}", response_model=SApplicationTransitionResult)
async def manage_application(
    application_id: int,
    action: ManageAction,
    payload: SApplicationAction | None = None,
    current_user: UserOrm = Depends(get_current_user),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle)
):
    """cancel / reapply by the volunteer, approve / reject by the organization"""
    payload = payload or SApplicationAction()
    try:
        result = await lifecycle.transition(
            action,
            application_id,
            current_user.id,
            message=payload.message,
            attachment=payload
        )
        return _transition_response(result)
    except ImpactoError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to %s application %s", action.value, application_id)
        raise HTTPException(status_code=500, detail="Erro ao atualizar a candidatura")
