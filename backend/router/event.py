import logging
from typing import Literal, Optional
from fastapi import APIRouter, HTTPException, Depends, Query
from repositories.event import EventRepository
from schemas.event import (
    SEvent, SEventCreate, SEventUpdate, SEventRecap,
    SEventWithOrganization, SEventListResponse
)
from models.auth import UserOrm
from exceptions import ImpactoError
from services.sweeper import EventCompletionSweeper
from utils.security import get_current_user
from utils.admin_security import get_current_organization
from utils.dependencies import get_event_sweeper
from utils.pagination import Paged




logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/events",
    tags=["Eventos"]
)


def _event_with_organization(item: dict) -> SEventWithOrganization:
    event = SEvent.model_validate(item["event"])
    return SEventWithOrganization(**event.model_dump(), organization=item["organization"])


async def _get_owned_event(event_id: int, organization: UserOrm):
    event = await EventRepository.get_event_by_id(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Evento não encontrado")
    if event.organization_id != organization.id:
        raise HTTPException(status_code=403, detail="Apenas a organização responsável pode gerir este evento")
    return event


@router.get("", response_model=SEventListResponse)
async def list_events(
    status: Optional[Literal["open", "closed", "completed"]] = Query("open", description="Estado dos eventos"),
    category: Optional[str] = Query(None, description="Categoria"),
    search: Optional[str] = Query(None, description="Pesquisa no título e na descrição"),
    paginate: bool = Query(False, description="Devolver resultados paginados"),
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Tamanho da página"),
    sweeper: EventCompletionSweeper = Depends(get_event_sweeper)
):
    """Public listing ordered by date; plain or paged depending on ``paginate``"""
    await sweeper.ensure_swept()
    try:
        result = await EventRepository.list_events(
            status=status,
            category=category,
            search=search,
            paginate=paginate,
            page=page,
            page_size=page_size
        )
    except ImpactoError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to list events")
        raise HTTPException(status_code=500, detail="Erro ao obter os eventos")
    
    events = [_event_with_organization(item) for item in result.items]
    if isinstance(result, Paged):
        return SEventListResponse(
            kind="paged",
            events=events,
            total_count=result.total,
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages
        )
    return SEventListResponse(kind="plain", events=events)


@router.post("/create", response_model=SEvent)
async def create_event(
    event_data: SEventCreate,
    current_user: UserOrm = Depends(get_current_organization)
):
    try:
        event = await EventRepository.create_event(event_data, current_user.id)
        logger.info("Organization %s created event %s", current_user.id, event.id)
        return event
    except Exception:
        logger.exception("Failed to create event")
        raise HTTPException(status_code=500, detail="Erro ao criar o evento")


@router.get("/my-events", response_model=list[SEvent])
async def get_my_events(
    current_user: UserOrm = Depends(get_current_organization),
    sweeper: EventCompletionSweeper = Depends(get_event_sweeper)
):
    await sweeper.ensure_swept()
    try:
        return await EventRepository.get_organization_events(current_user.id)
    except Exception:
        logger.exception("Failed to list events of organization %s", current_user.id)
        raise HTTPException(status_code=500, detail="Erro ao obter os eventos")


@router.get("/{event_id}", response_model=SEventWithOrganization)
async def get_event(
    event_id: int,
    sweeper: EventCompletionSweeper = Depends(get_event_sweeper)
):
    await sweeper.ensure_swept()
    item = await EventRepository.get_event_with_organization(event_id)
    if not item:
        raise HTTPException(status_code=404, detail="Evento não encontrado")
    return _event_with_organization(item)


@router.patch("/{event_id}/update", response_model=SEvent)
async def update_event(
    event_id: int,
    event_data: SEventUpdate,
    current_user: UserOrm = Depends(get_current_organization)
):
    """Partial update; status may only move forward"""
    await _get_owned_event(event_id, current_user)
    try:
        return await EventRepository.update_event(event_id, event_data)
    except ImpactoError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to update event %s", event_id)
        raise HTTPException(status_code=500, detail="Erro ao atualizar o evento")


@router.delete("/{event_id}/delete")
async def delete_event(
    event_id: int,
    current_user: UserOrm = Depends(get_current_organization)
):
    await _get_owned_event(event_id, current_user)
    try:
        deleted = await EventRepository.delete_event(event_id)
    except Exception:
        logger.exception("Failed to delete event %s", event_id)
        raise HTTPException(status_code=500, detail="Erro ao eliminar o evento")
    if not deleted:
        raise HTTPException(status_code=404, detail="Evento não encontrado")
    return {"success": True, "message": "Evento eliminado"}


@router.put("/{event_id}/recap", response_model=SEvent)
async def publish_recap(
    event_id: int,
    recap: SEventRecap,
    current_user: UserOrm = Depends(get_current_organization)
):
    """Post-event summary and gallery of a completed event"""
    await _get_owned_event(event_id, current_user)
    try:
        return await EventRepository.save_recap(event_id, recap)
    except ImpactoError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to publish recap of event %s", event_id)
        raise HTTPException(status_code=500, detail="Erro ao publicar o resumo")
