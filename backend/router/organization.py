import logging
from fastapi import APIRouter, HTTPException, Depends
from schemas.application import SApplication, SApplicationWithVolunteer
from schemas.event import SEvent
from schemas.statistics import SOrganizationDashboard, SOrganizationStatistics
from services.statistics import get_organization_dashboard
from services.sweeper import EventCompletionSweeper
from models.auth import UserOrm
from utils.admin_security import get_current_organization
from utils.dependencies import get_event_sweeper




logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/organizations",
    tags=["Organizações"]
)


@router.get("/dashboard", response_model=SOrganizationDashboard)
async def get_dashboard(
    current_user: UserOrm = Depends(get_current_organization),
    sweeper: EventCompletionSweeper = Depends(get_event_sweeper)
):
    """Application counts per event, upcoming events and applications awaiting review"""
    await sweeper.ensure_swept()
    try:
        dashboard = await get_organization_dashboard(current_user.id)
    except Exception:
        logger.exception("Failed to build dashboard of organization %s", current_user.id)
        raise HTTPException(status_code=500, detail="Erro ao obter o painel da organização")
    
    return SOrganizationDashboard(
        statistics=SOrganizationStatistics.model_validate(dashboard["statistics"]),
        upcoming_events=[SEvent.model_validate(event) for event in dashboard["upcoming_events"]],
        pending_applications=[
            SApplicationWithVolunteer(
                **SApplication.model_validate(row["application"]).model_dump(),
                volunteer_name=row["volunteer_name"],
                volunteer_email=row["volunteer_email"],
                volunteer_avatar_url=row["volunteer_avatar_url"]
            )
            for row in dashboard["pending_applications"]
        ]
    )
