import logging
from fastapi import APIRouter, HTTPException, Depends
from repositories.user import UserProfileRepository
from schemas.user import SUserProfile, SUserProfileUpdate, SUserWithProfile, SPublicProfile
from schemas.statistics import SVolunteerStatistics
from services.statistics import get_volunteer_statistics
from services.sweeper import EventCompletionSweeper
from models.auth import UserOrm
from utils.security import get_current_user
from utils.admin_security import get_current_volunteer
from utils.dependencies import get_event_sweeper




logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/user",
    tags=["Utilizador"]
)


def _with_profile(user, profile) -> SUserWithProfile:
    return SUserWithProfile(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        profile=SUserProfile.model_validate(profile) if profile else None
    )


@router.get("/profile", response_model=SUserWithProfile)
async def get_user_profile(current_user: UserOrm = Depends(get_current_user)):
    try:
        user, profile = await UserProfileRepository.get_user_with_profile(current_user.id)
        return _with_profile(user, profile)
    except Exception:
        logger.exception("Failed to load profile of user %s", current_user.id)
        raise HTTPException(status_code=500, detail="Erro ao obter o perfil")


@router.patch("/profile/update", response_model=SUserWithProfile)
async def update_user_profile(
    profile_data: SUserProfileUpdate,
    current_user: UserOrm = Depends(get_current_user)
):
    """Partial update of the user's name, e-mail and profile fields"""
    try:
        user, profile = await UserProfileRepository.update_profile(current_user.id, profile_data)
        return _with_profile(user, profile)
    except Exception:
        logger.exception("Failed to update profile of user %s", current_user.id)
        raise HTTPException(status_code=500, detail="Erro ao atualizar o perfil")


@router.get("/statistics", response_model=SVolunteerStatistics)
async def get_my_statistics(
    current_user: UserOrm = Depends(get_current_volunteer),
    sweeper: EventCompletionSweeper = Depends(get_event_sweeper)
):
    """Volunteer dashboard: attended/completed events, hours and participation rate"""
    await sweeper.ensure_swept()
    try:
        stats = await get_volunteer_statistics(current_user.id)
        return SVolunteerStatistics.model_validate(stats)
    except Exception:
        logger.exception("Failed to compute statistics of volunteer %s", current_user.id)
        raise HTTPException(status_code=500, detail="Erro ao calcular as estatísticas")


@router.get("/{user_id}/public", response_model=SPublicProfile)
async def get_public_profile(user_id: int):
    """Public view of a volunteer or organization; no contact data"""
    user, profile = await UserProfileRepository.get_user_with_profile(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="Utilizador não encontrado")
    
    return SPublicProfile(
        id=user.id,
        name=user.name,
        role=user.role,
        avatar_url=profile.avatar_url,
        bio=profile.bio,
        location=profile.location,
        mission=profile.mission,
        vision=profile.vision,
        history=profile.history,
        gallery_urls=profile.gallery_urls or [],
        stats_events_held=profile.stats_events_held or 0,
        stats_volunteers_impacted=profile.stats_volunteers_impacted or 0,
        stats_hours_contributed=profile.stats_hours_contributed or 0
    )
