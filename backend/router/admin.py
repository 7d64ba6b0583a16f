import logging
from fastapi import APIRouter, HTTPException, Depends
from repositories.admin import AdminRepository
from schemas.admin import SAdminMetrics
from models.auth import UserOrm
from utils.admin_security import get_current_admin




logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Administração"]
)


@router.get("/metrics", response_model=SAdminMetrics)
async def get_platform_metrics(current_user: UserOrm = Depends(get_current_admin)):
    """Platform counters and the five newest users and events"""
    try:
        metrics = await AdminRepository.get_platform_metrics()
    except Exception:
        logger.exception("Failed to compute platform metrics")
        raise HTTPException(status_code=500, detail="Erro ao obter as métricas")
    
    return SAdminMetrics.model_validate(metrics)
