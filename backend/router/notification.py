from fastapi import APIRouter, HTTPException, Depends, Query
from repositories.notification import NotificationRepository
from schemas.notification import SNotificationList
from models.auth import UserOrm
from utils.security import get_current_user




router = APIRouter(
    prefix="/notifications",
    tags=["Notificações"]
)


@router.get("", response_model=SNotificationList)
async def get_my_notifications(
    unread_only: bool = Query(False, description="Apenas não lidas"),
    limit: int = Query(50, ge=1, le=200, description="Número máximo de notificações"),
    current_user: UserOrm = Depends(get_current_user)
):
    notifications = await NotificationRepository.get_user_notifications(current_user.id, unread_only, limit)
    unread_count = await NotificationRepository.count_unread(current_user.id)
    return SNotificationList(notifications=notifications, unread_count=unread_count)


@router.post("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    current_user: UserOrm = Depends(get_current_user)
):
    if not await NotificationRepository.mark_as_read(notification_id, current_user.id):
        raise HTTPException(status_code=404, detail="Notificação não encontrada")
    return {"success": True}


@router.post("/read-all")
async def mark_all_notifications_read(current_user: UserOrm = Depends(get_current_user)):
    updated = await NotificationRepository.mark_all_as_read(current_user.id)
    return {"success": True, "updated": updated}
