from database import new_session
from models.notification import NotificationOrm
from models.enums import NotificationType
from sqlalchemy import select, update, and_, func




class NotificationRepository:
    @classmethod
    async def create_notification(
        cls,
        user_id: int,
        type: str,
        title: str,
        message: str,
        status: str | None = None,
        link: str | None = None,
    ):
        async with new_session() as session:
            notification = NotificationOrm(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                status=status,
                link=link,
                is_read=False
            )
            session.add(notification)
            await session.commit()
            await session.refresh(notification)
            return notification
    
    
    @classmethod
    async def create_many(cls, rows: list[dict]):
        """Insert a batch of notifications in one transaction"""
        if not rows:
            return 0
        async with new_session() as session:
            session.add_all([NotificationOrm(is_read=False, **row) for row in rows])
            await session.commit()
            return len(rows)
    
    
    @classmethod
    async def get_user_notifications(cls, user_id: int, unread_only: bool = False, limit: int = 50):
        async with new_session() as session:
            query = select(NotificationOrm).where(NotificationOrm.user_id == user_id)
            if unread_only:
                query = query.where(NotificationOrm.is_read.is_(False))
            query = query.order_by(NotificationOrm.created_at.desc(), NotificationOrm.id.desc()).limit(limit)
            result = await session.execute(query)
            return result.scalars().all()
    
    
    @classmethod
    async def count_unread(cls, user_id: int):
        async with new_session() as session:
            query = select(func.count()).select_from(NotificationOrm).where(
                and_(NotificationOrm.user_id == user_id, NotificationOrm.is_read.is_(False))
            )
            result = await session.execute(query)
            return result.scalar() or 0
    
    
    @classmethod
    async def mark_as_read(cls, notification_id: int, user_id: int):
        """Mark one notification as read; only its owner may do so"""
        async with new_session() as session:
            stmt = (
                update(NotificationOrm)
                .where(and_(NotificationOrm.id == notification_id, NotificationOrm.user_id == user_id))
                .values(is_read=True)
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0
    
    
    @classmethod
    async def mark_all_as_read(cls, user_id: int):
        async with new_session() as session:
            stmt = (
                update(NotificationOrm)
                .where(and_(NotificationOrm.user_id == user_id, NotificationOrm.is_read.is_(False)))
                .values(is_read=True)
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount
    
    
    @classmethod
    async def get_reminder_keys(cls, user_ids: list[int], links: list[str]):
        """(user id, link) pairs that already received an event reminder"""
        if not user_ids or not links:
            return set()
        async with new_session() as session:
            query = select(NotificationOrm.user_id, NotificationOrm.link).where(
                and_(
                    NotificationOrm.type == NotificationType.EVENT_REMINDER.value,
                    NotificationOrm.user_id.in_(user_ids),
                    NotificationOrm.link.in_(links)
                )
            )
            result = await session.execute(query)
            return {(user_id, link) for user_id, link in result.all()}
