from database import new_session
from models.auth import UserOrm
from models.event import EventOrm
from models.application import ApplicationOrm
from models.enums import ApplicationStatus, UserRole
from sqlalchemy import select, func




class AdminRepository:
    @classmethod
    async def _count(cls, session, model, *conditions):
        query = select(func.count()).select_from(model)
        if conditions:
            query = query.where(*conditions)
        result = await session.execute(query)
        return result.scalar() or 0
    
    
    @classmethod
    async def get_platform_metrics(cls, latest_limit: int = 5):
        """Platform-wide counters plus the newest users and events"""
        async with new_session() as session:
            metrics = {
                "total_users": await cls._count(session, UserOrm),
                "total_volunteers": await cls._count(session, UserOrm, UserOrm.role == UserRole.VOLUNTEER.value),
                "total_organizations": await cls._count(session, UserOrm, UserOrm.role == UserRole.ORGANIZATION.value),
                "total_admins": await cls._count(session, UserOrm, UserOrm.role == UserRole.ADMIN.value),
                "total_events": await cls._count(session, EventOrm),
                "total_applications": await cls._count(session, ApplicationOrm),
                "pending_applications": await cls._count(
                    session, ApplicationOrm, ApplicationOrm.status == ApplicationStatus.PENDING.value
                ),
            }
            
            users_result = await session.execute(
                select(UserOrm).order_by(UserOrm.created_at.desc(), UserOrm.id.desc()).limit(latest_limit)
            )
            events_result = await session.execute(
                select(EventOrm).order_by(EventOrm.created_at.desc(), EventOrm.id.desc()).limit(latest_limit)
            )
            metrics["latest_users"] = users_result.scalars().all()
            metrics["latest_events"] = events_result.scalars().all()
            return metrics
