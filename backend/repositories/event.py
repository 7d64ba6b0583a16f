from database import new_session
from models.event import EventOrm
from models.auth import UserOrm
from models.user_profile import UserProfileOrm
from models.enums import EventStatus, EVENT_STATUS_TRANSITIONS
from schemas.event import SEventCreate, SEventUpdate, SEventRecap
from sqlalchemy import select, delete, update, and_, or_, func, true
from exceptions import InvalidStateError, NotFoundError
from utils.dates import as_utc, utc_now
from utils.fallback import translate_permission_errors, with_fallback
from utils.pagination import ListResult, Paged, Plain, page_offset




ACTIVE_STATUSES = (EventStatus.OPEN.value, EventStatus.CLOSED.value)


def _organization_summary(user_id, name, email, avatar_url):
    if user_id is None:
        return None
    return {"id": user_id, "name": name, "email": email, "avatar_url": avatar_url}


class EventRepository:
    @classmethod
    async def create_event(cls, event_data: SEventCreate, organization_id: int):
        async with new_session() as session:
            values = event_data.model_dump()
            values["date"] = as_utc(values["date"])
            event = EventOrm(
                **values,
                organization_id=organization_id,
                status=EventStatus.OPEN.value,
                volunteers_registered=0
            )
            session.add(event)
            await session.commit()
            await session.refresh(event)
            return event
    
    
    @classmethod
    async def get_event_by_id(cls, event_id: int):
        async with new_session() as session:
            query = select(EventOrm).where(EventOrm.id == event_id)
            result = await session.execute(query)
            return result.scalars().first()
    
    
    @classmethod
    async def get_event_with_organization(cls, event_id: int):
        """Event plus a summary of the organization that owns it"""
        async with new_session() as session:
            query = (
                select(EventOrm, UserOrm.id, UserOrm.name, UserOrm.email, UserProfileOrm.avatar_url)
                .outerjoin(UserOrm, EventOrm.organization_id == UserOrm.id)
                .outerjoin(UserProfileOrm, UserProfileOrm.user_id == UserOrm.id)
                .where(EventOrm.id == event_id)
            )
            result = await session.execute(query)
            row = result.first()
            if not row:
                return None
            
            event, user_id, name, email, avatar_url = row
            return {
                "event": event,
                "organization": _organization_summary(user_id, name, email, avatar_url)
            }
    
    
    @classmethod
    def _listing_filters(cls, status: str | None, category: str | None, search: str | None):
        conditions = []
        if status:
            conditions.append(EventOrm.status == status)
        if category:
            conditions.append(EventOrm.category == category)
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(or_(EventOrm.title.ilike(pattern), EventOrm.description.ilike(pattern)))
        return and_(*conditions) if conditions else true()
    
    
    @classmethod
    async def _count(cls, session, condition):
        count_query = select(func.count()).select_from(EventOrm).where(condition)
        result = await session.execute(count_query)
        return result.scalar() or 0
    
    
    @classmethod
    async def _list_joined(cls, condition, paginate: bool, page: int, page_size: int) -> ListResult:
        async with new_session() as session:
            with translate_permission_errors():
                query = (
                    select(EventOrm, UserOrm.id, UserOrm.name, UserOrm.email, UserProfileOrm.avatar_url)
                    .outerjoin(UserOrm, EventOrm.organization_id == UserOrm.id)
                    .outerjoin(UserProfileOrm, UserProfileOrm.user_id == UserOrm.id)
                    .where(condition)
                    .order_by(EventOrm.date.asc(), EventOrm.id.asc())
                )
                if paginate:
                    query = query.offset(page_offset(page, page_size)).limit(page_size)
                result = await session.execute(query)
                items = [
                    {"event": event, "organization": _organization_summary(user_id, name, email, avatar_url)}
                    for event, user_id, name, email, avatar_url in result.all()
                ]
                
                if not paginate:
                    return Plain(items)
                total = await cls._count(session, condition)
                return Paged(items, page, page_size, total)
    
    
    @classmethod
    async def _list_plain(cls, condition, paginate: bool, page: int, page_size: int) -> ListResult:
        async with new_session() as session:
            query = (
                select(EventOrm)
                .where(condition)
                .order_by(EventOrm.date.asc(), EventOrm.id.asc())
            )
            if paginate:
                query = query.offset(page_offset(page, page_size)).limit(page_size)
            result = await session.execute(query)
            items = [{"event": event, "organization": None} for event in result.scalars().all()]
            
            if not paginate:
                return Plain(items)
            total = await cls._count(session, condition)
            return Paged(items, page, page_size, total)
    
    
    @classmethod
    async def list_events(
        cls,
        status: str | None = EventStatus.OPEN.value,
        category: str | None = None,
        search: str | None = None,
        paginate: bool = False,
        page: int = 1,
        page_size: int = 20,
    ) -> ListResult:
        """Public listing; degrades to events without organizations when the join is denied"""
        condition = cls._listing_filters(status, category, search)
        return await with_fallback(
            lambda: cls._list_joined(condition, paginate, page, page_size),
            lambda: cls._list_plain(condition, paginate, page, page_size),
            label="events listing"
        )
    
    
    @classmethod
    async def get_organization_events(cls, organization_id: int):
        async with new_session() as session:
            query = (
                select(EventOrm)
                .where(EventOrm.organization_id == organization_id)
                .order_by(EventOrm.date.desc())
            )
            result = await session.execute(query)
            return result.scalars().all()
    
    
    @classmethod
    async def get_upcoming_events(cls, organization_id: int, now, limit: int = 5):
        async with new_session() as session:
            query = (
                select(EventOrm)
                .where(
                    and_(
                        EventOrm.organization_id == organization_id,
                        EventOrm.date >= now,
                        EventOrm.status.in_(ACTIVE_STATUSES)
                    )
                )
                .order_by(EventOrm.date.asc())
                .limit(limit)
            )
            result = await session.execute(query)
            return result.scalars().all()
    
    
    @classmethod
    async def update_event(cls, event_id: int, event_data: SEventUpdate):
        """Partial update; a status change must move forward (open -> closed -> completed)"""
        async with new_session() as session:
            result = await session.execute(select(EventOrm).where(EventOrm.id == event_id))
            event = result.scalars().first()
            if not event:
                raise NotFoundError("Evento não encontrado.")
            
            changes = event_data.model_dump(exclude_unset=True)
            new_status = changes.get("status")
            if new_status is not None and new_status != event.status:
                if new_status not in EVENT_STATUS_TRANSITIONS.get(event.status, set()):
                    raise InvalidStateError(
                        f"Não é possível alterar o estado do evento de '{event.status}' para '{new_status}'."
                    )
            if "date" in changes and changes["date"] is not None:
                changes["date"] = as_utc(changes["date"])
            
            for field, value in changes.items():
                setattr(event, field, value)
            event.updated_at = utc_now()
            
            await session.commit()
            await session.refresh(event)
            return event
    
    
    @classmethod
    async def delete_event(cls, event_id: int):
        async with new_session() as session:
            delete_event_query = delete(EventOrm).where(EventOrm.id == event_id)
            result = await session.execute(delete_event_query)
            await session.commit()
            
            return result.rowcount > 0
    
    
    @classmethod
    async def save_recap(cls, event_id: int, recap: SEventRecap):
        """Publish the post-event summary; only completed events carry one"""
        async with new_session() as session:
            result = await session.execute(select(EventOrm).where(EventOrm.id == event_id))
            event = result.scalars().first()
            if not event:
                raise NotFoundError("Evento não encontrado.")
            if event.status != EventStatus.COMPLETED.value:
                raise InvalidStateError("O resumo só pode ser publicado após a conclusão do evento.")
            
            event.post_event_summary = recap.post_event_summary
            event.post_event_gallery_urls = list(recap.post_event_gallery_urls)
            event.updated_at = utc_now()
            await session.commit()
            await session.refresh(event)
            return event
    
    
    @classmethod
    async def is_event_owner(cls, event_id: int, organization_id: int):
        async with new_session() as session:
            query = select(EventOrm.id).where(
                and_(EventOrm.id == event_id, EventOrm.organization_id == organization_id)
            )
            result = await session.execute(query)
            return result.first() is not None
    
    
    @classmethod
    async def get_completion_candidates(cls, now):
        """Open or closed events that have already started"""
        async with new_session() as session:
            query = (
                select(EventOrm)
                .where(
                    and_(
                        EventOrm.status.in_(ACTIVE_STATUSES),
                        EventOrm.date <= now
                    )
                )
                .order_by(EventOrm.date.asc())
            )
            result = await session.execute(query)
            return result.scalars().all()
    
    
    @classmethod
    async def mark_completed(cls, event_ids: list[int], now):
        """Move the given events to completed; rows already completed are left alone"""
        if not event_ids:
            return 0
        async with new_session() as session:
            stmt = (
                update(EventOrm)
                .where(
                    and_(
                        EventOrm.id.in_(event_ids),
                        EventOrm.status.in_(ACTIVE_STATUSES)
                    )
                )
                .values(status=EventStatus.COMPLETED.value, updated_at=now)
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount
