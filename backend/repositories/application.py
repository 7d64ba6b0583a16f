from database import new_session
from models.application import ApplicationOrm
from models.event import EventOrm
from models.auth import UserOrm
from models.user_profile import UserProfileOrm
from models.enums import ApplicationStatus, EventStatus
from schemas.application import SApplicationCreate
from sqlalchemy import select, update, and_, func, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased
from exceptions import ConflictError
from utils.dates import utc_now
from utils.pagination import page_offset




APPROVED = ApplicationStatus.APPROVED.value

Organization = aliased(UserOrm, name="organization")
Volunteer = aliased(UserOrm, name="volunteer")
VolunteerProfile = aliased(UserProfileOrm, name="volunteer_profile")


def _counter_delta(old_status: str, new_status: str) -> int:
    if old_status != APPROVED and new_status == APPROVED:
        return 1
    if old_status == APPROVED and new_status != APPROVED:
        return -1
    return 0


class ApplicationRepository:
    @classmethod
    async def get_application_by_id(cls, application_id: int):
        async with new_session() as session:
            query = select(ApplicationOrm).where(ApplicationOrm.id == application_id)
            result = await session.execute(query)
            return result.scalars().first()
    
    
    @classmethod
    async def get_application_with_details(cls, application_id: int):
        """Application with its event, the owning organization and the volunteer resolved"""
        async with new_session() as session:
            query = (
                select(ApplicationOrm, EventOrm, Organization, Volunteer, VolunteerProfile.avatar_url)
                .join(EventOrm, ApplicationOrm.event_id == EventOrm.id)
                .outerjoin(Organization, EventOrm.organization_id == Organization.id)
                .outerjoin(Volunteer, ApplicationOrm.volunteer_id == Volunteer.id)
                .outerjoin(VolunteerProfile, VolunteerProfile.user_id == Volunteer.id)
                .where(ApplicationOrm.id == application_id)
            )
            result = await session.execute(query)
            row = result.first()
            if not row:
                return None
            
            application, event, organization, volunteer, avatar_url = row
            return {
                "application": application,
                "event": event,
                "organization": {
                    "id": organization.id,
                    "name": organization.name,
                    "email": organization.email
                } if organization else None,
                "volunteer": {
                    "id": volunteer.id,
                    "name": volunteer.name,
                    "email": volunteer.email,
                    "avatar_url": avatar_url
                } if volunteer else None
            }
    
    
    @classmethod
    async def find_for_pair(cls, event_id: int, volunteer_id: int):
        async with new_session() as session:
            query = select(ApplicationOrm).where(
                and_(
                    ApplicationOrm.event_id == event_id,
                    ApplicationOrm.volunteer_id == volunteer_id
                )
            )
            result = await session.execute(query)
            return result.scalars().first()
    
    
    @classmethod
    async def insert_application(cls, application_data: SApplicationCreate, volunteer_id: int):
        """Insert a pending application; the unique (event, volunteer) pair turns races into ConflictError"""
        async with new_session() as session:
            now = utc_now()
            application = ApplicationOrm(
                event_id=application_data.event_id,
                volunteer_id=volunteer_id,
                status=ApplicationStatus.PENDING.value,
                message=application_data.message,
                attachment_path=application_data.attachment_path,
                attachment_name=application_data.attachment_name,
                attachment_mime_type=application_data.attachment_mime_type,
                attachment_size_bytes=application_data.attachment_size_bytes,
                applied_at=now,
                updated_at=now
            )
            session.add(application)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise ConflictError("Já se candidatou a este evento.")
            await session.refresh(application)
            return application
    
    
    @classmethod
    async def apply_transition(
        cls,
        application_id: int,
        event_id: int,
        expected_status: str,
        new_status: str,
        extra_values: dict | None = None,
        now=None,
    ):
        """Compare-and-set the status and adjust the event's registered counter in one transaction.

        Returns the updated row, or None when another writer changed the status first.
        """
        values = dict(extra_values or {})
        values["status"] = new_status
        values["updated_at"] = now or utc_now()
        
        async with new_session() as session:
            stmt = (
                update(ApplicationOrm)
                .where(
                    and_(
                        ApplicationOrm.id == application_id,
                        ApplicationOrm.status == expected_status
                    )
                )
                .values(**values)
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                await session.rollback()
                return None
            
            delta = _counter_delta(expected_status, new_status)
            if delta > 0:
                await session.execute(
                    update(EventOrm)
                    .where(EventOrm.id == event_id)
                    .values(volunteers_registered=EventOrm.volunteers_registered + 1)
                )
            elif delta < 0:
                await session.execute(
                    update(EventOrm)
                    .where(EventOrm.id == event_id)
                    .values(volunteers_registered=case(
                        (EventOrm.volunteers_registered > 0, EventOrm.volunteers_registered - 1),
                        else_=0
                    ))
                )
            
            await session.commit()
            
            refreshed = await session.execute(select(ApplicationOrm).where(ApplicationOrm.id == application_id))
            return refreshed.scalars().first()
    
    
    @classmethod
    async def get_volunteer_applications(cls, volunteer_id: int, page: int, page_size: int):
        """Applications of a volunteer with event and organization names, newest first"""
        async with new_session() as session:
            base_query = (
                select(ApplicationOrm, EventOrm.title, EventOrm.date, EventOrm.address, EventOrm.status, Organization.name)
                .join(EventOrm, ApplicationOrm.event_id == EventOrm.id)
                .outerjoin(Organization, EventOrm.organization_id == Organization.id)
                .where(ApplicationOrm.volunteer_id == volunteer_id)
                .order_by(ApplicationOrm.applied_at.desc(), ApplicationOrm.id.desc())
            )
            
            count_query = select(func.count()).select_from(ApplicationOrm).where(ApplicationOrm.volunteer_id == volunteer_id)
            total_count_result = await session.execute(count_query)
            total_count = total_count_result.scalar() or 0
            
            applications_query = base_query.offset(page_offset(page, page_size)).limit(page_size)
            applications_result = await session.execute(applications_query)
            
            applications = []
            for app, event_title, event_date, event_address, event_status, organization_name in applications_result.all():
                applications.append({
                    "application": app,
                    "event_title": event_title,
                    "event_date": event_date,
                    "event_address": event_address,
                    "event_status": event_status,
                    "organization_name": organization_name
                })
            
            return applications, total_count
    
    
    @classmethod
    async def get_statistics_rows(cls, volunteer_id: int):
        """(application status, event date, event duration, event status) for every application of a volunteer"""
        async with new_session() as session:
            query = (
                select(ApplicationOrm.status, EventOrm.date, EventOrm.duration, EventOrm.status)
                .join(EventOrm, ApplicationOrm.event_id == EventOrm.id)
                .where(ApplicationOrm.volunteer_id == volunteer_id)
            )
            result = await session.execute(query)
            return [tuple(row) for row in result.all()]
    
    
    @classmethod
    async def get_event_applications(cls, event_id: int, status: str | None = None):
        """Applications for one event with volunteer summaries"""
        async with new_session() as session:
            query = (
                select(ApplicationOrm, Volunteer.name, Volunteer.email, VolunteerProfile.avatar_url)
                .outerjoin(Volunteer, ApplicationOrm.volunteer_id == Volunteer.id)
                .outerjoin(VolunteerProfile, VolunteerProfile.user_id == Volunteer.id)
                .where(ApplicationOrm.event_id == event_id)
                .order_by(ApplicationOrm.applied_at.asc())
            )
            if status:
                query = query.where(ApplicationOrm.status == status)
            result = await session.execute(query)
            return [
                {
                    "application": app,
                    "volunteer_name": name or "",
                    "volunteer_email": email,
                    "volunteer_avatar_url": avatar_url
                }
                for app, name, email, avatar_url in result.all()
            ]
    
    
    @classmethod
    async def get_pending_for_organization(cls, organization_id: int):
        async with new_session() as session:
            query = (
                select(ApplicationOrm, Volunteer.name, Volunteer.email, VolunteerProfile.avatar_url)
                .join(EventOrm, ApplicationOrm.event_id == EventOrm.id)
                .outerjoin(Volunteer, ApplicationOrm.volunteer_id == Volunteer.id)
                .outerjoin(VolunteerProfile, VolunteerProfile.user_id == Volunteer.id)
                .where(
                    and_(
                        EventOrm.organization_id == organization_id,
                        ApplicationOrm.status == ApplicationStatus.PENDING.value
                    )
                )
                .order_by(ApplicationOrm.applied_at.asc())
            )
            result = await session.execute(query)
            return [
                {
                    "application": app,
                    "volunteer_name": name or "",
                    "volunteer_email": email,
                    "volunteer_avatar_url": avatar_url
                }
                for app, name, email, avatar_url in result.all()
            ]
    
    
    @classmethod
    async def get_organization_status_rows(cls, organization_id: int):
        """(event id, application status) for every application on the organization's events"""
        async with new_session() as session:
            query = (
                select(ApplicationOrm.event_id, ApplicationOrm.status)
                .join(EventOrm, ApplicationOrm.event_id == EventOrm.id)
                .where(EventOrm.organization_id == organization_id)
            )
            result = await session.execute(query)
            return [tuple(row) for row in result.all()]
    
    
    @classmethod
    async def get_reminder_candidates(cls, window_start, window_end):
        """Approved applications whose volunteer has an e-mail, on active events inside [start, end)"""
        async with new_session() as session:
            query = (
                select(
                    ApplicationOrm.id,
                    ApplicationOrm.volunteer_id,
                    Volunteer.name,
                    Volunteer.email,
                    EventOrm,
                    Organization.name
                )
                .join(EventOrm, ApplicationOrm.event_id == EventOrm.id)
                .join(Volunteer, ApplicationOrm.volunteer_id == Volunteer.id)
                .outerjoin(Organization, EventOrm.organization_id == Organization.id)
                .where(
                    and_(
                        ApplicationOrm.status == APPROVED,
                        EventOrm.status.in_((EventStatus.OPEN.value, EventStatus.CLOSED.value)),
                        EventOrm.date >= window_start,
                        EventOrm.date < window_end,
                        Volunteer.email.is_not(None),
                        Volunteer.email != ""
                    )
                )
                .order_by(EventOrm.date.asc(), ApplicationOrm.id.asc())
            )
            result = await session.execute(query)
            return [
                {
                    "application_id": application_id,
                    "volunteer_id": volunteer_id,
                    "volunteer_name": volunteer_name,
                    "volunteer_email": volunteer_email,
                    "event": event,
                    "organization_name": organization_name
                }
                for application_id, volunteer_id, volunteer_name, volunteer_email, event, organization_name in result.all()
            ]
