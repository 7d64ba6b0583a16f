from database import new_session
from models.user_profile import UserProfileOrm
from models.auth import UserOrm
from schemas.user import SUserProfileUpdate
from sqlalchemy import select, update
from utils.dates import utc_now




USER_FIELDS = ("name", "email")


class UserProfileRepository:
    @classmethod
    async def get_profile_by_user_id(cls, user_id: int):
        async with new_session() as session:
            query = select(UserProfileOrm).where(UserProfileOrm.user_id == user_id)
            result = await session.execute(query)
            return result.scalars().first()
    
    
    @classmethod
    async def get_user_with_profile(cls, user_id: int):
        """Return (user, profile); profile is created lazily for users that predate it"""
        async with new_session() as session:
            user_result = await session.execute(select(UserOrm).where(UserOrm.id == user_id))
            user = user_result.scalars().first()
            if not user:
                return None, None
            
            profile_result = await session.execute(
                select(UserProfileOrm).where(UserProfileOrm.user_id == user_id)
            )
            profile = profile_result.scalars().first()
            if not profile:
                profile = UserProfileOrm(user_id=user_id)
                session.add(profile)
                await session.commit()
                await session.refresh(profile)
            
            return user, profile
    
    
    @classmethod
    async def update_profile(cls, user_id: int, profile_data: SUserProfileUpdate):
        """Partial update: only fields sent by the client are written"""
        changes = profile_data.model_dump(exclude_unset=True)
        user_changes = {key: changes.pop(key) for key in USER_FIELDS if key in changes}
        
        async with new_session() as session:
            if user_changes:
                user_changes["updated_at"] = utc_now()
                await session.execute(
                    update(UserOrm).where(UserOrm.id == user_id).values(**user_changes)
                )
            
            if changes:
                await session.execute(
                    update(UserProfileOrm).where(UserProfileOrm.user_id == user_id).values(**changes)
                )
            
            await session.commit()
        
        return await cls.get_user_with_profile(user_id)
    
    
    @classmethod
    async def add_impact_stats(cls, organization_id: int, events_held: int, volunteers_impacted: int, hours_contributed: int):
        """Increment the organization's public impact counters"""
        async with new_session() as session:
            result = await session.execute(
                select(UserProfileOrm).where(UserProfileOrm.user_id == organization_id)
            )
            profile = result.scalars().first()
            if not profile:
                profile = UserProfileOrm(user_id=organization_id)
                session.add(profile)
            
            profile.stats_events_held = (profile.stats_events_held or 0) + events_held
            profile.stats_volunteers_impacted = (profile.stats_volunteers_impacted or 0) + volunteers_impacted
            profile.stats_hours_contributed = (profile.stats_hours_contributed or 0) + hours_contributed
            
            await session.commit()
            await session.refresh(profile)
            return profile
