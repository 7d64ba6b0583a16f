import secrets
from database import new_session
from models.auth import UserOrm, UserSessionOrm
from models.user_profile import UserProfileOrm
from schemas.auth import SUserAuth
from sqlalchemy import select, delete
from datetime import timedelta
from config import SESSION_EXPIRE_DAYS
from utils.dates import as_utc, utc_now




class UserRepository:
    @classmethod
    async def get_or_create_user(cls, auth_data: SUserAuth):
        """Create the user on first login; refresh name and email on later ones"""
        async with new_session() as session:
            query = select(UserOrm).where(UserOrm.auth_id == auth_data.auth_id)
            result = await session.execute(query)
            user = result.scalars().first()
            
            if not user:
                user = UserOrm(
                    auth_id=auth_data.auth_id,
                    name=auth_data.name,
                    email=auth_data.email,
                    role=auth_data.role
                )
                session.add(user)
                await session.flush()
                session.add(UserProfileOrm(user_id=user.id))
            else:
                user.name = auth_data.name
                if auth_data.email is not None:
                    user.email = auth_data.email
                user.updated_at = utc_now()
            
            await session.commit()
            await session.refresh(user)
            return user
    
    
    @classmethod
    async def get_user_by_id(cls, user_id: int):
        async with new_session() as session:
            query = select(UserOrm).where(UserOrm.id == user_id)
            result = await session.execute(query)
            return result.scalars().first()
    
    
    @classmethod
    async def get_user_by_session_token(cls, session_token: str):
        """Resolve a bearer token; expired sessions resolve to None"""
        async with new_session() as session:
            query = select(UserSessionOrm).where(UserSessionOrm.session_token == session_token)
            result = await session.execute(query)
            session_obj = result.scalars().first()
            
            if not session_obj or as_utc(session_obj.expires_at) < utc_now():
                return None
            
            return await cls.get_user_by_id(session_obj.user_id)
    
    
    @classmethod
    async def create_user_session(cls, user_id: int):
        async with new_session() as session:
            session_token = secrets.token_urlsafe(32)
            expires_at = utc_now() + timedelta(days=SESSION_EXPIRE_DAYS)
            
            session_obj = UserSessionOrm(
                user_id=user_id,
                session_token=session_token,
                expires_at=expires_at
            )
            session.add(session_obj)
            await session.commit()
            return session_token
    
    
    @classmethod
    async def delete_user_session(cls, session_token: str):
        async with new_session() as session:
            query = delete(UserSessionOrm).where(UserSessionOrm.session_token == session_token)
            await session.execute(query)
            await session.commit()
