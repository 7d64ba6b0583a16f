import logging
from fastapi import APIRouter, HTTPException, Depends
from schemas.auth import SUserAuth, SUserSession, SUser
from repositories.auth import UserRepository
from models.auth import UserOrm
from utils.security import get_current_user, get_session_token




logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Autenticação"]
)


@router.post("/login", response_model=SUserSession)
async def login_user(auth_data: SUserAuth):
    """Sign in with the identity-provider id; the user is created on first login"""
    try:
        user = await UserRepository.get_or_create_user(auth_data)
        session_token = await UserRepository.create_user_session(user.id)
        
        return SUserSession(
            session_token=session_token,
            user=SUser.model_validate(user)
        )
    except Exception:
        logger.exception("Login failed for %s", auth_data.auth_id)
        raise HTTPException(status_code=500, detail="Erro ao iniciar sessão")


@router.post("/logout")
async def logout(session_token: str = Depends(get_session_token)):
    try:
        await UserRepository.delete_user_session(session_token)
        return {"success": True, "message": "Sessão terminada"}
    except Exception:
        logger.exception("Logout failed")
        raise HTTPException(status_code=500, detail="Erro ao terminar sessão")


@router.get("/me", response_model=SUser)
async def get_current_user_info(current_user: UserOrm = Depends(get_current_user)):
    return current_user
