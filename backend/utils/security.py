import hmac
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from repositories.auth import UserRepository
from config import INTERNAL_SECRET




security = HTTPBearer()

async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Resolve the bearer session token to a user"""
    session_token = credentials.credentials
    
    user = await UserRepository.get_user_by_session_token(session_token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de sessão inválido ou expirado",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    return user


async def get_session_token(credentials: HTTPAuthorizationCredentials = Depends(security)):
    return credentials.credentials


def verify_internal_secret(x_internal_secret: str | None = Header(default=None)):
    """Guard for scheduler-triggered jobs"""
    if not INTERNAL_SECRET:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET não configurado")
    if not x_internal_secret or not hmac.compare_digest(x_internal_secret, INTERNAL_SECRET):
        raise HTTPException(status_code=403, detail="Segredo interno inválido")
