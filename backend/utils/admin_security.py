from fastapi import Depends, HTTPException, status
from models.auth import UserOrm
from models.enums import UserRole
from utils.security import get_current_user




def require_role(*roles: UserRole):
    allowed = {role.value for role in roles}

    async def dependency(current_user: UserOrm = Depends(get_current_user)):
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permissões insuficientes para esta operação"
            )
        return current_user

    return dependency


get_current_admin = require_role(UserRole.ADMIN)
get_current_organization = require_role(UserRole.ORGANIZATION)
get_current_volunteer = require_role(UserRole.VOLUNTEER)
