# rentals/api/dependencies.py
import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.core.roles import Role, has_role
from rentals.core.security import verify_access_token
from rentals.db import crud_users
from rentals.db.models import User
from rentals.db.session import get_db

logger = logging.getLogger("uvicorn.error")
security = HTTPBearer(auto_error=False)


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> User:
    """
    Extracts JWT from Authorization: Bearer <token>, verifies it,
    and returns the corresponding User from DB.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
        )

    try:
        payload = verify_access_token(credentials.credentials)
        uid = int(payload["sub"])
    except (JWTError, KeyError, ValueError):
        logger.info("rejected bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        )

    user = await crud_users.get_user(db, uid)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found"
        )
    return user


def require_role(*roles: Role):
    """
    Dependency factory:
      current_user = Depends(require_role(Role.HOST, Role.ADMIN))
    """

    async def dep(user: User = Depends(get_current_user)) -> User:
        if not has_role(user, *roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden: Insufficient permissions",
            )
        return user

    return dep


CurrentUser = Annotated[User, Depends(get_current_user)]
HostOrAdmin = Annotated[User, Depends(require_role(Role.HOST, Role.ADMIN))]
AdminUser = Annotated[User, Depends(require_role(Role.ADMIN))]
