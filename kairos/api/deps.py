import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from kairos.core.config import settings
from kairos.core.database import get_db
from kairos.core.security import decode_access_token
from kairos.models.user import User
from kairos.services import user_service
from kairos.services.delivery import Delivery

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/users/login")

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError) as e:
        logger.warning(f"⚠️ Rejected token: {e}")
        raise credentials_exception

    user = await user_service.get_user(db, user_id)
    if not user or not user.is_active:
        raise credentials_exception
    return user

def get_delivery(request: Request) -> Delivery:
    return request.app.state.delivery
