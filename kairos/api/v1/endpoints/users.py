from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from kairos.core.database import get_db
from kairos.schemas.user import UserCreate, UserResponse, UserLogin, Token, UserUpdate
from kairos.services import user_service
from kairos.core import security
from kairos.api.deps import get_current_user
from kairos.models.user import User
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register_user(user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user_by_email(db, user_in.email)
    if user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A user with this email already exists."
        )

    new_user = await user_service.create_user(db, user_in)
    logger.info(f"👤 Registered user {new_user.id}")

    # Auto-login after registration
    access_token = security.create_access_token(new_user.id)
    return {"access_token": access_token, "token_type": "bearer"}

@router.post("/login", response_model=Token)
async def login(user_in: UserLogin, db: AsyncSession = Depends(get_db)):
    try:
        user = await user_service.authenticate(db, user_in.email, user_in.password)
    except ValueError as e:
        # passlib raises on hashes it can't identify
        logger.warning(f"⚠️ [Login] Password verification failed for {user_in.email}: {e}")
        user = None

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = security.create_access_token(user.id)
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/profile", response_model=UserResponse)
async def get_user_profile(current_user: User = Depends(get_current_user)):
    """Get current user details"""
    return current_user

@router.put("/profile", response_model=UserResponse)
async def update_profile(
    user_update: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    update_data = user_update.model_dump(exclude_unset=True)
    if update_data.get("email"):
        existing = await user_service.get_user_by_email(db, update_data["email"])
        if existing and existing.id != current_user.id:
            raise HTTPException(status_code=400, detail="A user with this email already exists.")
    return await user_service.update_user_profile(db, current_user.id, update_data)
