from pydantic import BaseModel
from typing import Optional

class UserBase(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None

class UserCreate(UserBase):
    email: str
    password: str

class UserUpdate(UserBase):
    google_access_token: Optional[str] = None
    google_refresh_token: Optional[str] = None

class UserResponse(UserBase):
    id: int
    is_active: bool

    class Config:
        from_attributes = True

class UserLogin(BaseModel):
    email: str
    password: str

class Token(BaseModel):
    access_token: str
    token_type: str
