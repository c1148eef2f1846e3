from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from kairos.core.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    is_active = Column(Boolean, default=True)

    # Google tokens (obtained by the client, used for Calendar/Fit sync)
    google_access_token = Column(String, nullable=True)
    google_refresh_token = Column(String, nullable=True)
    google_token_expiry = Column(DateTime, nullable=True)

    tasks = relationship("Task", back_populates="owner", cascade="all, delete-orphan")
    preferences = relationship("NotificationPreference", back_populates="owner", uselist=False, cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="owner", cascade="all, delete-orphan")
    sync_statuses = relationship("SyncStatus", back_populates="owner", cascade="all, delete-orphan")
