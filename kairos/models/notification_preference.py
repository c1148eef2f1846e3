from sqlalchemy import Column, Integer, Boolean, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from kairos.core.database import Base

def default_categories():
    return {"personal": True, "work": True, "fitness": True, "academic": True}

def default_priorities():
    return {"low": True, "medium": True, "high": True}

class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True)
    enabled = Column(Boolean, default=True)
    categories = Column(JSON, default=default_categories)
    priorities = Column(JSON, default=default_priorities)
    quiet_hours_start = Column(String, nullable=True) # "HH:MM", unset means no quiet hours
    quiet_hours_end = Column(String, nullable=True)
    timezone = Column(String, nullable=True) # IANA name, falls back to settings.DEFAULT_TIMEZONE
    location_aware = Column(Boolean, default=False)
    context_aware = Column(Boolean, default=False)
    intensity = Column(String, default="medium") # low | medium | high
    focus_until = Column(DateTime(timezone=True), nullable=True)
    push_enabled = Column(Boolean, default=False) # OS notification permission granted
    fcm_token = Column(String, nullable=True)

    owner = relationship("User", back_populates="preferences")
