from sqlalchemy import Column, Integer, String, Boolean, DateTime, BigInteger, ForeignKey
from sqlalchemy.orm import relationship
from kairos.core.database import Base
from kairos.utils.timezone import utc_now

class Task(Base):
    __tablename__ = "tasks"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=False, index=True)
    completed = Column(Boolean, default=False, nullable=False, index=True)
    category = Column(String, default="personal", nullable=False, index=True) # personal | work | fitness | academic
    priority = Column(String, default="medium", nullable=False) # low | medium | high
    start_time = Column(String, nullable=True) # "HH:MM"
    end_time = Column(String, nullable=True) # "HH:MM"
    is_recurring = Column(Boolean, default=False)
    recurrence_type = Column(String, nullable=True) # daily | weekly | monthly
    reminder_time = Column(Integer, nullable=True) # minutes before due_date
    google_event_id = Column(String, nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    owner = relationship("User", back_populates="tasks")
