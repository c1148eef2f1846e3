from sqlalchemy import Column, Integer, String, Boolean, DateTime, BigInteger, ForeignKey, JSON
from sqlalchemy.orm import relationship
from kairos.core.database import Base
from kairos.utils.timezone import utc_now

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    type = Column(String, default="reminder", index=True) # reminder | dueDate | suggestion | overdue | achievement
    task_id = Column(BigInteger, nullable=True, index=True) # no FK: notifications outlive edits, cleaned up on task delete
    related_task_ids = Column(JSON, default=list) # grouped / summary notifications
    category = Column(String, nullable=True)
    priority = Column(String, nullable=True)
    actions = Column(JSON, default=list) # [{"label": "...", "action": "complete"}]
    read = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    owner = relationship("User", back_populates="notifications")
