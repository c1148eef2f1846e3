from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, Date, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from kairos.core.database import Base

class SyncStatus(Base):
    __tablename__ = "sync_statuses"
    __table_args__ = (UniqueConstraint("user_id", "kind", name="uq_sync_status_user_kind"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    kind = Column(String, nullable=False) # calendar | health
    status = Column(String, default="none") # success | error | syncing | none
    in_progress = Column(Boolean, default=False)
    last_sync = Column(DateTime(timezone=True), nullable=True)
    changes = Column(JSON, nullable=True) # {"created": n, "updated": n, "deleted": n}
    count = Column(Integer, nullable=True)
    error = Column(String, nullable=True)

    owner = relationship("User", back_populates="sync_statuses")

class HealthDaily(Base):
    __tablename__ = "health_daily"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_health_daily_user_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    date = Column(Date, nullable=False)
    steps = Column(Integer, default=0)
    sleep_hours = Column(Float, default=0.0)
    heart_rate = Column(Float, default=0.0)
