from sqlalchemy import Column, String, DateTime
from shared.core.database import Base


class SchedulerLock(Base):
    """Lease on a periodic job so only one process runs it at a time."""
    __tablename__ = "scheduler_locks"

    job_name = Column(String(64), primary_key=True)
    locked_by = Column(String(64), nullable=True)
    locked_until = Column(DateTime, nullable=True)
