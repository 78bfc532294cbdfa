from sqlalchemy import Column, String, Date, DateTime, ForeignKey, UniqueConstraint, func
from . import Base

class AttendanceEvent(Base):
    __tablename__ = 'attendance_events'
    id = Column(String(36), primary_key=True)
    friendship_id = Column(String(36), ForeignKey('friendships.id', ondelete='CASCADE'), index=True, nullable=False)
    student1_id = Column(String(64), nullable=False)
    student2_id = Column(String(64), nullable=False)
    attended_on = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    __table_args__ = (
        UniqueConstraint('friendship_id', 'attended_on', name='uix_attendance_day'),
    )
