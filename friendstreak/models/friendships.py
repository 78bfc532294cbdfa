from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, UniqueConstraint, func
from . import Base

class Friendship(Base):
    __tablename__ = 'friendships'
    id = Column(String(36), primary_key=True)
    # student1_id < student2_id, one row per unordered pair
    student1_id = Column(String(64), ForeignKey('students.id', ondelete='CASCADE'), index=True, nullable=False)
    student2_id = Column(String(64), ForeignKey('students.id', ondelete='CASCADE'), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_attendance_date = Column(Date, nullable=True)
    streak_count = Column(Integer, nullable=False, default=0)
    __table_args__ = (
        UniqueConstraint('student1_id', 'student2_id', name='uix_friend_pair'),
    )
