from sqlalchemy import Column, String, DateTime, ForeignKey, Index, text, func
from . import Base

class FriendRequest(Base):
    __tablename__ = 'friend_requests'
    id = Column(String(36), primary_key=True)
    sender_id = Column(String(64), ForeignKey('students.id', ondelete='CASCADE'), index=True, nullable=False)
    receiver_id = Column(String(64), ForeignKey('students.id', ondelete='CASCADE'), index=True, nullable=False)
    # canonical pair, lets the index below cover both directions
    pair_low = Column(String(64), nullable=False)
    pair_high = Column(String(64), nullable=False)
    status = Column(String(16), nullable=False, default='pending')  # pending, accepted, rejected
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    __table_args__ = (
        Index(
            'uix_pending_request_pair', 'pair_low', 'pair_high', unique=True,
            postgresql_where=text("status = 'pending'"),
        ),
    )
