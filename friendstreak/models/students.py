from sqlalchemy import Column, String, DateTime, func
from . import Base

class Student(Base):
    __tablename__ = 'students'
    id = Column(String(64), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
