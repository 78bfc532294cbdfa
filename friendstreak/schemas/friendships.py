from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class RequestStatus(str, Enum):
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'


class StreakStatus(str, Enum):
    NEW = 'new'
    ACTIVE = 'active'
    BROKEN = 'broken'


class FriendshipRequest(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    status: RequestStatus
    created_at: datetime
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None


class Friendship(BaseModel):
    id: str
    student1_id: str
    student2_id: str
    created_at: datetime
    last_attendance_date: Optional[date] = None
    streak_count: int = Field(0, ge=0)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.student1_id, self.student2_id)

    def other(self, student_id: str) -> str:
        return self.student2_id if student_id == self.student1_id else self.student1_id


class StreakSummary(BaseModel):
    friendship_id: str
    streak_count: int
    last_attendance_date: Optional[date] = None
    status: StreakStatus
    total_encounters: int
    encounters: list[date]


class RankingEntry(BaseModel):
    friendship_id: str
    pair_ids: tuple[str, str]
    streak_count: int
    student1_name: str
    student2_name: str


class HistoryEntry(BaseModel):
    friendship_id: str
    friend_id: str
    friend_name: str
    streak_count: int
    start_date: datetime
    last_attendance_date: Optional[date] = None
    status: StreakStatus


class FriendOverview(BaseModel):
    friendship: Friendship
    friend_id: str
    current_turn: Optional[dict] = None


# request bodies

class FriendRequestIn(BaseModel):
    sender_id: str
    receiver_id: str


class AttendanceIn(BaseModel):
    attended_on: Optional[date] = None


class StreakActionIn(BaseModel):
    action: str


class ActionOkOut(BaseModel):
    ok: bool
