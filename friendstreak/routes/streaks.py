from fastapi import APIRouter, Depends, Query

from ..ranking import DEFAULT_RANKING_LIMIT
from ..schemas.friendships import AttendanceIn, Friendship, HistoryEntry, RankingEntry, StreakActionIn, StreakSummary
from .deps import get_aggregator, get_engine

router = APIRouter()


@router.post('/friendships/{friendship_id}/attendance', response_model=Friendship)
async def record_attendance(friendship_id: str, payload: AttendanceIn | None = None, engine=Depends(get_engine)):
    attended_on = payload.attended_on if payload else None
    return await engine.record_attendance(friendship_id, attended_on)


@router.post('/friendships/{friendship_id}/streak', response_model=Friendship)
async def update_streak(friendship_id: str, payload: StreakActionIn, engine=Depends(get_engine)):
    return await engine.apply_streak_action(friendship_id, payload.action)


@router.get('/friendships/{friendship_id}/streak', response_model=StreakSummary)
async def streak_summary(friendship_id: str, engine=Depends(get_engine)):
    return await engine.streak_summary(friendship_id)


@router.get('/ranking', response_model=list[RankingEntry])
async def global_ranking(limit: int = Query(DEFAULT_RANKING_LIMIT, ge=1), aggregator=Depends(get_aggregator)):
    return await aggregator.global_ranking(limit)


@router.get('/students/{student_id}/history', response_model=list[HistoryEntry])
async def student_history(student_id: str, aggregator=Depends(get_aggregator)):
    return await aggregator.student_history(student_id)
