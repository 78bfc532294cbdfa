"""
Read-only views composed from the registry and the streak engine: the global
streak leaderboard, a student's streak history and a schedule-enriched
friend list.

Decorations (names, current turns) come from external services and are best
effort: each lookup runs concurrently under its own timeout, and a failed one
is replaced by a placeholder instead of failing the whole view.
"""
import asyncio
import logging

from .clients.profiles import PlaceholderProfileClient, placeholder_name
from .clients.schedule import StaticScheduleClient
from .errors import InvalidArgument
from .schemas.friendships import FriendOverview, HistoryEntry, RankingEntry

logger = logging.getLogger(__name__)

DEFAULT_RANKING_LIMIT = 10


class StreakAggregator:

    def __init__(self, registry, engine, profiles=None, schedule=None, lookup_timeout: float = 2.0):
        self.registry = registry
        self.engine = engine
        self.profiles = profiles or PlaceholderProfileClient()
        self.schedule = schedule or StaticScheduleClient()
        self.lookup_timeout = lookup_timeout

    async def _fan_out(self, what: str, keys, lookup, fallback) -> dict:
        keys = list(dict.fromkeys(keys))
        results = await asyncio.gather(
            *(asyncio.wait_for(lookup(key), self.lookup_timeout) for key in keys),
            return_exceptions=True,
        )
        resolved = {}
        for key, result in zip(keys, results):
            if isinstance(result, BaseException):
                logger.warning({'msg': f'{what}_lookup_failed', 'key': key, 'error': repr(result)})
                resolved[key] = fallback(key)
            else:
                resolved[key] = result
        return resolved

    async def _names(self, student_ids) -> dict:
        return await self._fan_out('name', student_ids, self.profiles.display_name, placeholder_name)

    async def global_ranking(self, limit: int = DEFAULT_RANKING_LIMIT) -> list[RankingEntry]:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidArgument('limit must be a positive integer', limit=limit)
        friendships = await self.registry.ranked_friendships(limit)
        names = await self._names(sid for f in friendships for sid in f.pair)
        return [
            RankingEntry(
                friendship_id=f.id,
                pair_ids=f.pair,
                streak_count=f.streak_count,
                student1_name=names[f.student1_id],
                student2_name=names[f.student2_id],
            )
            for f in friendships
        ]

    async def student_history(self, student_id: str, reference_date=None) -> list[HistoryEntry]:
        friendships = await self.registry.list_friends(student_id)
        names = await self._names(f.other(student_id) for f in friendships)
        history = []
        for f in friendships:
            friend_id = f.other(student_id)
            history.append(HistoryEntry(
                friendship_id=f.id,
                friend_id=friend_id,
                friend_name=names[friend_id],
                streak_count=f.streak_count,
                start_date=f.created_at,
                last_attendance_date=f.last_attendance_date,
                status=self.engine.classify_status(f, reference_date),
            ))
        return history

    async def friends_overview(self, student_id: str) -> list[FriendOverview]:
        friendships = await self.registry.list_friends(student_id)
        turns = await self._fan_out(
            'schedule', (f.other(student_id) for f in friendships),
            self.schedule.current_schedule, lambda key: None,
        )
        return [
            FriendOverview(friendship=f, friend_id=f.other(student_id), current_turn=turns[f.other(student_id)])
            for f in friendships
        ]
