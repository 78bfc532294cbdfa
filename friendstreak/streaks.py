"""
Streak engine: turns joint attendance days into a friendship's streak.

Only this module writes `streak_count`, `last_attendance_date` and the
per-day attendance edges. Status (new / active / broken) is derived on read
and never stored.
"""
import logging
from datetime import date, timedelta

from .core import ATTENDANCE_RECORDED
from .clients.notifications import NotificationEvent, NullNotifier, deliver
from .dates import days_between, to_date, today
from .errors import InvalidArgument, NotFound
from .schemas.friendships import Friendship, StreakStatus, StreakSummary
from .store import ATTENDED_WITH, FRIENDS_WITH

logger = logging.getLogger(__name__)

# whole days without joint attendance after which a streak counts as broken
BROKEN_AFTER_DAYS = 2

STREAK_ACTIONS = ('increment', 'reset')


def advance_streak(streak_count: int, last: date | None, attended_on: date) -> tuple[int, date, str]:
    """
    Apply one attendance day to a streak.

    Returns the new count, the new last attendance date and what happened:
    'started', 'extended', 'reset' or 'duplicate'. A day that repeats the
    last one changes nothing; the day right after it extends the streak; any
    other day (a gap, or a day before the last one) starts over at 1.
    """
    if last is None:
        return 1, attended_on, 'started'
    if attended_on == last:
        return streak_count, last, 'duplicate'
    if attended_on == last + timedelta(days=1):
        return streak_count + 1, attended_on, 'extended'
    return 1, attended_on, 'reset'


def classify_status(friendship: Friendship, reference_date=None) -> StreakStatus:
    if friendship.last_attendance_date is None:
        return StreakStatus.NEW if friendship.streak_count == 0 else StreakStatus.ACTIVE
    reference = to_date(reference_date) if reference_date is not None else today()
    if days_between(friendship.last_attendance_date, reference) >= BROKEN_AFTER_DAYS:
        return StreakStatus.BROKEN
    return StreakStatus.ACTIVE


def _as_date(value) -> date:
    try:
        return to_date(value)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f'invalid attendance date: {value!r}') from e


class StreakEngine:

    def __init__(self, store, notifier=None, clock=today):
        self.store = store
        self.notifier = notifier or NullNotifier()
        self.clock = clock

    async def record_attendance(self, friendship_id: str, attended_on=None) -> Friendship:
        """Record that both friends attended on `attended_on` (default: today)"""
        attended_on = self.clock() if attended_on is None else _as_date(attended_on)

        async with self.store.transaction() as tx:
            props = await tx.read_edge(FRIENDS_WITH, lock=True, id=friendship_id)
            if props is None:
                raise NotFound('friendship not found', friendship_id=friendship_id)
            count, last, outcome = advance_streak(props['streak_count'], props['last_attendance_date'], attended_on)
            await tx.merge_edge(
                ATTENDED_WITH, props['student1_id'], props['student2_id'],
                key={'friendship_id': friendship_id, 'attended_on': attended_on},
            )
            if outcome != 'duplicate':
                props = await tx.update_edge(
                    FRIENDS_WITH, {'id': friendship_id},
                    {'streak_count': count, 'last_attendance_date': last},
                )

        friendship = Friendship(**props)
        ATTENDANCE_RECORDED.labels(outcome=outcome).inc()
        logger.info({'msg': 'attendance_recorded', 'friendship_id': friendship_id,
                     'date': attended_on.isoformat(), 'outcome': outcome,
                     'streak_count': friendship.streak_count})
        if outcome != 'duplicate':
            await self._announce(friendship)
        return friendship

    async def reset_streak(self, friendship_id: str) -> Friendship:
        """Manual reset: the streak restarts at 1 with today as its first day"""
        async with self.store.transaction() as tx:
            props = await tx.update_edge(
                FRIENDS_WITH, {'id': friendship_id},
                {'streak_count': 1, 'last_attendance_date': self.clock()},
            )
        if props is None:
            raise NotFound('friendship not found', friendship_id=friendship_id)
        logger.info({'msg': 'streak_reset', 'friendship_id': friendship_id})
        friendship = Friendship(**props)
        await self._announce(friendship)
        return friendship

    async def apply_streak_action(self, friendship_id: str, action: str) -> Friendship:
        if action == 'increment':
            return await self.record_attendance(friendship_id)
        if action == 'reset':
            return await self.reset_streak(friendship_id)
        raise InvalidArgument(f'invalid streak action {action!r}, expected one of {STREAK_ACTIONS}')

    def classify_status(self, friendship: Friendship, reference_date=None) -> StreakStatus:
        return classify_status(friendship, reference_date if reference_date is not None else self.clock())

    async def streak_summary(self, friendship_id: str, reference_date=None) -> StreakSummary:
        async with self.store.transaction() as tx:
            props = await tx.read_edge(FRIENDS_WITH, id=friendship_id)
            if props is None:
                raise NotFound('friendship not found', friendship_id=friendship_id)
            days = await tx.read_edges(ATTENDED_WITH, friendship_id=friendship_id)
        friendship = Friendship(**props)
        encounters = sorted((d['attended_on'] for d in days), reverse=True)
        return StreakSummary(
            friendship_id=friendship.id,
            streak_count=friendship.streak_count,
            last_attendance_date=friendship.last_attendance_date,
            status=self.classify_status(friendship, reference_date),
            total_encounters=len(encounters),
            encounters=encounters,
        )

    async def _announce(self, friendship: Friendship):
        for student_id in friendship.pair:
            await deliver(self.notifier, NotificationEvent(
                type='streak.updated',
                recipient_id=student_id,
                payload={
                    'friendship_id': friendship.id,
                    'friend_id': friendship.other(student_id),
                    'streak_count': friendship.streak_count,
                },
            ))
