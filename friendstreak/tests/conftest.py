import asyncio
from datetime import date

import pytest

from friendstreak.clients import NotificationEvent, Notifier, ProfileClient, ScheduleClient, StaticScheduleClient
from friendstreak.ranking import StreakAggregator
from friendstreak.registry import RelationshipRegistry
from friendstreak.store import MemoryGraphStore
from friendstreak.streaks import StreakEngine

TODAY = date(2024, 5, 10)


class RecordingNotifier(Notifier):

    def __init__(self):
        self.events: list[NotificationEvent] = []

    async def notify(self, event):
        self.events.append(event)

    def of_type(self, event_type):
        return [e for e in self.events if e.type == event_type]


class FailingNotifier(Notifier):

    async def notify(self, event):
        raise ConnectionError('notification service down')


class FakeProfiles(ProfileClient):
    """Names from a dict; ids in `broken` raise, ids in `slow` never answer in time"""

    def __init__(self, names=None, broken=(), slow=()):
        self.names = names or {}
        self.broken = set(broken)
        self.slow = set(slow)

    async def display_name(self, student_id):
        if student_id in self.broken:
            raise RuntimeError(f'profile lookup failed for {student_id}')
        if student_id in self.slow:
            await asyncio.sleep(5)
        return self.names.get(student_id, student_id.title())


class FakeSchedule(ScheduleClient):

    def __init__(self, turns=None, broken=()):
        self.turns = turns or {}
        self.broken = set(broken)

    async def are_in_same_cohort(self, student_id1, student_id2, on=None):
        return True

    async def current_schedule(self, student_id):
        if student_id in self.broken:
            raise RuntimeError('turns service down')
        return self.turns.get(student_id)


@pytest.fixture
def store():
    return MemoryGraphStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def schedule():
    return StaticScheduleClient()


@pytest.fixture
def registry(store, schedule, notifier):
    return RelationshipRegistry(store, schedule=schedule, notifier=notifier)


@pytest.fixture
def engine(store, notifier):
    return StreakEngine(store, notifier=notifier, clock=lambda: TODAY)


@pytest.fixture
def profiles():
    return FakeProfiles({'ana': 'Ana Ruiz', 'ben': 'Ben Ortiz', 'cai': 'Cai Lin'})


@pytest.fixture
def aggregator(registry, engine, profiles):
    return StreakAggregator(registry, engine, profiles=profiles, schedule=FakeSchedule(), lookup_timeout=0.2)


@pytest.fixture
def befriend(registry):
    """Send and accept a request, returning the friendship"""
    async def _befriend(a, b):
        request = await registry.send_request(a, b)
        return await registry.accept_request(request.id)
    return _befriend
