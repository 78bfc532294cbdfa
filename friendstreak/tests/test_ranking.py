import asyncio
from datetime import date, timedelta

import pytest

from friendstreak.errors import InvalidArgument, StoreUnavailable
from friendstreak.ranking import StreakAggregator
from friendstreak.schemas.friendships import StreakStatus
from friendstreak.store import FRIENDS_WITH
from friendstreak.store.memory import MemoryTransaction

from .conftest import TODAY, FakeProfiles, FakeSchedule


async def _seed(store, rows):
    async with store.transaction() as tx:
        for friendship_id, a, b, count in rows:
            await tx.create_edge(FRIENDS_WITH, a, b, {
                'id': friendship_id,
                'streak_count': count,
                'last_attendance_date': TODAY if count else None,
            })


@pytest.mark.asyncio
async def test_ranking_orders_by_count_then_id(store, aggregator):
    await _seed(store, [('z', 'ana', 'cai', 3), ('y', 'ben', 'cai', 5), ('x', 'ana', 'ben', 5)])

    ranking = await aggregator.global_ranking(2)
    assert [(r.friendship_id, r.streak_count) for r in ranking] == [('x', 5), ('y', 5)]
    assert ranking[0].pair_ids == ('ana', 'ben')
    assert (ranking[0].student1_name, ranking[0].student2_name) == ('Ana Ruiz', 'Ben Ortiz')

    full = await aggregator.global_ranking()
    assert [r.friendship_id for r in full] == ['x', 'y', 'z']


@pytest.mark.asyncio
@pytest.mark.parametrize('limit', [0, -3, True, '5', 2.5])
async def test_ranking_limit_must_be_positive_int(aggregator, limit):
    with pytest.raises(InvalidArgument):
        await aggregator.global_ranking(limit)


@pytest.mark.asyncio
async def test_ranking_survives_failed_name_lookups(store, registry, engine):
    await _seed(store, [('x', 'ana', 'ben', 4), ('y', 'cai', 'dan', 2)])
    aggregator = StreakAggregator(registry, engine, profiles=FakeProfiles(broken={'ben'}, slow={'dan'}),
                                  lookup_timeout=0.05)

    ranking = await aggregator.global_ranking()
    assert [(r.student1_name, r.student2_name) for r in ranking] == [('Ana', 'Student ben'), ('Cai', 'Student dan')]


class ReadsFail(MemoryTransaction):

    async def read_edges(self, kind, **matcher):
        raise StoreUnavailable('read failed')

    async def query_ordered(self, kind, sort_key, direction='desc', limit=None, tiebreak='id'):
        raise StoreUnavailable('read failed')


@pytest.mark.asyncio
async def test_failed_primary_query_is_not_masked(store, aggregator, befriend):
    await befriend('ana', 'ben')
    store.transaction_class = ReadsFail

    with pytest.raises(StoreUnavailable):
        await aggregator.global_ranking()
    with pytest.raises(StoreUnavailable):
        await aggregator.student_history('ana')
    with pytest.raises(StoreUnavailable):
        await aggregator.friends_overview('ana')


class CancelledProfiles(FakeProfiles):

    async def display_name(self, student_id):
        if student_id == 'ben':
            raise asyncio.CancelledError()
        return await super().display_name(student_id)


@pytest.mark.asyncio
async def test_cancelled_name_lookup_gets_placeholder(store, registry, engine):
    await _seed(store, [('x', 'ana', 'ben', 4)])
    aggregator = StreakAggregator(registry, engine, profiles=CancelledProfiles())

    (entry,) = await aggregator.global_ranking()
    assert (entry.student1_name, entry.student2_name) == ('Ana', 'Student ben')


@pytest.mark.asyncio
async def test_student_history(aggregator, engine, befriend):
    with_ben = await befriend('ana', 'ben')
    with_cai = await befriend('cai', 'ana')
    await befriend('ana', 'dan')
    await engine.record_attendance(with_ben.id, TODAY - timedelta(days=1))
    await engine.record_attendance(with_ben.id, TODAY)
    await engine.record_attendance(with_cai.id, TODAY - timedelta(days=4))

    history = {h.friend_id: h for h in await aggregator.student_history('ana')}

    assert set(history) == {'ben', 'cai', 'dan'}
    assert history['ben'].streak_count == 2
    assert history['ben'].status == StreakStatus.ACTIVE
    assert history['ben'].friend_name == 'Ben Ortiz'
    assert history['ben'].start_date == with_ben.created_at
    assert history['cai'].status == StreakStatus.BROKEN
    assert history['cai'].last_attendance_date == TODAY - timedelta(days=4)
    assert history['dan'].status == StreakStatus.NEW
    assert history['dan'].friend_name == 'Dan'


@pytest.mark.asyncio
async def test_history_status_uses_reference_date(aggregator, engine, befriend):
    friendship = await befriend('ana', 'ben')
    await engine.record_attendance(friendship.id, date(2024, 1, 1))

    (entry,) = await aggregator.student_history('ben', reference_date=date(2024, 1, 2))
    assert entry.status == StreakStatus.ACTIVE
    (entry,) = await aggregator.student_history('ben')
    assert entry.status == StreakStatus.BROKEN


@pytest.mark.asyncio
async def test_history_substitutes_placeholder_names(registry, engine, befriend):
    await befriend('ana', 'ben')
    await befriend('ana', 'cai')
    aggregator = StreakAggregator(registry, engine, profiles=FakeProfiles(broken={'ben'}))

    names = {h.friend_id: h.friend_name for h in await aggregator.student_history('ana')}
    assert names == {'ben': 'Student ben', 'cai': 'Cai'}


@pytest.mark.asyncio
async def test_history_for_student_without_friends(aggregator):
    assert await aggregator.student_history('nobody') == []


@pytest.mark.asyncio
async def test_friends_overview(registry, engine, befriend):
    await befriend('ana', 'ben')
    await befriend('ana', 'cai')
    schedule = FakeSchedule(turns={'ben': {'turnId': 't1', 'day': 'MONDAY'}}, broken={'cai'})
    aggregator = StreakAggregator(registry, engine, schedule=schedule)

    overview = {o.friend_id: o for o in await aggregator.friends_overview('ana')}
    assert overview['ben'].current_turn == {'turnId': 't1', 'day': 'MONDAY'}
    assert overview['cai'].current_turn is None
    assert overview['cai'].friendship.pair == ('ana', 'cai')
