import json
from datetime import date

import httpx
import pytest

from friendstreak.clients import (
    HttpNotifier,
    HttpProfileClient,
    HttpScheduleClient,
    KafkaNotifier,
    NotificationEvent,
    deliver,
)
from friendstreak.errors import ExternalServiceUnavailable, StoreUnavailable


def _client(handler, base_url='http://svc'):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=base_url)


@pytest.mark.asyncio
async def test_schedule_same_turn_query():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={'same_turn': request.url.params['student2'] == 'ben'})

    client = HttpScheduleClient('http://svc', client=_client(handler))
    assert await client.are_in_same_cohort('ana', 'ben', date(2024, 5, 1)) is True
    assert seen == {'student1': 'ana', 'student2': 'ben', 'date': '2024-05-01'}
    assert await client.are_in_same_cohort('ana', 'cai') is False
    await client.close()


@pytest.mark.asyncio
async def test_schedule_outage_is_unavailable_not_a_refusal():
    client = HttpScheduleClient('http://svc', client=_client(lambda request: httpx.Response(503)))
    with pytest.raises(ExternalServiceUnavailable) as exc:
        await client.are_in_same_cohort('ana', 'ben')
    assert isinstance(exc.value, StoreUnavailable)


@pytest.mark.asyncio
async def test_current_schedule():
    def handler(request):
        if request.url.path.endswith('/ana/current'):
            return httpx.Response(200, json={'turnId': 't1'})
        return httpx.Response(404)

    client = HttpScheduleClient('http://svc', client=_client(handler))
    assert await client.current_schedule('ana') == {'turnId': 't1'}
    assert await client.current_schedule('ben') is None


@pytest.mark.asyncio
async def test_schedule_garbled_body_is_unavailable():
    client = HttpScheduleClient('http://svc', client=_client(lambda request: httpx.Response(200, text='<html>oops')))
    with pytest.raises(ExternalServiceUnavailable):
        await client.are_in_same_cohort('ana', 'ben')
    with pytest.raises(ExternalServiceUnavailable):
        await client.current_schedule('ana')


@pytest.mark.asyncio
async def test_http_notifier_posts_event():
    posted = []

    def handler(request):
        posted.append((request.url.path, json.loads(request.content)))
        return httpx.Response(202)

    notifier = HttpNotifier('http://svc', client=_client(handler))
    await notifier.notify(NotificationEvent(type='streak.updated', recipient_id='ana', payload={'streak_count': 3}))
    assert posted == [('/events', {'type': 'streak.updated', 'recipient_id': 'ana', 'payload': {'streak_count': 3}})]


@pytest.mark.asyncio
async def test_deliver_swallows_failures():
    notifier = HttpNotifier('http://svc', client=_client(lambda request: httpx.Response(500)))
    await deliver(notifier, NotificationEvent(type='friend_request.received', recipient_id='ben'))

    # never started, so publishing fails
    await deliver(KafkaNotifier('localhost:9092', 'notifications'), NotificationEvent(type='x', recipient_id='ben'))


@pytest.mark.asyncio
async def test_profile_names():
    def handler(request):
        if request.url.path == '/profile/ana':
            return httpx.Response(200, json={'name': 'Ana Ruiz'})
        if request.url.path == '/profile/ben':
            return httpx.Response(200, json={})
        return httpx.Response(404)

    profiles = HttpProfileClient('http://svc', client=_client(handler))
    assert await profiles.display_name('ana') == 'Ana Ruiz'
    assert await profiles.display_name('ben') == 'Student ben'
    with pytest.raises(httpx.HTTPStatusError):
        await profiles.display_name('cai')
