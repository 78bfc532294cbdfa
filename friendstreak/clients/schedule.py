"""
Turn/schedule validation service.

Friend requests are only allowed between students that share a cohort
(class turn). The service is external; the registry only sees this contract.
"""
import logging
from datetime import date
import httpx

from ..errors import ExternalServiceUnavailable

logger = logging.getLogger(__name__)


class ScheduleClient:

    async def are_in_same_cohort(self, student_id1: str, student_id2: str, on: date | None = None) -> bool:
        raise NotImplementedError

    async def current_schedule(self, student_id: str) -> dict | None:
        raise NotImplementedError

    async def close(self):
        pass


class StaticScheduleClient(ScheduleClient):
    """Answers every cohort check the same way; the default when no turns service is configured"""

    def __init__(self, same_cohort: bool = True, schedule: dict | None = None):
        self.same_cohort = same_cohort
        self.schedule = schedule

    async def are_in_same_cohort(self, student_id1, student_id2, on=None):
        return self.same_cohort

    async def current_schedule(self, student_id):
        return self.schedule


class HttpScheduleClient(ScheduleClient):

    def __init__(self, base_url: str, timeout: float = 5.0, client: httpx.AsyncClient | None = None):
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def are_in_same_cohort(self, student_id1, student_id2, on=None):
        params = {'student1': student_id1, 'student2': student_id2}
        if on is not None:
            params['date'] = on.isoformat()
        try:
            response = await self.client.get('/api/turns/same-turn', params=params)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning({'msg': 'turns_check_failed', 'error': str(e)})
            raise ExternalServiceUnavailable('turns management service unavailable') from e
        if not isinstance(body, dict):
            raise ExternalServiceUnavailable('turns management service sent an unexpected body')
        return bool(body.get('same_turn'))

    async def current_schedule(self, student_id):
        try:
            response = await self.client.get(f'/api/turns/students/{student_id}/current')
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalServiceUnavailable('turns management service unavailable') from e

    async def close(self):
        await self.client.aclose()
