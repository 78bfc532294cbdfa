"""Student display names from the users service, used only to decorate read views"""
import httpx


def placeholder_name(student_id: str) -> str:
    return f'Student {student_id}'


class ProfileClient:

    async def display_name(self, student_id: str) -> str:
        raise NotImplementedError

    async def close(self):
        pass


class PlaceholderProfileClient(ProfileClient):

    async def display_name(self, student_id):
        return placeholder_name(student_id)


class HttpProfileClient(ProfileClient):

    def __init__(self, base_url: str, timeout: float = 5.0, client: httpx.AsyncClient | None = None):
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def display_name(self, student_id):
        response = await self.client.get(f'/profile/{student_id}')
        response.raise_for_status()
        return response.json().get('name') or placeholder_name(student_id)

    async def close(self):
        await self.client.aclose()
