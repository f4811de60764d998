from supabase import acreate_client, AsyncClient
from studysync.config import settings


class SupabaseClient:
    _client: AsyncClient = None

    @classmethod
    async def get_client(cls) -> AsyncClient:
        """Shared async client; the auth session it holds is the one every study group call runs under."""
        if cls._client is None:
            cls._client = await acreate_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def reset_client(cls):
        cls._client = None


async def get_supabase() -> AsyncClient:
    return await SupabaseClient.get_client()
