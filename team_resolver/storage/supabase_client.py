# team_resolver/storage/supabase_client.py
from typing import Optional

from loguru import logger
from supabase import create_async_client, AsyncClient

from team_resolver.config.settings import settings

# Module-level storage for the async client instance
_async_supabase_client: Optional[AsyncClient] = None


async def initialize_supabase() -> Optional[AsyncClient]:
    """Initializes the global ASYNC Supabase client and returns it.

    Returns None when Supabase is not configured or the client cannot be
    created; the resolver then runs without the authoritative store tier.
    """
    global _async_supabase_client
    if _async_supabase_client:
        logger.debug("Async Supabase client already initialized.")
        return _async_supabase_client

    if not settings.supabase_url or not settings.supabase_key:
        logger.warning(
            "Supabase URL or Key not configured; team registry search disabled."
        )
        return None

    logger.debug(
        f"Attempting to initialize Async Supabase client with URL: {settings.supabase_url}"
    )

    try:
        client: AsyncClient = await create_async_client(
            settings.supabase_url, settings.supabase_key
        )
        _async_supabase_client = client
        logger.success("Async Supabase client initialized successfully.")
        return client
    except Exception as e:
        logger.exception(f"Failed to initialize Async Supabase client: {e}")
        return None

