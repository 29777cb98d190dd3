import logging
from typing import List, Optional
from servicefinder.db.provider_store import ProviderQueryError, ProviderStore
from servicefinder.models.provider import ProviderProfile
from servicefinder.services.directory import ProviderQuery

logger = logging.getLogger(__name__)


async def load_professions(store: ProviderStore) -> List[str]:
    """Category list, or an empty one if the backend is unavailable."""
    try:
        return await store.distinct_professions()
    except ProviderQueryError as e:
        logger.error(f"Error fetching professions: {e}")
        return []


async def search_profiles(store: ProviderStore, query: ProviderQuery) -> List[ProviderProfile]:
    """
    Run a provider search. An empty query never reaches the backend.
    Raises ProviderQueryError when the backend read fails.
    """
    if query.is_empty:
        return []
    providers = await store.search(query)
    return [ProviderProfile.from_provider(p) for p in providers]


async def get_profile(store: ProviderStore, provider_id: str) -> Optional[ProviderProfile]:
    provider = await store.get(provider_id)
    return ProviderProfile.from_provider(provider) if provider else None
