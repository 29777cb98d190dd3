"""
Read-only access to the service_providers table.

The application never writes provider rows; everything here is a SELECT.
`SupabaseProviderStore` talks to the hosted backend through the Supabase SDK,
`servicefinder.db.mock_db.MockProviderStore` is the in-memory stand-in.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import Client, create_client

from servicefinder.core.config import Settings
from servicefinder.models.provider import ServiceProvider
from servicefinder.services.directory import SEARCH_FIELDS, ProviderQuery, unique_professions

logger = logging.getLogger(__name__)


class ProviderQueryError(Exception):
    """A backend read failed. Never retried; the caller decides what to show."""


class ProviderStore(ABC):
    @abstractmethod
    async def search(self, query: ProviderQuery) -> List[ServiceProvider]:
        """Rows matching the query, in the backend's default order."""

    @abstractmethod
    async def distinct_professions(self) -> List[str]:
        """Every profession present in the table, deduplicated and sorted."""

    @abstractmethod
    async def get(self, provider_id: str) -> Optional[ServiceProvider]:
        ...


def ilike_pattern(term: str) -> str:
    """Quote a search term for a PostgREST or=() filter so commas and parens stay literal."""
    escaped = term.replace("\\", "\\\\").replace('"', '\\"')
    return f'"*{escaped}*"'


def search_filter(term: str) -> str:
    pattern = ilike_pattern(term)
    return ",".join(f"{field}.ilike.{pattern}" for field in SEARCH_FIELDS)


class SupabaseProviderStore(ProviderStore):
    def __init__(self, client: Client, table: str = "service_providers"):
        self.client = client
        self.table = table

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseProviderStore":
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
        return cls(client, table=settings.PROVIDERS_TABLE)

    async def _execute(self, build: Callable[[], Any], label: str) -> List[dict]:
        # The SDK client is blocking; keep it off the event loop
        try:
            response = await asyncio.to_thread(lambda: build().execute())
        except (APIError, httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.error(f"Supabase {label} failed: {e}")
            raise ProviderQueryError(f"{label} failed") from e
        return response.data or []

    async def search(self, query: ProviderQuery) -> List[ServiceProvider]:
        def build():
            request = self.client.table(self.table).select("*")
            if query.search_term:
                request = request.or_(search_filter(query.search_term))
            if query.profession:
                request = request.eq("profession", query.profession)
            return request

        rows = await self._execute(build, "providers.search")
        logger.debug(f"providers.search {query!r} -> {len(rows)} rows")
        return _parse_rows(rows)

    async def distinct_professions(self) -> List[str]:
        rows = await self._execute(
            lambda: self.client.table(self.table).select("profession"),
            "providers.professions",
        )
        return unique_professions(row.get("profession") for row in rows)

    async def get(self, provider_id: str) -> Optional[ServiceProvider]:
        rows = await self._execute(
            lambda: self.client.table(self.table).select("*").eq("id", provider_id).limit(1),
            "providers.get",
        )
        parsed = _parse_rows(rows)
        return parsed[0] if parsed else None


def _parse_rows(rows: List[dict]) -> List[ServiceProvider]:
    try:
        return [ServiceProvider.model_validate(row) for row in rows]
    except ValidationError as e:
        logger.error(f"Unexpected service_providers row shape: {e}")
        raise ProviderQueryError("malformed provider row") from e
