import asyncio
from typing import Dict, List, Optional
from servicefinder.db.provider_store import ProviderQueryError, ProviderStore
from servicefinder.models.provider import ServiceProvider
from servicefinder.services.directory import ProviderQuery, matches, unique_professions

# Sample rows shaped like the hosted service_providers table
PROVIDERS: List[Dict] = [
    {
        "id": "8c1f6a52-1d7e-4a53-9b0e-0f3c2a1d0001",
        "full_name": "Rajesh Kumar",
        "profession": "Electrical Services",
        "experience_years": 10,
        "specialization": "Residential and commercial wiring",
        "availability": "Mon-Sat, 9am-6pm",
        "age": 38,
        "phone": "9876543210",
        "location": "MG Road, Bangalore",
        "photo_url": None,
    },
    {
        "id": "8c1f6a52-1d7e-4a53-9b0e-0f3c2a1d0002",
        "full_name": "Suresh Reddy",
        "profession": "Plumbing",
        "experience_years": 7,
        "specialization": "Leak repairs and pipe fitting",
        "availability": "Weekdays",
        "age": 34,
        "phone": "9876543212",
        "location": "Indiranagar, Bangalore",
        "photo_url": "https://example.com/photos/suresh.jpg",
    },
    {
        "id": "8c1f6a52-1d7e-4a53-9b0e-0f3c2a1d0003",
        "full_name": "Vikram Joshi",
        "profession": "Carpentry",
        "experience_years": 15,
        "specialization": "Custom furniture",
        "availability": None,
        "age": 45,
        "phone": "9876543214",
        "location": "Jayanagar, Bangalore",
        "photo_url": None,
    },
    {
        "id": "8c1f6a52-1d7e-4a53-9b0e-0f3c2a1d0004",
        "full_name": "Meena Iyer",
        "profession": "Electrical Services",
        "experience_years": 4,
        "specialization": None,
        "availability": "Evenings",
        "age": 29,
        "phone": "9876543215",
        "location": "Whitefield, Bangalore",
        "photo_url": None,
    },
]


class MockProviderStore(ProviderStore):
    """
    In-memory provider table. Evaluates queries with the same predicates the
    hosted backend applies, records every call, and can be told to fail or to
    stall specific search terms so callers' ordering logic can be exercised.
    """

    def __init__(self, rows: Optional[List[Dict]] = None):
        self.rows = [dict(r) for r in (PROVIDERS if rows is None else rows)]
        self.calls: List[str] = []
        self.queries: List[ProviderQuery] = []
        self.fail_search = False
        self.fail_professions = False
        self.delays: Dict[str, float] = {}

    async def search(self, query: ProviderQuery) -> List[ServiceProvider]:
        self.calls.append("search")
        self.queries.append(query)
        delay = self.delays.get(query.search_term, 0)
        if delay:
            await asyncio.sleep(delay)
        if self.fail_search:
            raise ProviderQueryError("providers.search failed")
        return [ServiceProvider.model_validate(r) for r in self.rows if matches(r, query)]

    async def distinct_professions(self) -> List[str]:
        self.calls.append("professions")
        if self.fail_professions:
            raise ProviderQueryError("providers.professions failed")
        return unique_professions(r.get("profession") for r in self.rows)

    async def get(self, provider_id: str) -> Optional[ServiceProvider]:
        self.calls.append("get")
        for r in self.rows:
            if str(r["id"]) == provider_id:
                return ServiceProvider.model_validate(r)
        return None
