"""
Pure helpers behind the landing page: suggestions, category toggle,
query predicates and contact links.
"""
from typing import Iterable, List, Optional
from pydantic import BaseModel

SEARCH_FIELDS = ("full_name", "profession", "specialization")

SERVICE_ICONS = {
    "Electrical Services": "zap",
    "Plumbing": "droplets",
    "Carpentry": "hammer",
}
DEFAULT_ICON = "wrench"

SEARCH_FAILED_MESSAGE = "Failed to search service providers"
NO_RESULTS_MESSAGE = "No service providers found. Try a different search term or category."


class ProviderQuery(BaseModel):
    search_term: str = ""
    profession: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.search_term and not self.profession


def filter_suggestions(professions: Iterable[str], search_term: str) -> List[str]:
    """Professions containing the search text, case-insensitively, in source order."""
    if not search_term:
        return []
    needle = search_term.lower()
    return [item for item in professions if needle in item.lower()]


def toggle_profession(current: Optional[str], clicked: str) -> Optional[str]:
    """Clicking the selected category clears it; any other replaces it."""
    return None if current == clicked else clicked


def unique_professions(values: Iterable[Optional[str]]) -> List[str]:
    return sorted({v for v in values if v})


def service_icon(profession: str) -> str:
    return SERVICE_ICONS.get(profession, DEFAULT_ICON)


def contact_url(phone: str) -> str:
    return f"tel:{phone}"


def matches(row: dict, query: ProviderQuery) -> bool:
    """
    Evaluate a query against a plain row the way the backend does:
    ilike substring across SEARCH_FIELDS OR'd together, AND an exact
    profession match when one is selected.
    """
    if query.search_term:
        needle = query.search_term.lower()
        if not any(needle in (row.get(field) or "").lower() for field in SEARCH_FIELDS):
            return False
    if query.profession and row.get("profession") != query.profession:
        return False
    return True
