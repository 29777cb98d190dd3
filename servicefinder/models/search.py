from pydantic import BaseModel
from typing import List, Literal, Optional
from servicefinder.models.provider import ProviderProfile


class BackgroundImage(BaseModel):
    url: str
    description: str


class SearchState(BaseModel):
    """Snapshot of one landing-page session, pushed to the client after every change."""
    search_term: str = ""
    selected_profession: Optional[str] = None
    professions: List[str] = []
    suggestions: List[str] = []
    show_suggestions: bool = False
    workers: List[ProviderProfile] = []
    loading: bool = False
    error: Optional[str] = None
    selected_provider: Optional[ProviderProfile] = None
    background: Optional[BackgroundImage] = None
    variant: str = "detailed"


class SessionCommand(BaseModel):
    action: Literal[
        "search",
        "toggle_profession",
        "choose_suggestion",
        "hide_suggestions",
        "open_profile",
        "close_profile",
        "contact",
    ]
    value: Optional[str] = None
