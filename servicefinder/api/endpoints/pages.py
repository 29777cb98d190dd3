import logging
from pathlib import Path
from typing import Any, List, Optional
from urllib.parse import urlencode
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from servicefinder.api import deps
from servicefinder.core.config import Settings
from servicefinder.db.provider_store import ProviderQueryError, ProviderStore
from servicefinder.models.provider import ProviderProfile
from servicefinder.services.directory import (
    NO_RESULTS_MESSAGE,
    SEARCH_FAILED_MESSAGE,
    ProviderQuery,
    filter_suggestions,
    toggle_profession,
)
from servicefinder.services.provider_service import get_profile, load_professions, search_profiles
from servicefinder.services.search_session import BACKGROUND_IMAGES

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent.parent / "templates"))

router = APIRouter()


def landing_url(q: str = "", profession: Optional[str] = None, provider: Optional[str] = None) -> str:
    params = {k: v for k, v in (("q", q), ("profession", profession), ("provider", provider)) if v}
    return f"/?{urlencode(params)}" if params else "/"


async def pick_provider(
    store: ProviderStore, workers: List[ProviderProfile], provider_id: Optional[str]
) -> Optional[ProviderProfile]:
    if not provider_id:
        return None
    for worker in workers:
        if worker.id == provider_id:
            return worker
    # Deep link to a provider outside the current results
    try:
        return await get_profile(store, provider_id)
    except ProviderQueryError as e:
        logger.error(f"Error loading provider {provider_id}: {e}")
        return None


@router.get("/", response_class=HTMLResponse)
async def landing(
    request: Request,
    q: str = "",
    profession: Optional[str] = None,
    provider: Optional[str] = None,
    store: ProviderStore = Depends(deps.get_store),
    settings: Settings = Depends(deps.get_settings),
) -> Any:
    """Landing page: hero, search box, category chips, results and the profile overlay."""
    professions = await load_professions(store)
    query = ProviderQuery(search_term=q, profession=profession or None)

    workers: List[ProviderProfile] = []
    error = None
    try:
        workers = await search_profiles(store, query)
    except ProviderQueryError as e:
        logger.error(f"Error searching workers: {e}")
        error = SEARCH_FAILED_MESSAGE

    detailed = settings.LANDING_VARIANT == "detailed"
    selected = await pick_provider(store, workers, provider) if detailed else None

    categories = [
        {
            "name": name,
            "active": name == query.profession,
            "url": landing_url(q, toggle_profession(query.profession, name)),
        }
        for name in professions
    ]

    return templates.TemplateResponse(
        request,
        "landing.html",
        {
            "title": settings.PROJECT_NAME,
            "search_term": q,
            "selected_profession": query.profession,
            "suggestions": filter_suggestions(professions, q),
            "categories": categories,
            "workers": workers,
            "error": error,
            "empty_message": NO_RESULTS_MESSAGE if not query.is_empty and not workers and not error else None,
            "no_results_message": NO_RESULTS_MESSAGE,
            "selected_provider": selected,
            "close_url": landing_url(q, query.profession),
            "profile_urls": {w.id: landing_url(q, query.profession, w.id) for w in workers},
            "variant": settings.LANDING_VARIANT,
            "background": BACKGROUND_IMAGES[0],
            "live_url": f"{settings.API_V1_STR}/providers/live",
        },
    )


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    settings: Settings = Depends(deps.get_settings),
) -> Any:
    return templates.TemplateResponse(
        request, "login.html", {"title": settings.PROJECT_NAME, "email": "", "notice": None}
    )


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    settings: Settings = Depends(deps.get_settings),
) -> Any:
    """Accepts the form but does not authenticate anyone yet."""
    logger.info(f"Login submitted for {email}")
    return templates.TemplateResponse(
        request,
        "login.html",
        {
            "title": settings.PROJECT_NAME,
            "email": email,
            "notice": "Sign-in is not available yet.",
        },
    )
