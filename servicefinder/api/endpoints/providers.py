import asyncio
import logging
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from servicefinder.api import deps
from servicefinder.core.config import Settings
from servicefinder.db.provider_store import ProviderQueryError, ProviderStore
from servicefinder.models.provider import ProviderProfile
from servicefinder.models.search import SearchState, SessionCommand
from servicefinder.services.directory import (
    SEARCH_FAILED_MESSAGE,
    ProviderQuery,
    contact_url,
    filter_suggestions,
)
from servicefinder.services.provider_service import get_profile, load_professions, search_profiles
from servicefinder.services.search_session import SearchSession

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND = "Service provider not found"


async def run_search(store: ProviderStore, query: ProviderQuery) -> List[ProviderProfile]:
    try:
        return await search_profiles(store, query)
    except ProviderQueryError as e:
        logger.error(f"Error searching workers: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=SEARCH_FAILED_MESSAGE)


async def load_provider(store: ProviderStore, provider_id: str) -> ProviderProfile:
    try:
        profile = await get_profile(store, provider_id)
    except ProviderQueryError as e:
        logger.error(f"Error loading provider {provider_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to load service provider")
    if profile is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return profile


# ─── Read endpoints ──────────────────────────────────────────────────

@router.get("/professions", response_model=List[str])
async def read_professions(
    store: ProviderStore = Depends(deps.get_store),
) -> Any:
    """Distinct professions, sorted."""
    return await load_professions(store)


@router.get("/suggestions", response_model=List[str])
async def read_suggestions(
    q: str = "",
    store: ProviderStore = Depends(deps.get_store),
) -> Any:
    """Professions matching the typed text."""
    if not q:
        return []
    return filter_suggestions(await load_professions(store), q)


@router.get("/search", response_model=List[ProviderProfile])
async def search_providers(
    q: str = "",
    profession: Optional[str] = Query(default=None),
    store: ProviderStore = Depends(deps.get_store),
) -> Any:
    """Providers whose name, profession or specialization contains `q`, optionally within one profession."""
    return await run_search(store, ProviderQuery(search_term=q, profession=profession or None))


@router.get("/{provider_id}", response_model=ProviderProfile)
async def read_provider(
    provider_id: str,
    store: ProviderStore = Depends(deps.get_store),
) -> Any:
    return await load_provider(store, provider_id)


@router.get("/{provider_id}/contact")
async def contact_provider(
    provider_id: str,
    store: ProviderStore = Depends(deps.get_store),
) -> Any:
    """Hand off to the device dialer."""
    provider = await load_provider(store, provider_id)
    return RedirectResponse(url=contact_url(provider.phone), status_code=status.HTTP_303_SEE_OTHER)


# ─── Live landing view ───────────────────────────────────────────────

@router.websocket("/live")
async def live_search(
    websocket: WebSocket,
    q: str = "",
    profession: Optional[str] = None,
    store: ProviderStore = Depends(deps.get_ws_store),
    settings: Settings = Depends(deps.get_ws_settings),
) -> None:
    """
    One SearchSession per connection; every state change is pushed back as JSON.
    `q` and `profession` carry over the query of the page that opened the socket.
    """
    await websocket.accept()
    send_lock = asyncio.Lock()

    async def send(message: dict) -> None:
        async with send_lock:
            try:
                await websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"Live session send skipped: {e}")

    async def push_state(state: SearchState) -> None:
        await send({"type": "state", "state": state.model_dump(mode="json")})

    session = SearchSession(
        store,
        debounce_seconds=settings.SEARCH_DEBOUNCE_SECONDS,
        rotate_seconds=settings.BACKGROUND_ROTATE_SECONDS,
        variant=settings.LANDING_VARIANT,
        listener=push_state,
    )
    session.restore(q, profession)
    async with session:
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    command = SessionCommand.model_validate_json(raw)
                except ValidationError as e:
                    await send({"type": "error", "detail": f"Invalid command: {e.error_count()} error(s)"})
                    continue
                error = await dispatch(session, command, send)
                if error:
                    await send({"type": "error", "detail": error})
        except WebSocketDisconnect:
            logger.info("Live search session disconnected")


async def dispatch(session: SearchSession, command: SessionCommand, send) -> Optional[str]:
    """Apply one client command. Returns an error message, or None on success."""
    action, value = command.action, command.value
    if action == "hide_suggestions":
        await session.hide_suggestions()
        return None
    if action == "close_profile":
        await session.close_profile()
        return None
    if value is None:
        return f"'{action}' requires a value"

    if action == "search":
        await session.set_search_term(value)
    elif action == "toggle_profession":
        await session.toggle_profession(value)
    elif action == "choose_suggestion":
        await session.choose_suggestion(value)
    elif action == "open_profile":
        if not await session.open_profile(value):
            return NOT_FOUND
    elif action == "contact":
        url = session.contact(value)
        if url is None:
            return NOT_FOUND
        await send({"type": "contact", "url": url})
    return None
