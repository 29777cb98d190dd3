from fastapi import Request, WebSocket
from servicefinder.core.config import Settings
from servicefinder.db.provider_store import ProviderStore


def get_store(request: Request) -> ProviderStore:
    """The provider store created at startup."""
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ws_store(websocket: WebSocket) -> ProviderStore:
    return websocket.app.state.store


def get_ws_settings(websocket: WebSocket) -> Settings:
    return websocket.app.state.settings
