"""
Tests for the provider API endpoints and the live search socket.
"""
import pytest

from servicefinder.api.endpoints.providers import contact_provider
from servicefinder.db.mock_db import PROVIDERS
from servicefinder.models.provider import PLACEHOLDER_PHOTO

RAJESH = PROVIDERS[0]["id"]
SURESH = PROVIDERS[1]["id"]


class TestHealth:
    def test_health(self, client, base_url):
        response = client.get(f"{base_url}/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestProfessions:
    def test_sorted_distinct(self, client, base_url):
        response = client.get(f"{base_url}/providers/professions")
        assert response.status_code == 200
        assert response.json() == ["Carpentry", "Electrical Services", "Plumbing"]

    def test_backend_failure_returns_empty(self, client, base_url, store):
        store.fail_professions = True
        response = client.get(f"{base_url}/providers/professions")
        assert response.status_code == 200
        assert response.json() == []


class TestSuggestions:
    def test_substring_match(self, client, base_url):
        response = client.get(f"{base_url}/providers/suggestions?q=elect")
        assert response.json() == ["Electrical Services"]

    def test_empty_text(self, client, base_url, store):
        response = client.get(f"{base_url}/providers/suggestions?q=")
        assert response.json() == []
        assert "professions" not in store.calls


class TestSearch:
    def test_no_filters_skips_backend(self, client, base_url, store):
        response = client.get(f"{base_url}/providers/search")
        assert response.status_code == 200
        assert response.json() == []
        assert "search" not in store.calls

    def test_free_text(self, client, base_url):
        response = client.get(f"{base_url}/providers/search", params={"q": "plumb"})
        assert response.status_code == 200
        data = response.json()
        assert [p["id"] for p in data] == [SURESH]
        assert data[0]["icon"] == "droplets"
        assert data[0]["contact_url"] == "tel:9876543212"
        assert data[0]["photo"] == "https://example.com/photos/suresh.jpg"

    def test_specialization_match(self, client, base_url):
        response = client.get(f"{base_url}/providers/search", params={"q": "FURNITURE"})
        assert [p["full_name"] for p in response.json()] == ["Vikram Joshi"]

    def test_profession_filter(self, client, base_url):
        response = client.get(
            f"{base_url}/providers/search", params={"profession": "Electrical Services"}
        )
        data = response.json()
        assert len(data) == 2
        assert all(p["profession"] == "Electrical Services" for p in data)
        assert all(p["photo"] == PLACEHOLDER_PHOTO for p in data)

    def test_text_and_profession_combined(self, client, base_url):
        response = client.get(
            f"{base_url}/providers/search", params={"q": "meena", "profession": "Electrical Services"}
        )
        assert [p["full_name"] for p in response.json()] == ["Meena Iyer"]

        response = client.get(
            f"{base_url}/providers/search", params={"q": "Rajesh", "profession": "Plumbing"}
        )
        assert response.json() == []

    def test_backend_failure(self, client, base_url, store):
        store.fail_search = True
        response = client.get(f"{base_url}/providers/search", params={"q": "plumb"})
        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to search service providers"


class TestProviderDetail:
    def test_read_provider(self, client, base_url):
        response = client.get(f"{base_url}/providers/{RAJESH}")
        assert response.status_code == 200
        data = response.json()
        assert data["full_name"] == "Rajesh Kumar"
        assert data["icon"] == "zap"

    def test_unknown_provider(self, client, base_url):
        response = client.get(f"{base_url}/providers/does-not-exist")
        assert response.status_code == 404
        assert response.json()["detail"] == "Service provider not found"

    # The dialer location is not an http URL, so the redirect is checked on the
    # route itself rather than through the HTTP client.
    @pytest.mark.asyncio
    async def test_contact_redirects_to_dialer(self, store):
        response = await contact_provider(SURESH, store=store)
        assert response.status_code == 303
        assert response.headers["location"] == "tel:9876543212"
        assert "get" in store.calls

    def test_contact_unknown_provider(self, client, base_url):
        response = client.get(f"{base_url}/providers/nope/contact")
        assert response.status_code == 404
        assert response.json()["detail"] == "Service provider not found"


def receive_until(ws, predicate, limit=20):
    for _ in range(limit):
        message = ws.receive_json()
        if predicate(message):
            return message
    raise AssertionError("expected message never arrived")


def settled_state(message):
    return message["type"] == "state" and not message["state"]["loading"] and message["state"]["workers"]


class TestLiveSession:
    def test_initial_state(self, client, base_url):
        with client.websocket_connect(f"{base_url}/providers/live") as ws:
            message = ws.receive_json()
            assert message["type"] == "state"
            assert message["state"]["professions"] == ["Carpentry", "Electrical Services", "Plumbing"]
            assert message["state"]["workers"] == []
            assert message["state"]["background"]["description"]

    def test_search_streams_results(self, client, base_url):
        with client.websocket_connect(f"{base_url}/providers/live") as ws:
            ws.receive_json()
            ws.send_json({"action": "search", "value": "plumb"})
            state = receive_until(ws, settled_state)["state"]
            assert [w["id"] for w in state["workers"]] == [SURESH]
            assert state["suggestions"] == ["Plumbing"]

    def test_profile_and_contact(self, client, base_url):
        with client.websocket_connect(f"{base_url}/providers/live") as ws:
            ws.receive_json()
            ws.send_json({"action": "toggle_profession", "value": "Electrical Services"})
            receive_until(ws, settled_state)

            ws.send_json({"action": "open_profile", "value": RAJESH})
            opened = receive_until(ws, lambda m: m["type"] == "state" and m["state"]["selected_provider"])
            assert opened["state"]["selected_provider"]["full_name"] == "Rajesh Kumar"

            ws.send_json({"action": "contact", "value": RAJESH})
            assert ws.receive_json() == {"type": "contact", "url": "tel:9876543210"}

            ws.send_json({"action": "close_profile"})
            closed = ws.receive_json()
            assert closed["state"]["selected_provider"] is None
            assert len(closed["state"]["workers"]) == 2

    def test_invalid_commands_keep_socket_open(self, client, base_url):
        with client.websocket_connect(f"{base_url}/providers/live") as ws:
            ws.receive_json()
            ws.send_text("not json")
            assert ws.receive_json()["type"] == "error"

            ws.send_json({"action": "search"})
            assert ws.receive_json() == {"type": "error", "detail": "'search' requires a value"}

            ws.send_json({"action": "open_profile", "value": "nope"})
            assert ws.receive_json() == {"type": "error", "detail": "Service provider not found"}

            ws.send_json({"action": "hide_suggestions"})
            assert ws.receive_json()["type"] == "state"

    def test_restores_page_query(self, client, base_url, store):
        url = f"{base_url}/providers/live?q=plumb&profession=Plumbing"
        with client.websocket_connect(url) as ws:
            first = ws.receive_json()["state"]
            assert first["search_term"] == "plumb"
            assert first["selected_profession"] == "Plumbing"
            assert first["loading"] is True
            assert first["show_suggestions"] is False
            state = receive_until(ws, settled_state)["state"]
            assert [w["id"] for w in state["workers"]] == [SURESH]
        assert len(store.queries) == 1

    def test_search_failure_reported_in_state(self, client, base_url, store):
        store.fail_search = True
        with client.websocket_connect(f"{base_url}/providers/live") as ws:
            ws.receive_json()
            ws.send_json({"action": "search", "value": "plumb"})
            failed = receive_until(ws, lambda m: m["type"] == "state" and m["state"]["error"])
            assert failed["state"]["error"] == "Failed to search service providers"
            assert failed["state"]["loading"] is False
