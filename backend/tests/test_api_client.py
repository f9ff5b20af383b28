"""
Notes Gateway - Notes API Client Unit Tests
=============================================

What:  NotesApiClient against httpx.MockTransport (no server, no network).

What we test:
    ✅ Public calls (list, create, update, delete) send no credential
    ✅ Private calls attach the cached bearer token, refreshing on request
    ✅ Admin calls (list all, delete) attach X-API-Key and refuse to run without one
    ✅ Non-2xx responses raise ApiRequestError with the status code
"""

import json

import httpx
import pytest
import pytest_asyncio

from notes_gateway.client.api import NotesApiClient
from notes_gateway.exceptions import ApiRequestError, InvalidApiKeyError

from conftest import FakeIdentitySession


class RecordingTransport:
    """Builds an httpx.MockTransport that records requests and answers with a fixed status and body."""

    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body if body is not None else []
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.body == b"":
            return httpx.Response(self.status_code)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)


@pytest.fixture
def recorder():
    return RecordingTransport()


@pytest_asyncio.fixture
async def ready_manager(make_manager):
    manager = make_manager()
    await manager.initialize()
    return manager


class TestNotesApiClient:

    @pytest.mark.asyncio
    async def test_public_notes_without_credential(self, recorder, ready_manager):
        recorder.body = [{"id": 1, "content": "hello"}]
        async with NotesApiClient("http://notes.test", session=ready_manager,
                                  transport=recorder.transport) as api:
            notes = await api.fetch_public_notes()

        assert notes == [{"id": 1, "content": "hello"}]
        request = recorder.requests[0]
        assert request.url.path == "/api/public-notes"
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_private_notes_use_cached_token(self, recorder, ready_manager):
        async with NotesApiClient("http://notes.test", session=ready_manager,
                                  transport=recorder.transport) as api:
            await api.fetch_private_notes()

        assert recorder.requests[0].headers["Authorization"] == "Bearer token-1"

    @pytest.mark.asyncio
    async def test_refresh_requests_fresh_token(self, recorder, make_manager, fake_sdk):
        fake_sdk._session = FakeIdentitySession(["token-1", "token-2"])
        manager = make_manager()
        await manager.initialize()

        async with NotesApiClient("http://notes.test", session=manager,
                                  transport=recorder.transport) as api:
            await api.fetch_private_notes(refresh=True)

        assert recorder.requests[0].headers["Authorization"] == "Bearer token-2"
        assert manager.current_token() == "token-2"

    @pytest.mark.asyncio
    async def test_signed_out_sends_no_header(self, recorder, ready_manager):
        await ready_manager.sign_out()
        async with NotesApiClient("http://notes.test", session=ready_manager,
                                  transport=recorder.transport) as api:
            await api.fetch_private_notes()

        assert "Authorization" not in recorder.requests[0].headers

    @pytest.mark.asyncio
    async def test_create_private_note(self, recorder, ready_manager):
        recorder.body = {"id": 7}
        async with NotesApiClient("http://notes.test", session=ready_manager,
                                  transport=recorder.transport) as api:
            created = await api.create_private_note({"title": "t", "content": "c"})

        request = recorder.requests[0]
        assert created == {"id": 7}
        assert request.method == "PUT"
        assert request.url.path == "/api/private-notes"
        assert json.loads(request.content) == {"data": {"title": "t", "content": "c"}}

    @pytest.mark.asyncio
    async def test_delete_private_note_empty_body(self, recorder, ready_manager):
        recorder.body = b""
        async with NotesApiClient("http://notes.test", session=ready_manager,
                                  transport=recorder.transport) as api:
            result = await api.delete_private_note(7)

        assert result is None
        assert recorder.requests[0].method == "DELETE"
        assert recorder.requests[0].url.path == "/api/private-notes/7"

    @pytest.mark.asyncio
    async def test_admin_call_sends_api_key(self, recorder):
        async with NotesApiClient("http://notes.test", api_key="admin-key",
                                  transport=recorder.transport) as api:
            await api.fetch_all_notes_admin()

        request = recorder.requests[0]
        assert request.url.path == "/api/notes/all"
        assert request.headers["X-API-Key"] == "admin-key"

    @pytest.mark.asyncio
    async def test_admin_call_without_key_refuses(self, recorder):
        async with NotesApiClient("http://notes.test", transport=recorder.transport) as api:
            with pytest.raises(InvalidApiKeyError):
                await api.fetch_all_notes_admin()

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_error_status_raises(self, ready_manager):
        recorder = RecordingTransport(status_code=401, body={"error": "unauthorized"})
        async with NotesApiClient("http://notes.test", session=ready_manager,
                                  transport=recorder.transport) as api:
            with pytest.raises(ApiRequestError) as exc_info:
                await api.fetch_private_notes()

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Failed to fetch private notes"

    @pytest.mark.asyncio
    async def test_create_public_note_without_credential(self, recorder, ready_manager):
        recorder.body = {"id": 3, "content": "shared"}
        async with NotesApiClient("http://notes.test", session=ready_manager,
                                  transport=recorder.transport) as api:
            created = await api.create_public_note("shared")

        request = recorder.requests[0]
        assert created == {"id": 3, "content": "shared"}
        assert request.method == "POST"
        assert request.url.path == "/api/public-notes"
        assert json.loads(request.content) == {"content": "shared"}
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_update_public_note_body(self, recorder):
        recorder.body = {"id": 3}
        async with NotesApiClient("http://notes.test", transport=recorder.transport) as api:
            await api.update_public_note(3, title="T", content="C", is_public=False)

        request = recorder.requests[0]
        assert request.method == "PUT"
        assert request.url.path == "/api/public-notes/3"
        assert json.loads(request.content) == {"title": "T", "content": "C", "isPublic": False}

    @pytest.mark.asyncio
    async def test_delete_public_note_failure(self):
        recorder = RecordingTransport(status_code=404, body={"error": "not_found"})
        async with NotesApiClient("http://notes.test", transport=recorder.transport) as api:
            with pytest.raises(ApiRequestError) as exc_info:
                await api.delete_public_note(9)

        assert recorder.requests[0].method == "DELETE"
        assert recorder.requests[0].url.path == "/api/public-notes/9"
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Failed to delete public note"

    @pytest.mark.asyncio
    async def test_delete_note_admin_sends_api_key(self, recorder):
        recorder.body = {"success": True}
        async with NotesApiClient("http://notes.test", api_key="admin-key",
                                  transport=recorder.transport) as api:
            await api.delete_note_admin(5, api_key="override-key")

        request = recorder.requests[0]
        assert request.method == "DELETE"
        assert request.url.path == "/api/notes/5/admin"
        assert request.headers["X-API-Key"] == "override-key"

    @pytest.mark.asyncio
    async def test_delete_note_admin_without_key_refuses(self, recorder):
        async with NotesApiClient("http://notes.test", transport=recorder.transport) as api:
            with pytest.raises(InvalidApiKeyError):
                await api.delete_note_admin(5)

        assert recorder.requests == []
