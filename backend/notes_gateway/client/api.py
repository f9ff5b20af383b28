"""
Notes Gateway - Notes API Client
==================================

What:  Async wrappers for the notes /api/* endpoints: public notes, private
       notes and the admin calls.
How:   httpx.AsyncClient. Private calls carry `Authorization: Bearer <token>`
       taken from the SessionManager; admin calls carry `X-API-Key`.
       Any non-2xx answer raises ApiRequestError.

Usage:
    async with NotesApiClient("https://notes.example.com", session=manager) as api:
        notes = await api.fetch_private_notes()
"""

import logging
from typing import Any, Dict, Optional

import httpx

from notes_gateway.client.session import SessionManager
from notes_gateway.exceptions import ApiRequestError, InvalidApiKeyError

logger = logging.getLogger(__name__)


class NotesApiClient:
    def __init__(
        self,
        base_url: str,
        session: Optional[SessionManager] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self.api_key = api_key
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "NotesApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Headers ───────────────────────────────────────────────────────────

    async def _auth_headers(self, refresh: bool) -> Dict[str, str]:
        if self.session is None:
            return {}
        token = None
        if refresh:
            token = await self.session.refresh_token()
        if token is None:
            token = self.session.current_token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _admin_headers(self, api_key: Optional[str]) -> Dict[str, str]:
        key = api_key or self.api_key
        if not key:
            raise InvalidApiKeyError(message="No admin API key configured for this client")
        return {"X-API-Key": key}

    # ── Transport ─────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        headers: Optional[Dict[str, str]] = None,
        json: Optional[Any] = None,
    ) -> Any:
        response = await self._http.request(method, path, headers=headers, json=json)
        if not response.is_success:
            logger.warning("%s %s -> %d", method, path, response.status_code)
            raise ApiRequestError(
                status_code=response.status_code,
                message=f"Failed to {action}",
                context={"method": method, "path": path},
            )
        if not response.content:
            return None
        return response.json()

    # ── Public notes ──────────────────────────────────────────────────────

    async def fetch_public_notes(self) -> Any:
        return await self._request("GET", "/api/public-notes", "fetch public notes")

    async def create_public_note(self, content: str) -> Any:
        return await self._request(
            "POST", "/api/public-notes", "create public note", json={"content": content}
        )

    async def update_public_note(
        self,
        note_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> Any:
        # Unset fields are sent as null
        body = {"title": title, "content": content, "isPublic": is_public}
        return await self._request(
            "PUT", f"/api/public-notes/{note_id}", "update public note", json=body
        )

    async def delete_public_note(self, note_id: int) -> Any:
        return await self._request("DELETE", f"/api/public-notes/{note_id}", "delete public note")

    # ── Private notes (bearer credential) ─────────────────────────────────

    async def fetch_private_notes(self, refresh: bool = False) -> Any:
        headers = await self._auth_headers(refresh)
        return await self._request("GET", "/api/private-notes", "fetch private notes", headers=headers)

    async def create_private_note(self, data: Dict[str, Any], refresh: bool = False) -> Any:
        headers = await self._auth_headers(refresh)
        return await self._request(
            "PUT", "/api/private-notes", "create private note", headers=headers, json={"data": data}
        )

    async def delete_private_note(self, note_id: int, refresh: bool = False) -> Any:
        headers = await self._auth_headers(refresh)
        return await self._request(
            "DELETE", f"/api/private-notes/{note_id}", "delete private note", headers=headers
        )

    # ── Admin (X-API-Key) ─────────────────────────────────────────────────

    async def fetch_all_notes_admin(self, api_key: Optional[str] = None) -> Any:
        return await self._request(
            "GET", "/api/notes/all", "fetch admin notes", headers=self._admin_headers(api_key)
        )

    async def delete_note_admin(self, note_id: int, api_key: Optional[str] = None) -> Any:
        return await self._request(
            "DELETE",
            f"/api/notes/{note_id}/admin",
            "delete note (admin)",
            headers=self._admin_headers(api_key),
        )
