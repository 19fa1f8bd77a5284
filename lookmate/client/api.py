"""Thin async HTTP client for the LookMate REST API.

Every non-2xx response becomes an :class:`ApiError` carrying the status and the
server's ``detail`` code. A 401 on an authenticated call additionally fires
``on_unauthorized`` so the store can tear the session down; the error is still
raised to the caller. Login and sign-up go out without the bearer token and
never fire it.
"""
import logging
from typing import Any, Callable, Dict, Optional

import httpx

from lookmate.client.errors import ApiError

logger = logging.getLogger("lookmate.client.api")


class ApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)
        self.token: Optional[str] = None
        self.on_unauthorized = on_unauthorized

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Any = None,
        authenticated: bool = True,
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        headers = self._headers() if authenticated else {}
        try:
            res = await self._http.request(method, path, json=json, params=params, files=files, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("api: %s %s failed: %s", method, path, e)
            raise ApiError(0, "network_error") from e
        if res.status_code >= 400:
            detail = None
            try:
                body = res.json()
                detail = body.get("detail") if isinstance(body, dict) else None
            except ValueError:
                detail = res.text or None
            logger.info("api: %s %s -> %d %s", method, path, res.status_code, detail)
            if res.status_code == 401 and authenticated and self.on_unauthorized is not None:
                self.on_unauthorized()
            raise ApiError(res.status_code, detail if isinstance(detail, str) else None)
        return res.json()

    # auth
    async def register(self, email: str, password: str, display_name: str) -> None:
        body = {"email": email, "password": password, "displayName": display_name}
        await self.request("POST", "/auth/register", json=body, authenticated=False)

    async def login(self, email: str, password: str) -> str:
        data = await self.request(
            "POST", "/auth/login", json={"email": email, "password": password}, authenticated=False
        )
        return data["token"]

    async def me(self) -> Dict[str, Any]:
        return await self.request("GET", "/auth/me")

    async def update_profile(self, patch: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("PATCH", "/auth/me", json=patch)

    # closet
    async def list_closet(self) -> list:
        return (await self.request("GET", "/data/closet"))["items"]

    async def create_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return (await self.request("POST", "/data/closet", json={"item": item}))["item"]

    async def update_item(self, item_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        return (await self.request("PUT", f"/data/closet/{item_id}", json={"patch": patch}))["item"]

    async def delete_item(self, item_id: str) -> None:
        await self.request("DELETE", f"/data/closet/{item_id}")

    # looks
    async def list_looks(self) -> list:
        return (await self.request("GET", "/data/looks"))["looks"]

    async def create_look(self, look: Dict[str, Any]) -> Dict[str, Any]:
        return (await self.request("POST", "/data/looks", json={"look": look}))["look"]

    async def delete_look(self, look_id: str) -> None:
        await self.request("DELETE", f"/data/looks/{look_id}")

    # public feed
    async def list_public_looks(self, sort: str = "latest", limit: Optional[int] = None) -> list:
        data = await self.request("GET", "/data/public-looks", params={"sort": sort, "limit": limit})
        return data["publicLooks"]

    async def publish_look(self, look_id: str) -> Dict[str, Any]:
        return (await self.request("POST", "/data/public-looks", json={"lookId": look_id}))["publicLook"]

    async def unpublish_look(self, public_id: str) -> None:
        await self.request("DELETE", f"/data/public-looks/{public_id}")

    async def toggle_like(self, public_id: str) -> Dict[str, Any]:
        return await self.request("POST", f"/data/public-looks/{public_id}/like")

    async def toggle_bookmark(self, public_id: str) -> Dict[str, Any]:
        return await self.request("POST", f"/data/public-looks/{public_id}/bookmark")

