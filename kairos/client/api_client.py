import logging

import httpx

from kairos.core.config import settings

logger = logging.getLogger(__name__)


class KairosApiClient:
    """
    Async REST client for the Kairos API.

    Each collection handler takes (kind, payload) and performs the matching
    insert / update / delete. Non-2xx responses raise httpx.HTTPStatusError,
    network problems raise httpx.TransportError.
    """

    UPDATE_METHODS = {"tasks": "PATCH", "notifications": "PUT"}

    def __init__(self, base_url: str, token: str = None, transport: httpx.AsyncBaseTransport = None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(base_url=self.base_url, headers=headers, transport=transport)

    async def close(self):
        await self.client.aclose()

    async def health_check(self) -> bool:
        """Connectivity probe against the root /health endpoint."""
        try:
            response = await self.client.get("/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def _request(self, method: str, path: str, **kwargs):
        response = await self.client.request(method, path, **kwargs)
        response.raise_for_status()
        return response.json() if response.content else None

    async def apply(self, collection: str, kind: str, payload: dict):
        prefix = f"{settings.API_V1_STR}/{collection}"
        if kind == "insert":
            body = {k: v for k, v in payload.items() if k != "id"}
            return await self._request("POST", f"{prefix}/", json=body)

        record_id = payload.get("id")
        if record_id is None:
            raise ValueError(f"{kind} on {collection} needs an 'id' in the payload")

        if kind == "update":
            body = {k: v for k, v in payload.items() if k != "id"}
            method = self.UPDATE_METHODS.get(collection, "PATCH")
            return await self._request(method, f"{prefix}/{record_id}", json=body)
        if kind == "delete":
            return await self._request("DELETE", f"{prefix}/{record_id}")

        raise ValueError(f"Unknown operation kind '{kind}'")

    def handler_for(self, collection: str):
        async def handle(kind: str, payload: dict):
            return await self.apply(collection, kind, payload)
        return handle

    def handlers(self) -> dict:
        return {name: self.handler_for(name) for name in ("tasks", "notifications")}
