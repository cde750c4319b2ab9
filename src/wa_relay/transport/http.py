"""
REST HTTP client for the chat gateway — version negotiation.
"""

from typing import Any, Optional

import httpx

from wa_relay.errors import TransportError

DEFAULT_BASE_URL = "http://127.0.0.1:8080"


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        user_agent: str = "wa-relay/0.1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/api",
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @staticmethod
    def _unwrap(json_data: Any) -> Any:
        """Unwrap the standard gateway response: { "status": "success", "data": <actual_data> }"""
        if isinstance(json_data, dict) and "status" in json_data and "data" in json_data:
            return json_data["data"]
        return json_data

    async def get(self, path: str) -> Any:
        try:
            resp = await self._client.get(path)
        except httpx.HTTPError as e:
            raise TransportError(f"GET {path} failed: {e}")
        if resp.status_code >= 400:
            raise TransportError(f"HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            return self._unwrap(resp.json())
        except ValueError:
            raise TransportError(f"invalid JSON from GET {path}")

    async def get_server_version(self) -> tuple[int, int, int]:
        """Current protocol version advertised by the gateway, e.g. {"version": [2, 2142, 12]}."""
        data = await self.get("/version")
        version = data.get("version") if isinstance(data, dict) else None
        if isinstance(version, str):
            version = version.split(".")
        try:
            major, minor, patch = (int(part) for part in version)  # type: ignore[union-attr]
        except (TypeError, ValueError):
            raise TransportError(f"invalid version response: {data!r}")
        return major, minor, patch

    async def close(self) -> None:
        await self._client.aclose()
