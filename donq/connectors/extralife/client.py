"""DONQ — Extra Life API Client.

Single read operation: the full donation list for a team. The API has no
cursor or delta support, so every call transfers the whole snapshot.
No retries here; the poll job or HTTP caller owns the cadence.
"""

from typing import Any, Dict, List, Optional

import httpx

from donq.config import settings
from donq.core.errors import UpstreamFetchError
from donq.core.logging import get_logger

logger = get_logger("extralife.client")


class ExtraLifeClient:
    """Async HTTP client for the Extra Life (DonorDrive) public API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.extra_life_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.fetch_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_json(self, url: str) -> Any:
        client = await self._get_client()
        try:
            resp = await client.get(url, headers={"Accept": "application/json"})
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise UpstreamFetchError(
                f"Timed out after {self.timeout}s fetching {url}"
            ) from e
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(
                f"Extra Life API returned {e.response.status_code} for {url}",
                e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise UpstreamFetchError(f"Connection failed: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamFetchError(f"Non-JSON response from {url}") from e

    async def get_team_donations(self, team_id: str) -> List[Dict[str, Any]]:
        """Fetch every donation currently listed for the team."""
        url = f"{self.base_url}/teams/{team_id}/donations"
        payload = await self._get_json(url)
        if not isinstance(payload, list):
            raise UpstreamFetchError(
                f"Expected a list of donations, got {type(payload).__name__}"
            )
        logger.info(
            f"Fetched {len(payload)} donations for team {team_id}",
            extra={"team_id": team_id, "count": len(payload)},
        )
        return payload
