"""Supabase record store: PostgREST reads and updates over httpx."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from missioncontrol.config import settings
from missioncontrol.store.base import (
    RISK_ASSESSMENTS,
    Collection,
    RecordNotFoundError,
    RecordStore,
    StoreError,
)

logger = logging.getLogger("missioncontrol.store.supabase")


class SupabaseStore(RecordStore):
    """Read the dashboard collections from Supabase's REST interface."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = (url if url is not None else settings.supabase_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.supabase_key
        self.timeout = timeout if timeout is not None else settings.store_timeout_seconds
        self._transport = transport

    @property
    def store_name(self) -> str:
        return "supabase"

    @property
    def _rest_url(self) -> str:
        return f"{self.url}/rest/v1"

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._rest_url,
            headers=self._headers(),
            timeout=timeout or self.timeout,
            transport=self._transport,
        )

    async def fetch_all(self, collection: Collection) -> list[dict[str, Any]]:
        params = {"select": "*", "order": f"{collection.order_column}.desc"}
        try:
            async with self._client() as client:
                resp = await client.get(f"/{collection.name}", params=params)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"{collection.name}: HTTP {e.response.status_code} {self._error_message(e.response)}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise StoreError(f"{collection.name}: {e}") from e

        if not isinstance(payload, list):
            logger.warning(
                "Non-list payload for collection; treating as empty",
                extra={"collection": collection.name},
            )
            return []
        return payload

    async def resolve_risk(self, risk_id: str, resolved_at: datetime) -> None:
        try:
            async with self._client() as client:
                resp = await client.patch(
                    f"/{RISK_ASSESSMENTS.name}",
                    params={"id": f"eq.{risk_id}"},
                    json={"is_active": False, "resolved_at": resolved_at.isoformat()},
                    headers={"Prefer": "return=representation"},
                )
                resp.raise_for_status()
                updated = resp.json()
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"resolve {risk_id}: HTTP {e.response.status_code} {self._error_message(e.response)}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise StoreError(f"resolve {risk_id}: {e}") from e

        if not updated:
            raise RecordNotFoundError(f"Risk assessment {risk_id} not found")

    async def health_check(self) -> bool:
        if not self.url or not self.api_key:
            return False

        try:
            async with self._client(timeout=8) as client:
                resp = await client.get(
                    f"/{RISK_ASSESSMENTS.name}",
                    params={"select": "id", "limit": 1},
                )
                return resp.status_code == 200
        except httpx.HTTPError:
            return False

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        # PostgREST errors carry a JSON body with a "message" key.
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or "")
        return ""
