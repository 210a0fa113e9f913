"""HTTP client for the inventory API.

Implements the filtering, view persistence and unhide collaborators on
top of ``httpx.AsyncClient``. Every call returns a :class:`Success` or
:class:`Failure`; HTTP and transport errors never escape.

Usage::

    async with InventoryClient("http://localhost:8000") as client:
        wizard = FilterWizard(client, apply_inventory=on_results)
        manager = ViewManager(client, client, get_views, on_hidden_changed)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from cloudinv.config import Settings
from cloudinv.models.filter import FilterClause
from cloudinv.models.resource import HiddenResource, Resource
from cloudinv.models.result import Failure, ServiceResult, Success
from cloudinv.models.view import SavedViewListResponse, SavedViewResponse, View

logger = logging.getLogger(__name__)

_resources_adapter = TypeAdapter(list[Resource])
_hidden_adapter = TypeAdapter(list[HiddenResource])
_strings_adapter = TypeAdapter(list[str])


def _error_detail(response: httpx.Response) -> str:
    """Prefer FastAPI's ``detail`` field, fall back to the status line."""
    try:
        detail = response.json().get("detail")
    except (ValueError, AttributeError):
        detail = None
    if isinstance(detail, str) and detail:
        return detail
    if detail:
        # 422 validation errors carry a list of error objects
        return "; ".join(str(d.get("msg", d)) for d in detail if isinstance(d, dict)) or str(detail)
    return f"{response.status_code} {response.reason_phrase}"


def _to_view(saved: SavedViewResponse) -> View:
    return View(
        id=saved.id, name=saved.name, filters=saved.filters, exclude=saved.exclude
    )


def _view_body(view: View) -> dict[str, Any]:
    return {
        "name": view.name,
        "filters": [c.model_dump(mode="json") for c in view.filters],
    }


class InventoryClient:
    """Async client for the inventory and saved views endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> InventoryClient:
        return cls(settings.api_base_url, timeout=settings.request_timeout)

    async def __aenter__(self) -> InventoryClient:
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ServiceResult[Any]:
        """Send a request and return the decoded JSON body (``None`` if empty)."""
        try:
            response = await self._get_client().request(
                method, path, json=json, params=params
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            reason = _error_detail(exc.response)
            logger.warning("%s %s failed: %s", method, path, reason)
            return Failure(reason=reason, status_code=exc.response.status_code)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            return Failure(reason=f"Could not reach the inventory API: {exc}")

        if response.status_code == 204 or not response.content:
            return Success(None)
        try:
            return Success(response.json())
        except ValueError:
            return Failure(
                reason=f"Invalid JSON from {path}", status_code=response.status_code
            )

    def _parse(self, result: ServiceResult[Any], parse, path: str) -> ServiceResult[Any]:
        if isinstance(result, Failure):
            return result
        try:
            return Success(parse(result.value))
        except ValidationError as exc:
            logger.warning("Unexpected response shape from %s: %s", path, exc)
            return Failure(reason=f"Unexpected response from {path}")

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    async def get_filtered_inventory(
        self, clauses: list[FilterClause]
    ) -> ServiceResult[list[Resource]]:
        payload = [c.model_dump(mode="json") for c in clauses]
        result = await self._request("POST", "/resources/search", json=payload)
        return self._parse(result, _resources_adapter.validate_python, "/resources/search")

    async def get_filter_values(self, field: str) -> ServiceResult[list[str]]:
        result = await self._request(
            "GET", "/resources/filter-values", params={"field": field}
        )
        return self._parse(result, _strings_adapter.validate_python, "/resources/filter-values")

    async def get_tag_keys(self) -> ServiceResult[list[str]]:
        result = await self._request("GET", "/resources/tag-keys")
        return self._parse(result, _strings_adapter.validate_python, "/resources/tag-keys")

    async def ingest(self, resources: list[Resource]) -> ServiceResult[int]:
        """Push collected resources; returns how many were written."""
        payload = [r.model_dump(mode="json") for r in resources]
        result = await self._request("POST", "/resources", json=payload)
        if isinstance(result, Failure):
            return result
        return Success(int(result.value["ingested"]))

    # ------------------------------------------------------------------
    # View persistence
    # ------------------------------------------------------------------

    async def list_views(self) -> ServiceResult[list[View]]:
        result = await self._request("GET", "/views")
        return self._parse(
            result,
            lambda body: [_to_view(v) for v in SavedViewListResponse.model_validate(body).views],
            "/views",
        )

    async def create(self, view: View) -> ServiceResult[View]:
        result = await self._request("POST", "/views", json=_view_body(view))
        return self._parse(
            result, lambda body: _to_view(SavedViewResponse.model_validate(body)), "/views"
        )

    async def update(self, view_id: str, view: View) -> ServiceResult[View]:
        path = f"/views/{view_id}"
        result = await self._request("PUT", path, json=_view_body(view))
        return self._parse(
            result, lambda body: _to_view(SavedViewResponse.model_validate(body)), path
        )

    async def delete(self, view_id: str) -> ServiceResult[None]:
        result = await self._request("DELETE", f"/views/{view_id}")
        if isinstance(result, Failure):
            return result
        return Success(None)

    # ------------------------------------------------------------------
    # Hidden resources
    # ------------------------------------------------------------------

    async def get_hidden_resources(self, view_id: str) -> ServiceResult[list[HiddenResource]]:
        path = f"/views/{view_id}/hidden"
        result = await self._request("GET", path)
        return self._parse(result, _hidden_adapter.validate_python, path)

    async def hide(self, view_id: str, ids: list[str]) -> ServiceResult[None]:
        result = await self._request("POST", f"/views/{view_id}/hide", json={"ids": ids})
        if isinstance(result, Failure):
            return result
        return Success(None)

    async def unhide(self, view_id: str, ids: list[str]) -> ServiceResult[None]:
        result = await self._request("POST", f"/views/{view_id}/unhide", json={"ids": ids})
        if isinstance(result, Failure):
            return result
        return Success(None)
