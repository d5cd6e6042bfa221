from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from admin_console.core.config import settings
from admin_console.schemas.query import PageResult, QuerySpec

_LOG = logging.getLogger("admin_console.http")


class ApiError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None, server_message: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.server_message = server_message


def query_params(query_spec: QuerySpec) -> dict[str, str]:
    params = {"page": str(query_spec.page), "perPage": str(query_spec.per_page)}
    if query_spec.sorts:
        params["sorts"] = json.dumps([s.model_dump() for s in query_spec.sorts], ensure_ascii=False)
    tuples = [t for predicate in query_spec.queries for t in predicate.as_tuples()]
    if tuples:
        params["queries"] = json.dumps(tuples, ensure_ascii=False, default=str)
    if query_spec.search:
        params["search"] = query_spec.search
    return params


def _server_message(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    for key in ("message", "detail", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _unwrap(payload: Any) -> Any:
    if isinstance(payload, dict):
        for key in ("result", "data"):
            inner = payload.get(key)
            if isinstance(inner, dict):
                return inner
    return payload


def page_from_payload(payload: Any) -> PageResult:
    body = payload if isinstance(payload, dict) else {}
    if isinstance(body.get("result"), dict):
        body = body["result"]
    data = body.get("data")
    return PageResult.model_validate(
        {
            "data": data if isinstance(data, list) else [],
            "count": int(body.get("count") or 0),
            "pagination": body.get("pagination") or {},
        }
    )


class ResourceClient:
    """Async REST collaborator for one admin resource (``/customers``, ``/orders``...)."""

    def __init__(
        self,
        resource: str,
        *,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.resource = str(resource or "").strip().strip("/")
        if not self.resource:
            raise ValueError("resource must not be empty")
        self.base_url = str(base_url or settings.api_base_url).rstrip("/")
        self.token = str(token if token is not None else settings.API_TOKEN or "").strip()
        self.timeout = float(timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS)
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._headers(),
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(f"{method} {path} failed: {exc}") from exc

        payload: Any = None
        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None
        if response.status_code >= 400:
            server_message = _server_message(payload)
            _LOG.info("%s %s -> HTTP %s %s", method, path, response.status_code, server_message or "")
            raise ApiError(
                f"{method} {path} failed: HTTP {response.status_code}",
                status_code=response.status_code,
                server_message=server_message,
            )
        return payload

    async def fetch_page(self, query_spec: QuerySpec) -> PageResult:
        payload = await self._request("GET", f"/{self.resource}", params=query_params(query_spec))
        return page_from_payload(payload)

    async def create(self, payload: dict[str, Any]) -> Any:
        return _unwrap(await self._request("POST", f"/{self.resource}", json=payload))

    async def update(self, entity_id: str, payload: dict[str, Any]) -> Any:
        return _unwrap(await self._request("PUT", f"/{self.resource}/{entity_id}", json=payload))

    async def delete(self, entity_id: str) -> None:
        await self._request("DELETE", f"/{self.resource}/{entity_id}")
