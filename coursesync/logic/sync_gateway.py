"""Sync gateway: the boundary to the course backend.

``SyncGateway`` is the contract the reorder core depends on. ``HttpSyncGateway``
implements it over ``httpx.AsyncClient``. Orders are always sent whole (the
backend replaces the stored order, last write wins) and only the HTTP status
decides success; response bodies are read for diagnostics only.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence
import logging
import uuid

import httpx

from coursesync.config import AppConfig
from coursesync.logic.errors import SyncError
from coursesync.models.ordered import ItemId
from coursesync.models.resource_kind import ID_FIELD_BY_KIND, ResourceKind

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


@dataclass(frozen=True)
class ResourceRoute:
    """Paths and field names for one orderable resource kind.

    Path templates accept ``{collection_id}`` (the parent entity) or, for
    ``delete_path``, ``{item_id}``. ``delete_scope_param`` names the query
    parameter that carries the parent on deletes, for kinds whose ids are only
    unique inside their parent.
    """

    kind: str
    fetch_path: str
    items_key: str
    reorder_path: str
    create_path: str
    delete_path: str
    reorder_method: str = "POST"
    delete_scope_param: Optional[str] = None

    @property
    def id_field(self) -> str:
        return ID_FIELD_BY_KIND[self.kind]


MODULES = ResourceRoute(
    kind=ResourceKind.MODULE,
    fetch_path="/courses/{collection_id}",
    items_key="modules",
    reorder_path="/courses/{collection_id}/reorder-modules",
    create_path="/courses/{collection_id}/modules",
    delete_path="/modules/{item_id}",
)

LESSONS = ResourceRoute(
    kind=ResourceKind.LESSON,
    fetch_path="/modules/{collection_id}",
    items_key="lessons",
    reorder_path="/modules/{collection_id}/reorder-lessons",
    create_path="/modules/{collection_id}/lessons",
    delete_path="/lessons/{item_id}",
    delete_scope_param="module_id",
)

QUESTIONS = ResourceRoute(
    kind=ResourceKind.QUESTION,
    fetch_path="/quizzes/{collection_id}",
    items_key="questions",
    reorder_path="/quizzes/{collection_id}/reorder-questions",
    create_path="/quizzes/{collection_id}/questions",
    delete_path="/questions/{item_id}",
)


def default_routes(reorder_method: str = "POST") -> Dict[str, ResourceRoute]:
    """Return the route table for ``reorder_method``.

    PATCH mode uses the ``/courses/{id}/modules/reorder`` path for modules;
    lessons and questions keep their paths and only switch the verb.
    """
    method = reorder_method.upper()
    if method == "POST":
        return {r.kind: r for r in (MODULES, LESSONS, QUESTIONS)}
    return {
        ResourceKind.MODULE: replace(
            MODULES, reorder_path="/courses/{collection_id}/modules/reorder", reorder_method=method
        ),
        ResourceKind.LESSON: replace(LESSONS, reorder_method=method),
        ResourceKind.QUESTION: replace(QUESTIONS, reorder_method=method),
    }


class SyncGateway(Protocol):
    async def fetch_document(self, path: str) -> Dict[str, Any]:
        ...

    async def fetch_collection(self, route: ResourceRoute, collection_id: ItemId) -> List[Dict[str, Any]]:
        ...

    async def persist_order(self, route: ResourceRoute, collection_id: ItemId, ordered_ids: Sequence[ItemId]) -> None:
        ...

    async def create_item(self, route: ResourceRoute, collection_id: ItemId, payload: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    async def delete_item(self, route: ResourceRoute, item_id: ItemId, collection_id: ItemId = None) -> None:
        ...


def extract_items(document: Mapping[str, Any], route: ResourceRoute, collection_id: ItemId = None) -> List[Dict[str, Any]]:
    """Return the item rows of ``document`` in emitted order."""
    rows = document.get(route.items_key) if isinstance(document, Mapping) else None
    if not isinstance(rows, list):
        raise SyncError(
            f"{route.kind} collection {collection_id} response has no '{route.items_key}' list",
            collection_id=collection_id,
        )
    return [dict(r) for r in rows]


def _problem_code(response: httpx.Response) -> Optional[str]:
    ctype = response.headers.get("content-type", "")
    if "json" not in ctype:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("code") is not None:
        return str(body.get("code"))
    return None


class HttpSyncGateway:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        headers: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            headers=dict(headers or {}),
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs: Any) -> "HttpSyncGateway":
        return cls(config.gateway.base_url, timeout=config.gateway.timeout_seconds, **kwargs)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpSyncGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, str]] = None,
        collection_id: ItemId = None,
    ) -> httpx.Response:
        request_id = str(uuid.uuid4())
        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers={REQUEST_ID_HEADER: request_id}
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "sync_gateway.transport_error method=%s path=%s request_id=%s error=%s",
                method,
                path,
                request_id,
                exc,
            )
            raise SyncError(f"{method} {path} failed: {exc}", collection_id=collection_id) from exc
        if response.status_code >= 400:
            code = _problem_code(response)
            logger.warning(
                "sync_gateway.rejected method=%s path=%s request_id=%s status=%s code=%s",
                method,
                path,
                request_id,
                response.status_code,
                code,
            )
            raise SyncError(
                f"{method} {path} rejected",
                status_code=response.status_code,
                code=code,
                collection_id=collection_id,
            )
        return response

    async def fetch_document(self, path: str) -> Dict[str, Any]:
        response = await self._request("GET", path)
        try:
            body = response.json()
        except ValueError as exc:
            raise SyncError(f"GET {path} returned a non-JSON body", status_code=response.status_code) from exc
        if not isinstance(body, dict):
            raise SyncError(f"GET {path} returned {type(body).__name__}, expected object")
        return body

    async def fetch_collection(self, route: ResourceRoute, collection_id: ItemId) -> List[Dict[str, Any]]:
        document = await self.fetch_document(route.fetch_path.format(collection_id=collection_id))
        return extract_items(document, route, collection_id)

    async def persist_order(self, route: ResourceRoute, collection_id: ItemId, ordered_ids: Sequence[ItemId]) -> None:
        path = route.reorder_path.format(collection_id=collection_id)
        logger.info(
            "sync_gateway.persist_order kind=%s collection_id=%s %s=%s",
            route.kind,
            collection_id,
            route.id_field,
            list(ordered_ids),
        )
        await self._request(
            route.reorder_method,
            path,
            json={route.id_field: list(ordered_ids)},
            collection_id=collection_id,
        )

    async def create_item(self, route: ResourceRoute, collection_id: ItemId, payload: Mapping[str, Any]) -> Dict[str, Any]:
        path = route.create_path.format(collection_id=collection_id)
        response = await self._request("POST", path, json=dict(payload), collection_id=collection_id)
        try:
            body = response.json()
        except ValueError:
            body = {}
        return body if isinstance(body, dict) else {}

    async def delete_item(self, route: ResourceRoute, item_id: ItemId, collection_id: ItemId = None) -> None:
        params = None
        if route.delete_scope_param and collection_id is not None:
            params = {route.delete_scope_param: str(collection_id)}
        await self._request(
            "DELETE",
            route.delete_path.format(item_id=item_id),
            params=params,
            collection_id=collection_id,
        )


__all__ = [
    "REQUEST_ID_HEADER",
    "ResourceRoute",
    "MODULES",
    "LESSONS",
    "QUESTIONS",
    "default_routes",
    "SyncGateway",
    "HttpSyncGateway",
    "extract_items",
]
