"""Functional test bootstrap.

Provides a scriptable in-process ``FakeGateway`` for session tests, and the
stub backend app plus an ``HttpSyncGateway`` bound to it over
``httpx.ASGITransport`` for end-to-end tests. In-memory backend state is
cleared before every test.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from coursesync.logic import inmemory_state
from coursesync.logic import repository_outline
from coursesync.logic.sync_gateway import HttpSyncGateway, extract_items
from coursesync.main import API_PREFIX, create_app
from coursesync.models.ordered import OrderedItem


class FakeGateway:
    """Records persist calls; can fail them or hold them open until released."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any, List[Any]]] = []
        self.fetches: List[Tuple[str, Any]] = []
        self.fail_with: Optional[Exception] = None
        self.manual = False
        self.held: List["asyncio.Future[None]"] = []
        self.documents: Dict[str, Dict[str, Any]] = {}

    async def fetch_document(self, path: str) -> Dict[str, Any]:
        self.fetches.append(("document", path))
        return self.documents[path]

    async def fetch_collection(self, route, collection_id) -> List[Dict[str, Any]]:
        self.fetches.append((route.kind, collection_id))
        document = self.documents[route.fetch_path.format(collection_id=collection_id)]
        return extract_items(document, route, collection_id)

    async def persist_order(self, route, collection_id, ordered_ids) -> None:
        self.calls.append((route.kind, collection_id, list(ordered_ids)))
        if self.manual:
            fut = asyncio.get_running_loop().create_future()
            self.held.append(fut)
            await fut
            return
        if self.fail_with is not None:
            raise self.fail_with

    async def create_item(self, route, collection_id, payload) -> Dict[str, Any]:
        raise NotImplementedError

    async def delete_item(self, route, item_id, collection_id=None) -> None:
        raise NotImplementedError


def make_items(*ids: Any) -> List[OrderedItem[dict]]:
    return [OrderedItem(id=i, position=idx, payload={"id": i, "title": f"item {i}"}) for idx, i in enumerate(ids)]


COURSE = {
    "id": 1,
    "title": "Vedic Studies",
    "modules": [
        {
            "id": 10,
            "title": "Intro",
            "lessons": [
                {"id": 100, "title": "Welcome", "content_type": "video"},
                {"id": 101, "title": "Outline", "content_type": "text"},
                {"id": 102, "title": "First quiz", "content_type": "quiz"},
            ],
        },
        {
            "id": 11,
            "title": "Basics",
            "lessons": [
                {"id": 110, "title": "Terms", "content_type": "text"},
                {"id": 111, "title": "Practice", "content_type": "assignment"},
            ],
        },
        {"id": 12, "title": "Advanced", "lessons": []},
    ],
}

QUIZ = {
    "id": 7,
    "title": "Module 1 check",
    "questions": [
        {"id": 70, "text": "What is a shloka?", "type": "multiple_choice", "points": 1},
        {"id": 71, "text": "Name the first Upanishad", "type": "short_answer", "points": 2},
        {"id": 72, "text": "True or false", "type": "true_false", "points": 1},
    ],
}


@pytest.fixture(autouse=True)
def _reset_backend_state():
    inmemory_state.clear()
    yield
    inmemory_state.clear()


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def stub_app():
    return create_app()


@pytest.fixture
def seeded(stub_app):
    repository_outline.seed_course(COURSE)
    repository_outline.seed_quiz(QUIZ)
    return stub_app


@pytest.fixture
def http_gateway(seeded) -> HttpSyncGateway:
    transport = httpx.ASGITransport(app=seeded)
    return HttpSyncGateway(f"http://stub{API_PREFIX}", transport=transport)
