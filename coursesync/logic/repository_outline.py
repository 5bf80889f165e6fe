"""Data access helpers for the stub sync backend.

These functions encapsulate the in-memory course, module, lesson and quiz
state so route handlers stay free of storage details. Reordering replaces
the whole stored order (last write wins) and rejects any membership change.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

from coursesync.logic import inmemory_state as _mem
from coursesync.logic.errors import UnknownIdError
from coursesync.logic.sequence_store import SequenceStore
from coursesync.models.resource_kind import ResourceKind

logger = logging.getLogger(__name__)

# Child kind stored under each parent kind
_PARENT_KIND = {
    ResourceKind.MODULE: "course",
    ResourceKind.LESSON: ResourceKind.MODULE,
    ResourceKind.QUESTION: "quiz",
}

_SCOPED_KINDS = (ResourceKind.LESSON,)


class ResourceNotFound(LookupError):
    def __init__(self, kind: str, resource_id: Any) -> None:
        super().__init__(f"{kind} {resource_id} not found")
        self.kind = kind
        self.resource_id = resource_id


class InjectedFault(Exception):
    """Raised when a test has armed a reorder failure."""

    def __init__(self, status: int) -> None:
        super().__init__(f"injected reorder failure status={status}")
        self.status = status


def _next_id() -> int:
    value = _mem.ID_SEQUENCE["next"]
    _mem.ID_SEQUENCE["next"] = value + 1
    return value


def _collection(kind: str, parent_id: int) -> SequenceStore:
    key = (kind, parent_id)
    store = _mem.COLLECTIONS.get(key)
    if store is None:
        store = SequenceStore(parent_id, kind)
        _mem.COLLECTIONS[key] = store
    return store


def _rows(kind: str, parent_id: int) -> List[Dict[str, Any]]:
    store = _mem.COLLECTIONS.get((kind, parent_id))
    if store is None:
        return []
    return [{**item.payload, "order_index": item.position} for item in store]


def _parents(kind: str, item_id: int) -> List[int]:
    return sorted(p for k, p, i in _mem.MEMBERSHIP if k == kind and i == item_id)


def _parent_exists(kind: str, parent_id: int) -> bool:
    if kind == ResourceKind.MODULE:
        return parent_id in _mem.COURSES
    if kind == ResourceKind.QUESTION:
        return parent_id in _mem.QUIZZES
    return bool(_parents(ResourceKind.MODULE, parent_id))


def _add(kind: str, parent_id: int, row: Mapping[str, Any]) -> Dict[str, Any]:
    item_id = row.get("id")
    item_id = int(item_id) if item_id is not None else _next_id()
    # Lesson ids only need to be unique inside their module
    taken = (kind, parent_id, item_id) in _mem.MEMBERSHIP if kind in _SCOPED_KINDS else bool(_parents(kind, item_id))
    if taken:
        raise UnknownIdError(f"{kind} {item_id} already exists", ids=[item_id])
    payload = {k: v for k, v in row.items() if k not in ("lessons", "order_index")}
    payload["id"] = item_id
    _collection(kind, parent_id).append(item_id, payload)
    _mem.MEMBERSHIP.add((kind, parent_id, item_id))
    return payload


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------


def seed_course(course: Mapping[str, Any]) -> Dict[str, Any]:
    """Install a course outline; module and lesson rows keep their given order."""
    course_id = int(course["id"])
    _mem.COURSES[course_id] = {"id": course_id, "title": course.get("title", "")}
    for module in course.get("modules") or []:
        created = _add(ResourceKind.MODULE, course_id, module)
        for lesson in module.get("lessons") or []:
            _add(ResourceKind.LESSON, created["id"], lesson)
    return get_course(course_id) or {}


def seed_quiz(quiz: Mapping[str, Any]) -> Dict[str, Any]:
    quiz_id = int(quiz["id"])
    _mem.QUIZZES[quiz_id] = {"id": quiz_id, "title": quiz.get("title", "")}
    for question in quiz.get("questions") or []:
        _add(ResourceKind.QUESTION, quiz_id, question)
    return get_quiz(quiz_id) or {}


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_course(course_id: int) -> Optional[Dict[str, Any]]:
    course = _mem.COURSES.get(course_id)
    if course is None:
        return None
    modules = _rows(ResourceKind.MODULE, course_id)
    for module in modules:
        module["lessons"] = _rows(ResourceKind.LESSON, module["id"])
    return {**course, "modules": modules}


def get_module(module_id: int) -> Optional[Dict[str, Any]]:
    parents = _parents(ResourceKind.MODULE, module_id)
    if not parents:
        return None
    course_id = parents[0]
    store = _collection(ResourceKind.MODULE, course_id)
    item = store.get(module_id)
    if item is None:
        return None
    return {
        **item.payload,
        "order_index": item.position,
        "course_id": course_id,
        "lessons": _rows(ResourceKind.LESSON, module_id),
    }


def get_quiz(quiz_id: int) -> Optional[Dict[str, Any]]:
    quiz = _mem.QUIZZES.get(quiz_id)
    if quiz is None:
        return None
    return {**quiz, "questions": _rows(ResourceKind.QUESTION, quiz_id)}


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def arm_reorder_failures(count: int, status: int = 503) -> None:
    _mem.FAULTS["reorder_failures"] = max(0, int(count))
    _mem.FAULTS["status"] = int(status)


def reorder(kind: str, parent_id: int, ordered_ids: Sequence[int]) -> List[int]:
    """Replace the stored order of one collection and return it.

    Raises ``ResourceNotFound`` for an unknown parent, ``UnknownIdError`` when
    ``ordered_ids`` does not match the collection's membership, and
    ``InjectedFault`` when a failure has been armed.
    """
    if not _parent_exists(kind, parent_id):
        raise ResourceNotFound(_PARENT_KIND[kind], parent_id)
    if _mem.FAULTS.get("reorder_failures", 0) > 0:
        _mem.FAULTS["reorder_failures"] -= 1
        logger.info("repository_outline.reorder.fault kind=%s parent_id=%s", kind, parent_id)
        raise InjectedFault(_mem.FAULTS.get("status", 503))
    store = _collection(kind, parent_id)
    store.apply_order(list(ordered_ids))
    _mem.REORDER_LOG.append((kind, parent_id, list(ordered_ids)))
    logger.info("repository_outline.reorder kind=%s parent_id=%s ids=%s", kind, parent_id, store.ids())
    return store.ids()


def create_item(kind: str, parent_id: int, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Append a new item at the end of its collection."""
    if not _parent_exists(kind, parent_id):
        raise ResourceNotFound(_PARENT_KIND[kind], parent_id)
    row = {k: v for k, v in payload.items() if k != "id"}
    created = _add(kind, parent_id, row)
    position = _collection(kind, parent_id).position_of(created["id"])
    return {**created, "order_index": position}


def delete_item(kind: str, item_id: int, parent_id: Optional[int] = None) -> None:
    """Remove an item and compact the positions of its siblings.

    ``parent_id`` narrows the lookup; it is required when a lesson id exists
    in more than one module, otherwise ``UnknownIdError`` is raised.
    """
    parents = _parents(kind, item_id)
    if parent_id is not None:
        parents = [p for p in parents if p == parent_id]
    if not parents:
        raise ResourceNotFound(kind, item_id)
    if len(parents) > 1:
        raise UnknownIdError(f"{kind} {item_id} exists under {parents}; parent id required", ids=[item_id])
    owner = parents[0]
    _mem.MEMBERSHIP.discard((kind, owner, item_id))
    _collection(kind, owner).remove(item_id)
    if kind == ResourceKind.MODULE:
        _mem.COLLECTIONS.pop((ResourceKind.LESSON, item_id), None)
        _mem.MEMBERSHIP.difference_update(
            {m for m in _mem.MEMBERSHIP if m[0] == ResourceKind.LESSON and m[1] == item_id}
        )


__all__ = [
    "ResourceNotFound",
    "InjectedFault",
    "seed_course",
    "seed_quiz",
    "get_course",
    "get_module",
    "get_quiz",
    "arm_reorder_failures",
    "reorder",
    "create_item",
    "delete_item",
]
