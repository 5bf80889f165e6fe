"""Module and lesson routes."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Response

from coursesync.logic import repository_outline as repo
from coursesync.logic.repository_outline import ResourceNotFound
from coursesync.models.resource_kind import ResourceKind
from coursesync.models.wire import LessonCreate, LessonOrder

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/modules/{module_id}", summary="Module with ordered lessons")
def get_module(module_id: int) -> dict:
    module = repo.get_module(module_id)
    if module is None:
        raise ResourceNotFound("module", module_id)
    return module


@router.delete("/modules/{module_id}", status_code=204, summary="Delete a module and its lessons")
def delete_module(module_id: int) -> Response:
    repo.delete_item(ResourceKind.MODULE, module_id)
    return Response(status_code=204)


@router.post("/modules/{module_id}/reorder-lessons", summary="Replace lesson order")
@router.patch("/modules/{module_id}/reorder-lessons", summary="Replace lesson order")
def reorder_lessons(module_id: int, body: LessonOrder) -> dict:
    ids = repo.reorder(ResourceKind.LESSON, module_id, body.lesson_ids)
    return {"lesson_ids": ids}


@router.post("/modules/{module_id}/lessons", status_code=201, summary="Append a lesson")
def create_lesson(module_id: int, body: LessonCreate) -> dict:
    created = repo.create_item(ResourceKind.LESSON, module_id, body.model_dump(exclude={"order_index"}))
    logger.info("modules.lesson.created module_id=%s lesson_id=%s", module_id, created["id"])
    return created


@router.delete("/lessons/{lesson_id}", status_code=204, summary="Delete a lesson")
def delete_lesson(lesson_id: int, module_id: Optional[int] = None) -> Response:
    # module_id disambiguates lesson ids repeated across modules
    repo.delete_item(ResourceKind.LESSON, lesson_id, parent_id=module_id)
    return Response(status_code=204)


__all__ = ["router"]
