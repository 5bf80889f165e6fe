"""Course routes: outline fetch, module reorder and module creation."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from coursesync.logic import repository_outline as repo
from coursesync.logic.repository_outline import ResourceNotFound
from coursesync.models.resource_kind import ResourceKind
from coursesync.models.wire import ModuleCreate, ModuleOrder

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/courses/{course_id}", summary="Course outline with ordered modules and lessons")
def get_course(course_id: int) -> dict:
    course = repo.get_course(course_id)
    if course is None:
        raise ResourceNotFound("course", course_id)
    return course


@router.post("/courses/{course_id}/reorder-modules", summary="Replace module order")
@router.patch("/courses/{course_id}/modules/reorder", summary="Replace module order")
def reorder_modules(course_id: int, body: ModuleOrder) -> dict:
    ids = repo.reorder(ResourceKind.MODULE, course_id, body.module_ids)
    return {"module_ids": ids}


@router.post("/courses/{course_id}/modules", status_code=201, summary="Append a module")
def create_module(course_id: int, body: ModuleCreate) -> dict:
    created = repo.create_item(ResourceKind.MODULE, course_id, body.model_dump(exclude={"order_index"}))
    logger.info("courses.module.created course_id=%s module_id=%s", course_id, created["id"])
    return created


__all__ = ["router"]
