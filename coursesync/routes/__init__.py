"""APIRouter registration for the stub sync backend."""

from __future__ import annotations

from fastapi import APIRouter

from coursesync.routes.courses import router as courses_router
from coursesync.routes.modules import router as modules_router
from coursesync.routes.quizzes import router as quizzes_router

api_router = APIRouter()
api_router.include_router(courses_router, tags=["Courses", "Modules"])
api_router.include_router(modules_router, tags=["Modules", "Lessons"])
api_router.include_router(quizzes_router, tags=["Quizzes", "Questions"])

__all__ = ["api_router"]
