"""Pydantic models for stub backend request bodies."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ModuleOrder(BaseModel):
    module_ids: List[int]


class LessonOrder(BaseModel):
    lesson_ids: List[int]


class QuestionOrder(BaseModel):
    question_ids: List[int]


class ModuleCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str = Field(min_length=1)
    description: str = ""
    # Clients send the current length; the backend always appends
    order_index: Optional[int] = None


class LessonCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str = Field(min_length=1)
    content_type: str = "text"
    order_index: Optional[int] = None


class QuestionCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str = Field(min_length=1)
    type: str = "multiple_choice"
    points: int = Field(default=1, ge=0)
    order_index: Optional[int] = None


class FaultRequest(BaseModel):
    count: int = Field(default=1, ge=0)
    status: int = Field(default=503, ge=400, le=599)


__all__ = [
    "ModuleOrder",
    "LessonOrder",
    "QuestionOrder",
    "ModuleCreate",
    "LessonCreate",
    "QuestionCreate",
    "FaultRequest",
]
