"""Quiz and question routes."""

from __future__ import annotations

from fastapi import APIRouter, Response

from coursesync.logic import repository_outline as repo
from coursesync.logic.repository_outline import ResourceNotFound
from coursesync.models.resource_kind import ResourceKind
from coursesync.models.wire import QuestionCreate, QuestionOrder

router = APIRouter()


@router.get("/quizzes/{quiz_id}", summary="Quiz with ordered questions")
def get_quiz(quiz_id: int) -> dict:
    quiz = repo.get_quiz(quiz_id)
    if quiz is None:
        raise ResourceNotFound("quiz", quiz_id)
    return quiz


@router.post("/quizzes/{quiz_id}/reorder-questions", summary="Replace question order")
@router.patch("/quizzes/{quiz_id}/reorder-questions", summary="Replace question order")
def reorder_questions(quiz_id: int, body: QuestionOrder) -> dict:
    ids = repo.reorder(ResourceKind.QUESTION, quiz_id, body.question_ids)
    return {"question_ids": ids}


@router.post("/quizzes/{quiz_id}/questions", status_code=201, summary="Append a question")
def create_question(quiz_id: int, body: QuestionCreate) -> dict:
    return repo.create_item(ResourceKind.QUESTION, quiz_id, body.model_dump(exclude={"order_index"}))


@router.delete("/questions/{question_id}", status_code=204, summary="Delete a question")
def delete_question(question_id: int) -> Response:
    repo.delete_item(ResourceKind.QUESTION, question_id)
    return Response(status_code=204)


__all__ = ["router"]
