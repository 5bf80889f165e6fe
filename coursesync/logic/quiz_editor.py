"""Quiz editor: ordered questions of one quiz."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional
import logging

from coursesync.config import AppConfig
from coursesync.logic import drag_ids
from coursesync.logic.errors import InvalidMoveError, SyncError
from coursesync.logic.notifications import Notifier
from coursesync.logic.reorder_session import CommitResult, Outcome, PendingCommit, ReorderSession
from coursesync.logic.sync_gateway import ResourceRoute, SyncGateway, default_routes
from coursesync.models.ordered import ItemId
from coursesync.models.resource_kind import ResourceKind

logger = logging.getLogger(__name__)


class QuizEditor:
    def __init__(
        self,
        gateway: SyncGateway,
        quiz_id: ItemId,
        *,
        routes: Optional[Mapping[str, ResourceRoute]] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.gateway = gateway
        self.quiz_id = quiz_id
        self.route = dict(routes or default_routes())[ResourceKind.QUESTION]
        self.notifier = notifier or Notifier()
        self.questions: ReorderSession[dict] = ReorderSession(gateway, self.route, quiz_id, notifier=self.notifier)

    @classmethod
    def from_config(cls, config: AppConfig, gateway: SyncGateway, quiz_id: ItemId) -> "QuizEditor":
        return cls(
            gateway,
            quiz_id,
            routes=default_routes(config.gateway.reorder_method),
            notifier=Notifier(ttl_seconds=config.notifications.ttl_seconds),
        )

    async def open(self) -> None:
        await self.questions.reload()

    async def reload(self) -> None:
        await self.questions.reload()

    def close(self) -> None:
        self.questions.close()

    def drop(self, active_token: str, over_token: Optional[str]) -> PendingCommit:
        try:
            if over_token is None:
                raise InvalidMoveError("dropped outside any sortable item")
            active = drag_ids.decode(active_token)
            over = drag_ids.decode(over_token)
            if active.kind != ResourceKind.QUESTION or over.kind != ResourceKind.QUESTION:
                raise InvalidMoveError("only questions can be reordered in a quiz", moved_id=active.item, target_id=over.item)
            ids = self.questions.store.ids()
            active_id = drag_ids.resolve(active.item, ids)
            over_id = drag_ids.resolve(over.item, ids)
            if active_id is None or over_id is None:
                raise InvalidMoveError("question is not in this quiz", moved_id=active.item, target_id=over.item)
        except InvalidMoveError as exc:
            logger.info("quiz_editor.drop.ignored active=%s over=%s reason=%s", active_token, over_token, exc)
            self.questions.cancel_drag()
            return PendingCommit((), result=CommitResult(Outcome.IGNORED, (), error=exc))
        return self.questions.submit(active_id, over_id)

    async def add_question(self, text: str, question_type: str = "multiple_choice", points: int = 1, **extra: Any) -> Dict[str, Any]:
        payload = {
            "text": text,
            "type": question_type,
            "points": points,
            "order_index": len(self.questions.store),
            **extra,
        }
        try:
            created = await self.gateway.create_item(self.route, self.quiz_id, payload)
        except SyncError:
            self.notifier.error("Failed to add question", collection_id=self.quiz_id)
            raise
        await self.reload()
        return created

    async def delete_question(self, question_id: ItemId) -> None:
        try:
            await self.gateway.delete_item(self.route, question_id)
        except SyncError:
            self.notifier.error("Failed to delete question", collection_id=self.quiz_id)
            raise
        await self.reload()


__all__ = ["QuizEditor"]
