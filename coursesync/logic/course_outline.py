"""Course outline editor: modules and the lessons inside each module.

One course fetch populates a module session plus one lesson session per
module. Drop events arrive as namespaced drag ids and are routed to the
session that owns both ends of the move. Lesson ids are only unique inside a
module, so lesson tokens name their module and lessons only move within it.
Structural changes (adding or deleting a module or lesson) are sent to the
backend and followed by a full reload of the outline instead of patching
local state.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging

from coursesync.config import AppConfig
from coursesync.logic import drag_ids
from coursesync.logic.errors import InvalidMoveError, SyncError
from coursesync.logic.notifications import Notifier
from coursesync.logic.reorder_session import CommitResult, Outcome, PendingCommit, ReorderSession
from coursesync.logic.sync_gateway import ResourceRoute, SyncGateway, default_routes, extract_items
from coursesync.models.ordered import ItemId, MoveInstruction
from coursesync.models.resource_kind import ResourceKind

logger = logging.getLogger(__name__)


def _ignored(exc: InvalidMoveError) -> PendingCommit:
    return PendingCommit((), result=CommitResult(Outcome.IGNORED, (), error=exc))


class CourseOutlineEditor:
    def __init__(
        self,
        gateway: SyncGateway,
        course_id: ItemId,
        *,
        routes: Optional[Mapping[str, ResourceRoute]] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.gateway = gateway
        self.course_id = course_id
        self.routes = dict(routes or default_routes())
        self.notifier = notifier or Notifier()
        self.title: Optional[str] = None
        self.modules: ReorderSession[dict] = ReorderSession(
            gateway, self.routes[ResourceKind.MODULE], course_id, notifier=self.notifier
        )
        self.lessons: Dict[ItemId, ReorderSession[dict]] = {}
        self._closed = False

    @classmethod
    def from_config(cls, config: AppConfig, gateway: SyncGateway, course_id: ItemId) -> "CourseOutlineEditor":
        """Build an editor using the configured reorder method and toast lifetime."""
        return cls(
            gateway,
            course_id,
            routes=default_routes(config.gateway.reorder_method),
            notifier=Notifier(ttl_seconds=config.notifications.ttl_seconds),
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def reload(self) -> None:
        """Fetch the course and rebuild every session from the response.

        Nothing is replaced until the whole document has loaded; a bad
        document raises and leaves the current outline in place.
        """
        module_route = self.routes[ResourceKind.MODULE]
        document = await self.gateway.fetch_document(module_route.fetch_path.format(collection_id=self.course_id))
        if self._closed:
            return
        rows = extract_items(document, module_route, self.course_id)

        lessons: Dict[ItemId, ReorderSession[dict]] = {}
        module_rows: List[dict] = []
        try:
            for row in rows:
                module_rows.append({k: v for k, v in row.items() if k != "lessons"})
                session: ReorderSession[dict] = ReorderSession(
                    self.gateway, self.routes[ResourceKind.LESSON], row["id"], notifier=self.notifier
                )
                session.load_rows(row.get("lessons") or [])
                lessons[row["id"]] = session
            self.modules.load_rows(module_rows)
        except Exception:
            logger.error("course_outline.reload.failed course_id=%s", self.course_id, exc_info=True)
            for session in lessons.values():
                session.close()
            raise

        for session in self.lessons.values():
            session.close()
        self.lessons = lessons
        self.title = document.get("title")
        logger.info(
            "course_outline.loaded course_id=%s modules=%s lessons=%s",
            self.course_id,
            len(module_rows),
            sum(len(s.store) for s in lessons.values()),
        )

    async def open(self) -> None:
        await self.reload()

    def close(self) -> None:
        self._closed = True
        self.modules.close()
        for session in self.lessons.values():
            session.close()

    async def wait_idle(self) -> None:
        await self.modules.wait_idle()
        for session in list(self.lessons.values()):
            await session.wait_idle()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def modules_with_lesson(self, lesson_id: ItemId) -> List[ItemId]:
        return [module_id for module_id, session in self.lessons.items() if lesson_id in session.store]

    def outline(self) -> List[Dict[str, Any]]:
        """Return modules in order with their ordered lessons, as render rows."""
        result: List[Dict[str, Any]] = []
        for module in self.modules.store:
            row = dict(module.payload or {})
            row["order_index"] = module.position
            row["drag_id"] = drag_ids.encode(ResourceKind.MODULE, module.id)
            lesson_session = self.lessons.get(module.id)
            row["lessons"] = [
                {
                    **(lesson.payload or {}),
                    "order_index": lesson.position,
                    "drag_id": drag_ids.encode(ResourceKind.LESSON, lesson.id, module.id),
                }
                for lesson in (lesson_session.store if lesson_session else [])
            ]
            result.append(row)
        return result

    def lesson_move(
        self,
        module_id: ItemId,
        moved_id: ItemId,
        target_id: ItemId,
        *,
        target_module_id: Optional[ItemId] = None,
    ) -> MoveInstruction:
        """Build a lesson move inside ``module_id``.

        Both lessons must be in that module; a target in another module raises
        ``InvalidMoveError``.
        """
        if target_module_id is not None and target_module_id != module_id:
            raise InvalidMoveError(
                f"lesson {moved_id!r} cannot move from module {module_id!r} to module {target_module_id!r}",
                moved_id=moved_id,
                target_id=target_id,
            )
        session = self.lessons.get(module_id)
        if session is None:
            raise InvalidMoveError(f"module {module_id!r} is not in this course", moved_id=moved_id, target_id=target_id)
        for lesson_id in (moved_id, target_id):
            if lesson_id not in session.store:
                raise InvalidMoveError(
                    f"lesson {lesson_id!r} is not in module {module_id!r}",
                    moved_id=moved_id,
                    target_id=target_id,
                )
        return MoveInstruction(moved_id=moved_id, target_id=target_id)

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def _resolve_lesson(self, token: drag_ids.DragToken) -> Tuple[Optional[ItemId], Optional[ItemId]]:
        module_id = drag_ids.resolve(token.parent, self.lessons.keys())
        if module_id is None:
            return None, None
        return module_id, drag_ids.resolve(token.item, self.lessons[module_id].store.ids())

    def begin_drag(self, active_token: str) -> None:
        try:
            token = drag_ids.decode(active_token)
        except InvalidMoveError:
            logger.info("course_outline.drag.ignored token=%s", active_token)
            return
        if token.kind == ResourceKind.MODULE:
            module_id = drag_ids.resolve(token.item, self.modules.store.ids())
            if module_id is not None:
                self.modules.begin_drag(module_id)
        elif token.kind == ResourceKind.LESSON:
            module_id, lesson_id = self._resolve_lesson(token)
            if lesson_id is not None:
                self.lessons[module_id].begin_drag(lesson_id)

    def drop(self, active_token: str, over_token: Optional[str]) -> PendingCommit:
        """Route a drop event; returns the pending commit of the owning session."""
        try:
            if over_token is None:
                raise InvalidMoveError("dropped outside any sortable item")
            active = drag_ids.decode(active_token)
            over = drag_ids.decode(over_token)
            if active.kind != over.kind:
                raise InvalidMoveError("cannot drop a different kind", moved_id=active.item, target_id=over.item)
            if active.kind == ResourceKind.MODULE:
                ids = self.modules.store.ids()
                moved = drag_ids.resolve(active.item, ids)
                target = drag_ids.resolve(over.item, ids)
                if moved is None or target is None:
                    raise InvalidMoveError("module is not in this course", moved_id=active.item, target_id=over.item)
                return self.modules.submit(moved, target)
            if active.kind == ResourceKind.LESSON:
                module_id, moved = self._resolve_lesson(active)
                target_module_id, target = self._resolve_lesson(over)
                if moved is None or target is None:
                    raise InvalidMoveError("lesson is not in this course", moved_id=active.item, target_id=over.item)
                instruction = self.lesson_move(module_id, moved, target, target_module_id=target_module_id)
                return self.lessons[module_id].submit(instruction.moved_id, instruction.target_id)
            raise InvalidMoveError(f"{active.kind} items are not part of a course outline")
        except InvalidMoveError as exc:
            logger.info("course_outline.drop.ignored active=%s over=%s reason=%s", active_token, over_token, exc)
            self._cancel_all()
            return _ignored(exc)

    def _cancel_all(self) -> None:
        self.modules.cancel_drag()
        for session in self.lessons.values():
            session.cancel_drag()

    # ------------------------------------------------------------------
    # Structural changes
    # ------------------------------------------------------------------

    async def _structural(self, action: str, coro: Any) -> Dict[str, Any]:
        try:
            result = await coro
        except SyncError:
            logger.warning("course_outline.%s.failed course_id=%s", action, self.course_id, exc_info=True)
            self.notifier.error(f"Failed to {action.replace('_', ' ')}", collection_id=self.course_id)
            raise
        await self.reload()
        return result or {}

    async def add_module(self, title: str, description: str = "") -> Dict[str, Any]:
        payload = {"title": title, "description": description, "order_index": len(self.modules.store)}
        route = self.routes[ResourceKind.MODULE]
        return await self._structural("add_module", self.gateway.create_item(route, self.course_id, payload))

    async def delete_module(self, module_id: ItemId) -> None:
        route = self.routes[ResourceKind.MODULE]
        await self._structural("delete_module", self.gateway.delete_item(route, module_id))

    async def add_lesson(self, module_id: ItemId, title: str, content_type: str = "text", **extra: Any) -> Dict[str, Any]:
        session = self.lessons.get(module_id)
        if session is None:
            raise InvalidMoveError(f"module {module_id!r} is not in this course")
        payload = {"title": title, "content_type": content_type, "order_index": len(session.store), **extra}
        route = self.routes[ResourceKind.LESSON]
        return await self._structural("add_lesson", self.gateway.create_item(route, module_id, payload))

    async def delete_lesson(self, lesson_id: ItemId, module_id: Optional[ItemId] = None) -> None:
        """Delete a lesson; ``module_id`` is required when the id repeats across modules."""
        if module_id is None:
            owners = self.modules_with_lesson(lesson_id)
            if len(owners) > 1:
                raise InvalidMoveError(f"lesson {lesson_id!r} exists in modules {owners}; pass module_id")
            module_id = owners[0] if owners else None
        route = self.routes[ResourceKind.LESSON]
        await self._structural(
            "delete_lesson", self.gateway.delete_item(route, lesson_id, collection_id=module_id)
        )


__all__ = ["CourseOutlineEditor"]
