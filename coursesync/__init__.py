"""coursesync: ordered-collection reordering for the course builder.

The client core lives in `coursesync/logic/` (engine, store, sync gateway,
reorder sessions and the course/quiz editors) with value types in
`coursesync/models/`. `create_app` builds the in-memory stub of the sync
backend used for local development and integration tests.
"""

from __future__ import annotations

from coursesync.config import AppConfig, load_config
from coursesync.logic.course_outline import CourseOutlineEditor
from coursesync.logic.errors import InvalidMoveError, OrderingError, SyncError, UnknownIdError
from coursesync.logic.quiz_editor import QuizEditor
from coursesync.logic.reorder_engine import move_item
from coursesync.logic.reorder_session import GestureState, Outcome, ReorderSession
from coursesync.logic.sequence_store import SequenceStore
from coursesync.logic.sync_gateway import HttpSyncGateway, ResourceRoute, default_routes
from coursesync.main import create_app
from coursesync.models.ordered import MoveInstruction, OrderedCollection, OrderedItem

__all__ = [
    "AppConfig",
    "load_config",
    "CourseOutlineEditor",
    "QuizEditor",
    "InvalidMoveError",
    "OrderingError",
    "SyncError",
    "UnknownIdError",
    "move_item",
    "GestureState",
    "Outcome",
    "ReorderSession",
    "SequenceStore",
    "HttpSyncGateway",
    "ResourceRoute",
    "default_routes",
    "create_app",
    "MoveInstruction",
    "OrderedCollection",
    "OrderedItem",
]
