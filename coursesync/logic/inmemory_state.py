"""Central in-memory state for the stub sync backend (test/dev only).

Defines the single source of truth for ephemeral course, module, lesson and
quiz data served by the stub routes. Each ordered collection is held in a
``SequenceStore`` keyed by ``(kind, parent_id)`` so the backend enforces the
same membership rules as the client.
"""

from __future__ import annotations

from typing import Dict, Set, Tuple

from coursesync.logic.sequence_store import SequenceStore

# Parent documents: course_id -> {"id", "title"} ; quiz_id -> {"id", "title"}
COURSES: Dict[int, Dict] = {}
QUIZZES: Dict[int, Dict] = {}

# Ordered collections: (kind, parent_id) -> store of item rows
COLLECTIONS: Dict[Tuple[str, int], SequenceStore] = {}

# Placement of every item: (kind, parent_id, item_id). Lesson ids repeat
# across modules; module and question ids are unique per kind.
MEMBERSHIP: Set[Tuple[str, int, int]] = set()

# Fault injection: number of upcoming reorder calls to fail and the status to use
FAULTS: Dict[str, int] = {"reorder_failures": 0, "status": 503}

# Monotonic id source for created rows
ID_SEQUENCE: Dict[str, int] = {"next": 1000}

# Accepted reorder requests in arrival order: (kind, parent_id, ids)
REORDER_LOG: list = []


def clear() -> None:
    COURSES.clear()
    QUIZZES.clear()
    COLLECTIONS.clear()
    MEMBERSHIP.clear()
    REORDER_LOG.clear()
    FAULTS.update({"reorder_failures": 0, "status": 503})
    ID_SEQUENCE["next"] = 1000


__all__ = [
    "COURSES",
    "QUIZZES",
    "COLLECTIONS",
    "MEMBERSHIP",
    "FAULTS",
    "ID_SEQUENCE",
    "REORDER_LOG",
    "clear",
]
