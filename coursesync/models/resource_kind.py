"""ResourceKind constants for orderable collections.

Provides a simple constants container instead of an Enum to keep imports
lightweight in architectural tests.
"""

from __future__ import annotations


class ResourceKind:
    MODULE = "module"
    LESSON = "lesson"
    QUESTION = "question"

    ALL = (MODULE, LESSON, QUESTION)


# Request body field carrying the ordered ids for each kind
ID_FIELD_BY_KIND = {
    ResourceKind.MODULE: "module_ids",
    ResourceKind.LESSON: "lesson_ids",
    ResourceKind.QUESTION: "question_ids",
}


__all__ = ["ResourceKind", "ID_FIELD_BY_KIND"]
