"""Central error mapping for the stub sync backend.

Single source of truth for mapping domain failures to problem+json codes
and HTTP statuses. Route modules import from here instead of hardcoding
strings or numbers.
"""

from __future__ import annotations

PARENT_NOT_FOUND = {
    "code": "RESOURCE_NOT_FOUND",
    "status": 404,
    "title": "Not Found",
}

# Reorder body does not match the collection's current membership
ORDER_MEMBERSHIP_MISMATCH = {
    "code": "ORDER_MEMBERSHIP_MISMATCH",
    "status": 409,
    "title": "Conflict",
}

# Body failed schema validation (e.g. missing module_ids)
REQUEST_BODY_INVALID = {
    "code": "REQUEST_BODY_INVALID",
    "status": 422,
    "title": "Unprocessable Entity",
}

# Fault injected through the test support routes
UPSTREAM_UNAVAILABLE = {
    "code": "UPSTREAM_UNAVAILABLE",
    "status": 503,
    "title": "Service Unavailable",
}

__all__ = [
    "PARENT_NOT_FOUND",
    "ORDER_MEMBERSHIP_MISMATCH",
    "REQUEST_BODY_INVALID",
    "UPSTREAM_UNAVAILABLE",
]
