"""Pre-persist transformations.

Pure functions the managers apply to a record before handing it to the
store.  None of them touch storage.
"""
from __future__ import annotations

import re
from datetime import datetime
from typing import TypeVar

from pydantic import BaseModel

from taskhub.core.types import Task, TaskStatus

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")
_DEFAULT_SLUG = "organization"

RecordT = TypeVar("RecordT", bound=BaseModel)


def slugify(name: str) -> str:
    """Derive the base slug for an organization name.

    Examples:
        >>> slugify("Acme Corp")
        'acme-corp'
        >>> slugify("  R&D -- Team!! ")
        'r-d-team'
        >>> slugify("***")
        'organization'
    """
    slug = _NON_SLUG_RE.sub("-", name.lower()).strip("-")
    return slug or _DEFAULT_SLUG


def next_slug_candidate(base: str, attempt: int) -> str:
    """Return the slug to try on *attempt* (0 is the bare base)."""
    if attempt <= 0:
        return base
    return f"{base}-{attempt}"


def apply_completion(task: Task, previous_status: TaskStatus | None, now: datetime) -> Task:
    """Keep ``completed_at`` consistent with ``status``.

    Entering Completed stamps *now*; staying Completed keeps the original
    timestamp; any other status clears it.
    """
    if task.status != TaskStatus.COMPLETED:
        if task.completed_at is None:
            return task
        return task.model_copy(update={"completed_at": None})
    if previous_status == TaskStatus.COMPLETED and task.completed_at is not None:
        return task
    return task.model_copy(update={"completed_at": now})


def touch(record: RecordT, now: datetime) -> RecordT:
    """Return *record* with ``updated_at`` set to *now*."""
    return record.model_copy(update={"updated_at": now})


__all__ = [
    "apply_completion",
    "next_slug_candidate",
    "slugify",
    "touch",
]
