from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import ProjectStatus


def unique_ids(ids) -> Tuple[str, ...]:
    """Drop blanks and duplicates, keeping first-seen order."""
    seen = {}
    for i in ids or ():
        i = (i or "").strip()
        if i:
            seen.setdefault(i, None)
    return tuple(seen)


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    status: ProjectStatus = ProjectStatus.PLANNED
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    employee_ids: Tuple[str, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
