from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from typing import List, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_date_range, require_iso_date, require_non_empty
from ..core.constants import PROJECT_LIST_LIMIT
from ..core.enums import ProjectStatus
from ..core.exceptions import IndexMissing, NotFoundError, ValidationError
from .model import Project, unique_ids
from .repository import ProjectRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewProject:
    name: str
    status: ProjectStatus = ProjectStatus.PLANNED
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    employee_ids: Sequence[str] = ()


_UPDATABLE = {"name", "status", "description", "start_date", "end_date", "employee_ids"}


def _check_dates(start: Optional[str], end: Optional[str]) -> None:
    s = require_iso_date(start, "Start date") if start else None
    e = require_iso_date(end, "End date") if end else None
    if s and e:
        require_date_range(s, e)


class ProjectService:
    def __init__(self, projects: ProjectRepository, *, zone: Optional[tzinfo] = None):
        self._projects = projects
        self._zone = zone

    def create(self, data: NewProject, *, now: Optional[datetime] = None) -> Project:
        _check_dates(data.start_date, data.end_date)
        now = now or now_local(self._zone)
        project = self._projects.create(
            Project(
                id="",
                name=require_non_empty(data.name, "Project name"),
                status=ProjectStatus(data.status),
                description=data.description,
                start_date=data.start_date,
                end_date=data.end_date,
                employee_ids=unique_ids(data.employee_ids),
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("project created id=%s members=%d", project.id, len(project.employee_ids))
        return project

    def get(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if not project:
            raise NotFoundError("Project not found")
        return project

    def list(self, *, member_id: Optional[str] = None, limit: int = PROJECT_LIST_LIMIT) -> Sequence[Project]:
        try:
            return self._projects.list(member_id=member_id, newest_first=True, limit=int(limit))
        except IndexMissing as exc:
            logger.warning("Index not found, sorting projects in memory: %s", exc)
            items: List[Project] = sorted(
                self._projects.list(member_id=member_id, newest_first=False),
                key=lambda p: p.created_at.timestamp() if p.created_at else 0.0,
                reverse=True,
            )
            return items[: int(limit)]

    def update(self, project_id: str, *, now: Optional[datetime] = None, **changes) -> Project:
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        if "name" in changes:
            changes["name"] = require_non_empty(changes["name"], "Project name")
        if "status" in changes:
            changes["status"] = ProjectStatus(changes["status"])
        if "employee_ids" in changes:
            changes["employee_ids"] = unique_ids(changes["employee_ids"])
        now = now or now_local(self._zone)

        def apply(p: Project) -> Project:
            updated = replace(p, updated_at=now, **changes)
            _check_dates(updated.start_date, updated.end_date)
            return updated

        return self._projects.update_atomically(project_id, apply)

    def delete(self, project_id: str) -> None:
        if not self._projects.delete(project_id):
            raise NotFoundError("Project not found")
        logger.info("project deleted id=%s", project_id)

    def assign(self, project_id: str, employee_id: str, *, now: Optional[datetime] = None) -> Project:
        employee_id = require_non_empty(employee_id, "Employee")
        now = now or now_local(self._zone)
        return self._projects.update_atomically(
            project_id,
            lambda p: replace(p, employee_ids=unique_ids(p.employee_ids + (employee_id,)), updated_at=now),
        )

    def unassign(self, project_id: str, employee_id: str, *, now: Optional[datetime] = None) -> Project:
        now = now or now_local(self._zone)
        return self._projects.update_atomically(
            project_id,
            lambda p: replace(p, employee_ids=tuple(i for i in p.employee_ids if i != employee_id), updated_at=now),
        )
