from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from .model import Project


class ProjectRepository(Protocol):
    def get(self, project_id: str) -> Optional[Project]:
        raise NotImplementedError

    def create(self, project: Project) -> Project:
        raise NotImplementedError

    def update_atomically(self, project_id: str, fn: Callable[[Project], Project]) -> Project:
        raise NotImplementedError

    def delete(self, project_id: str) -> bool:
        raise NotImplementedError

    def list(
        self,
        *,
        member_id: Optional[str] = None,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> Sequence[Project]:
        raise NotImplementedError
