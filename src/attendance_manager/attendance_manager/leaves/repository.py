from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import LeaveRequest


class LeaveRepository(Protocol):
    def get(self, leave_id: str) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def create(self, leave: LeaveRequest) -> LeaveRequest:
        raise NotImplementedError

    def update_atomically(self, leave_id: str, fn: Callable[[LeaveRequest], LeaveRequest]) -> LeaveRequest:
        """Apply ``fn`` to the stored request in one transaction; exceptions abort it."""

        raise NotImplementedError

    def list(
        self,
        *,
        employee_id: Optional[str] = None,
        status: Optional[LeaveStatus] = None,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError
