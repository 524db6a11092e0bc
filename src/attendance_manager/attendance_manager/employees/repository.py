from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Repository interface for the employee directory."""

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Employee]:
        raise NotImplementedError

    def create(self, employee: Employee) -> Employee:
        """Raises ValidationError when the email already belongs to an employee."""
        raise NotImplementedError

    def save(self, employee: Employee) -> Employee:
        raise NotImplementedError

    def update_atomically(self, employee_id: str, fn: Callable[[Employee], Employee]) -> Employee:
        raise NotImplementedError

    def delete_by_id(self, employee_id: str) -> bool:
        raise NotImplementedError

    def list(
        self,
        *,
        department: Optional[str] = None,
        is_active: Optional[bool] = None,
        manager_id: Optional[str] = None,
        newest_first: bool = True,
    ) -> Sequence[Employee]:
        raise NotImplementedError
