from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from ..core.enums import PayslipStatus
from .model import Payslip


class PayslipRepository(Protocol):
    def get(self, payslip_id: str) -> Optional[Payslip]:
        raise NotImplementedError

    def find_for_month(self, employee_id: str, month: str) -> Optional[Payslip]:
        raise NotImplementedError

    def create(self, payslip: Payslip) -> Payslip:
        raise NotImplementedError

    def update_atomically(self, payslip_id: str, fn: Callable[[Payslip], Payslip]) -> Payslip:
        raise NotImplementedError

    def delete(self, payslip_id: str) -> bool:
        raise NotImplementedError

    def list(
        self,
        *,
        employee_id: Optional[str] = None,
        month: Optional[str] = None,
        year: Optional[int] = None,
        status: Optional[PayslipStatus] = None,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> Sequence[Payslip]:
        """Payslips matching every given filter, latest month first when ``newest_first``."""

        raise NotImplementedError
