from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class EmployeeDocument:
    id: str
    employee_id: str
    name: str
    file_url: str
    file_path: str
    uploaded_at: Optional[datetime] = None
