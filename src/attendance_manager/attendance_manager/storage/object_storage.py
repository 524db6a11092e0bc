from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class StoredObject:
    path: str
    url: str


class ObjectStorage(Protocol):
    """Blob storage for uploaded files (payslip PDFs, employee documents)."""

    def upload(self, path: str, data: bytes, *, content_type: Optional[str] = None) -> StoredObject:
        raise NotImplementedError

    def delete(self, path: str) -> bool:
        raise NotImplementedError
