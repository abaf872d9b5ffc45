"""Interfaces between the ingestion core and its collaborators.

Each interface has one production implementation (httpx client, Redis store,
SQL repository) and can be replaced by a test double.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence

from spacehub.models import DatasetRecord, Position, SourceSample


class FetchClient(ABC):
    """One upstream source. Retries transient failures internally."""

    name: str = "upstream"

    @abstractmethod
    async def fetch(self, params: Optional[Dict[str, Any]] = None) -> Any:
        """Return the raw upstream document or raise an AppError."""


class PositionClient(ABC):
    """Authoritative upstream for the live position (fallback path)."""

    @abstractmethod
    async def get_position(self) -> Position:
        ...


class FastPositionStore(ABC):
    """Read-only view of the value an external producer keeps fresh."""

    @abstractmethod
    def read_latest(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key is absent."""


class SampleCache(ABC):
    @abstractmethod
    def write(self, source: str, payload: Any) -> SourceSample:
        ...

    @abstractmethod
    def latest(self, source: str) -> Optional[SourceSample]:
        ...

    @abstractmethod
    def recent(self, source: str, n: int) -> List[SourceSample]:
        ...


class DatasetRepository(ABC):
    @abstractmethod
    def upsert_many(self, documents: Sequence[Mapping[str, Any]]) -> int:
        """Upsert documents; return the number of net-new rows."""

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def list(self, limit: int) -> List[DatasetRecord]:
        ...
