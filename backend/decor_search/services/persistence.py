"""Storage backends for liked products."""

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict

import structlog

from decor_search.core.exceptions import NotFoundError


logger = structlog.get_logger(__name__)


class PersistenceBackend(ABC):
    """Async key/value store for JSON-safe records."""

    @abstractmethod
    async def save(self, record: Dict[str, Any]) -> str:
        """Store a record and return its generated id."""

    @abstractmethod
    async def load(self, record_id: str) -> Dict[str, Any]:
        """Return a stored record.

        Raises:
            NotFoundError: If no record has that id
        """

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Remove a record.

        Raises:
            NotFoundError: If no record has that id
        """


class InMemoryPersistence(PersistenceBackend):
    """Process-local backend used by the CLI and tests."""

    def __init__(self):
        self._records: Dict[str, Dict[str, Any]] = {}

    async def save(self, record: Dict[str, Any]) -> str:
        record_id = str(uuid.uuid4())
        self._records[record_id] = dict(record)
        logger.debug("record_saved", record_id=record_id)
        return record_id

    async def load(self, record_id: str) -> Dict[str, Any]:
        try:
            return dict(self._records[record_id])
        except KeyError:
            raise NotFoundError("Record", record_id) from None

    async def delete(self, record_id: str) -> None:
        if record_id not in self._records:
            raise NotFoundError("Record", record_id)
        del self._records[record_id]
        logger.debug("record_deleted", record_id=record_id)

    def __len__(self) -> int:
        return len(self._records)
