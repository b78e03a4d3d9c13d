"""Persistence sink for generated massing geometry."""

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class GeometrySink(Protocol):
    """Destination for committed geometry. Returns the stored record id."""

    def commit(self, name: str, geometry: dict[str, Any], attributes: dict[str, Any]) -> str:
        ...


class InMemoryGeometrySink:
    """Process-local sink, used by the HTTP host and in tests."""

    def __init__(self):
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def commit(self, name: str, geometry: dict[str, Any], attributes: dict[str, Any]) -> str:
        if not name:
            raise ValueError("Committed geometry requires a name")

        record_id = str(uuid.uuid4())
        record = {
            "id": record_id,
            "name": name,
            "geometry": geometry,
            "attributes": dict(attributes),
            "committed_at": datetime.now(timezone.utc).isoformat(),
        }

        with self._lock:
            self._records[record_id] = record

        logger.info(f"Committed geometry '{name}' as {record_id}")
        return record_id

    def get(self, record_id: str) -> Optional[dict[str, Any]]:
        with self._lock:
            return self._records.get(record_id)

    def list_records(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._records.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
