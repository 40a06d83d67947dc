"""In-memory incident store. The only code path that touches the backing dict.

Every read returns a deep copy and every write swaps in a whole new record, so
callers never hold a reference into store state. The lock is held only for the
dict operation itself; nothing here performs I/O.
"""

import itertools
import logging
import time
from collections.abc import Callable

from src.errors import IncidentNotFoundError
from src.incidents.locks import ReadWriteLock
from src.incidents.models import Incident

logger = logging.getLogger(__name__)

IncidentPredicate = Callable[[Incident], bool]
IncidentMutator = Callable[[Incident], None]


class IncidentStore:
    """Volatile, process-local mapping of incident ID to Incident."""

    def __init__(self) -> None:
        self._incidents: dict[str, Incident] = {}
        self._lock = ReadWriteLock()
        self._counter = itertools.count(1)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._incidents)

    def _next_id(self) -> str:
        # Caller must hold the write lock.
        return f"INC-{int(time.time())}-{next(self._counter)}"

    def insert(self, incident: Incident) -> Incident:
        """Store a new incident under a freshly generated ID and return a copy of it."""
        with self._lock.write_locked():
            incident_id = self._next_id()
            stored = incident.model_copy(update={"id": incident_id}, deep=True)
            self._incidents[incident_id] = stored
            result = stored.model_copy(deep=True)
        logger.debug("Inserted incident %s", incident_id)
        return result

    def get(self, incident_id: str) -> Incident | None:
        with self._lock.read_locked():
            incident = self._incidents.get(incident_id)
            return incident.model_copy(deep=True) if incident is not None else None

    def update(self, incident_id: str, mutator: IncidentMutator) -> Incident:
        """Apply ``mutator`` to a private copy and swap it in atomically.

        Raises:
            IncidentNotFoundError: If no incident has this ID.
        """
        with self._lock.write_locked():
            current = self._incidents.get(incident_id)
            if current is None:
                raise IncidentNotFoundError(incident_id)
            updated = current.model_copy(deep=True)
            mutator(updated)
            self._incidents[incident_id] = updated
            return updated.model_copy(deep=True)

    def delete(self, incident_id: str) -> None:
        with self._lock.write_locked():
            if self._incidents.pop(incident_id, None) is None:
                raise IncidentNotFoundError(incident_id)
        logger.debug("Deleted incident %s", incident_id)

    def list(self, predicate: IncidentPredicate | None = None) -> list[Incident]:
        """Snapshot of all incidents matching ``predicate``, oldest first."""
        with self._lock.read_locked():
            matches = [
                incident.model_copy(deep=True)
                for incident in self._incidents.values()
                if predicate is None or predicate(incident)
            ]
        matches.sort(key=lambda i: (i.created_at, i.id))
        return matches
