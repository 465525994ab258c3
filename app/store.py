import logging
import threading
from typing import Any, Dict, Protocol, Sequence, Tuple

from app.analysis import build_record, normalize_value
from app.errors import DuplicateError, InvalidTypeError, NotFoundError, ValidationError
from app.schemas import StringRecord

logger = logging.getLogger(__name__)


class Persistence(Protocol):
    def load(self) -> Sequence[StringRecord]: ...

    def save(self, records: Sequence[StringRecord]) -> None: ...


class RecordStore:
    """Owns the collection of analyzed strings.

    Records are keyed by normalized value and kept in insertion order. Every
    mutation is written through to the persistence collaborator before it is
    applied in memory, so a failed write leaves the store unchanged.
    """

    def __init__(self, persistence: Persistence, records: Sequence[StringRecord] = ()):
        self._persistence = persistence
        self._lock = threading.RLock()
        self._records: Dict[str, StringRecord] = {record.value: record for record in records}

    @classmethod
    def open(cls, persistence: Persistence) -> "RecordStore":
        records = persistence.load()
        logger.info("loaded %d stored strings", len(records))
        return cls(persistence, records)

    def insert(self, value: Any) -> StringRecord:
        if value is None:
            raise ValidationError("Value is required.")
        if not isinstance(value, str):
            raise InvalidTypeError("Value must be a string.")

        normalized = normalize_value(value)
        with self._lock:
            if normalized in self._records:
                raise DuplicateError("String already exists.")

            record = build_record(normalized)
            self._persistence.save([*self._records.values(), record])
            self._records[normalized] = record

        logger.info("stored string id=%s length=%d", record.id, record.properties.length)
        return record

    def get(self, value: str) -> StringRecord:
        with self._lock:
            record = self._records.get(normalize_value(value))
        if record is None:
            raise NotFoundError("String not found.")
        return record

    def list(self) -> Tuple[StringRecord, ...]:
        with self._lock:
            return tuple(self._records.values())

    def delete(self, value: str) -> None:
        normalized = normalize_value(value)
        with self._lock:
            record = self._records.get(normalized)
            if record is None:
                raise NotFoundError("String not found.")

            self._persistence.save([r for r in self._records.values() if r.value != normalized])
            del self._records[normalized]

        logger.info("deleted string id=%s", record.id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, str):
            return False
        with self._lock:
            return normalize_value(value) in self._records
