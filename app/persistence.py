"""SQLAlchemy-backed durable copy of the record collection.

The store treats this as an opaque blob: it is read once at startup and
rewritten in full after every mutation.
"""

import json
from datetime import datetime, timezone
from typing import Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import Engine

from app import models
from app.database import create_session_factory
from app.errors import PersistenceError
from app.schemas import StringProperties, StringRecord


def _to_record(db_object: models.StringModel) -> StringRecord:
    # JSON columns may come back as text on some backends
    freq_map = db_object.character_frequency_map
    if isinstance(freq_map, str):
        freq_map = json.loads(freq_map)

    created_at = db_object.created_at
    if isinstance(created_at, datetime) and created_at.tzinfo is None:
        # SQLite drops the offset; everything is written in UTC
        created_at = created_at.replace(tzinfo=timezone.utc)

    return StringRecord(
        id=db_object.id,
        value=db_object.value,
        properties=StringProperties(
            length=db_object.length,
            is_palindrome=db_object.is_palindrome,
            unique_characters=db_object.unique_characters,
            word_count=db_object.word_count,
            sha256_hash=db_object.id,
            character_frequency_map=freq_map,
        ),
        created_at=created_at,
    )


def _to_model(record: StringRecord, position: int) -> models.StringModel:
    props = record.properties
    return models.StringModel(
        id=record.id,
        position=position,
        value=record.value,
        length=props.length,
        is_palindrome=props.is_palindrome,
        unique_characters=props.unique_characters,
        word_count=props.word_count,
        character_frequency_map=dict(props.character_frequency_map),
        created_at=record.created_at,
    )


class SqlAlchemyPersistence:
    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    def create_schema(self) -> None:
        try:
            models.Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not create storage schema: {exc}") from exc

    def load(self) -> List[StringRecord]:
        db = self.session_factory()
        try:
            rows = db.query(models.StringModel).order_by(models.StringModel.position).all()
            return [_to_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load stored strings: {exc}") from exc
        finally:
            db.close()

    def save(self, records: Iterable[StringRecord]) -> None:
        """Replace the stored collection with `records` in one transaction."""
        db = self.session_factory()
        try:
            db.query(models.StringModel).delete()
            db.add_all([_to_model(record, position) for position, record in enumerate(records)])
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"Could not save strings: {exc}") from exc
        finally:
            db.close()
