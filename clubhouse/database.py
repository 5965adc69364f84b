"""Record store and the data client every workflow reads and writes through."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Iterator, List, Type, TypeVar
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import JSON, Column
from sqlmodel import Field, Session, SQLModel, create_engine, select

from . import llm, notify

DEFAULT_SQLITE_PATH = "sqlite:///./clubhouse.db"
SYSTEM_FIELDS = {"id", "created_date", "updated_date"}
JSON_PAYLOAD = TypeAdapter(dict[str, Any])

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


def _build_engine_url() -> str:
    """Return the configured database URL or fall back to SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_SQLITE_PATH)


def _build_engine():
    url = _build_engine_url()
    engine_kwargs = {}
    if url.startswith("sqlite"):
        # Only the SQLite driver accepts check_same_thread.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(url, **engine_kwargs)


engine = _build_engine()


class Record(SQLModel, table=True):
    pk: int | None = Field(default=None, primary_key=True)
    id: str = Field(default_factory=lambda: uuid4().hex, unique=True, index=True, nullable=False)
    entity: str = Field(index=True, nullable=False, max_length=64)
    data: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class RecordNotFound(LookupError):
    def __init__(self, entity: str, record_id: str):
        super().__init__(f"{entity} {record_id} not found")
        self.entity = entity
        self.record_id = record_id


def init_db() -> None:
    """Create tables if they don't already exist."""
    SQLModel.metadata.create_all(engine)


def get_session() -> Iterator[Session]:
    """Yield a SQLModel session for dependency injection."""
    with Session(engine) as session:
        yield session


def _row(record: Record) -> dict[str, Any]:
    return {
        **record.data,
        "id": record.id,
        "created_date": record.created_at.isoformat(),
        "updated_date": record.updated_at.isoformat(),
    }


def _matches(record: Record, query: dict[str, Any]) -> bool:
    for key, expected in query.items():
        if key == "id":
            if record.id != expected:
                return False
            continue
        actual = record.data.get(key)
        if isinstance(actual, list) and not isinstance(expected, list):
            if expected not in actual:
                return False
        elif actual != expected:
            return False
    return True


def _payload(payload: dict[str, Any]) -> dict[str, Any]:
    clean = {key: value for key, value in payload.items() if key not in SYSTEM_FIELDS}
    return JSON_PAYLOAD.dump_python(clean, mode="json")


class DataClient:
    """Generic filtered-query/create/update/delete access over named collections.

    Updates are a shallow merge over the stored record with last write wins;
    there is no version check.
    """

    def __init__(self, session: Session):
        self.session = session

    def _load(self, entity: str, record_id: str) -> Record:
        record = self.session.exec(
            select(Record).where(Record.entity == entity, Record.id == record_id)
        ).first()
        if record is None:
            raise RecordNotFound(entity, record_id)
        return record

    def filter(self, entity: str, query: dict[str, Any] | None = None) -> List[dict[str, Any]]:
        query = {key: value for key, value in (query or {}).items() if value is not None}
        statement = select(Record).where(Record.entity == entity)
        if "id" in query:
            statement = statement.where(Record.id == query["id"])
        rows = self.session.exec(statement.order_by(Record.pk)).all()
        return [_row(record) for record in rows if _matches(record, query)]

    def get(self, entity: str, record_id: str) -> dict[str, Any]:
        return _row(self._load(entity, record_id))

    def create(self, entity: str, payload: dict[str, Any]) -> dict[str, Any]:
        record = Record(entity=entity, data=_payload(payload))
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        logger.debug("Created %s %s", entity, record.id)
        return _row(record)

    def update(self, entity: str, record_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        record = self._load(entity, record_id)
        record.data = {**record.data, **_payload(payload)}
        record.updated_at = datetime.utcnow()
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return _row(record)

    def delete(self, entity: str, record_id: str) -> None:
        record = self._load(entity, record_id)
        self.session.delete(record)
        self.session.commit()

    def records(self, model: Type[ModelT], query: dict[str, Any] | None = None) -> List[ModelT]:
        """Typed view of ``filter``; rows that fail validation are logged and skipped."""
        entity = model.__name__
        typed: List[ModelT] = []
        for row in self.filter(entity, query):
            try:
                typed.append(model.model_validate(row))
            except ValidationError as exc:
                logger.warning("Skipping invalid %s %s: %s", entity, row.get("id"), exc)
        return typed

    def record(self, model: Type[ModelT], record_id: str) -> ModelT:
        """Typed ``get``; a row that fails validation is logged and reported as missing."""
        entity = model.__name__
        row = self.get(entity, record_id)
        try:
            return model.model_validate(row)
        except ValidationError as exc:
            logger.warning("Invalid %s %s: %s", entity, record_id, exc)
            raise RecordNotFound(entity, record_id) from exc

    def send_email(self, to: str, subject: str, body: str) -> bool:
        return notify.send_email(to, subject, body)

    def invoke_llm(self, prompt: str, schema: dict[str, Any]) -> dict[str, Any]:
        return llm.invoke_llm(prompt, schema)
