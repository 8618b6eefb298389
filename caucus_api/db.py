"""
Database abstraction for SQL databases and an in-memory test implementation.
"""

from __future__ import annotations

import datetime as dt
import time
import uuid
from dataclasses import dataclass, field, fields, replace
from typing import Dict, Optional, Protocol, TypeVar

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Float,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker


class DuplicateNameError(ValueError):
    """Raised when a tech item name is already taken."""


def _now() -> float:
    return time.time()


@dataclass
class EventRecord:
    id: str
    date: dt.date
    time: str
    topic: str
    location: str
    presenter: Optional[str] = None
    presenter_url: Optional[str] = None
    location_url: Optional[str] = None
    is_visible: bool = True
    content: Optional[str] = None
    created_at: float = field(default_factory=_now)
    updated_at: float = field(default_factory=_now)


@dataclass
class ResourceRecord:
    id: str
    title: str
    url: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    featured: bool = False
    order: int = 0
    is_visible: bool = True
    created_at: float = field(default_factory=_now)
    updated_at: float = field(default_factory=_now)


@dataclass
class TechItemRecord:
    id: str
    name: str
    url: str
    order: int = 0
    is_visible: bool = True
    created_at: float = field(default_factory=_now)
    updated_at: float = field(default_factory=_now)


@dataclass
class ContactRecord:
    id: str
    name: str
    email: str
    message: str
    read: bool = False
    created_at: float = field(default_factory=_now)
    updated_at: float = field(default_factory=_now)


_READONLY_FIELDS = {"id", "created_at", "updated_at"}

RecordT = TypeVar("RecordT")


def _editable(record_cls: type, changes: dict) -> dict:
    allowed = {f.name for f in fields(record_cls)} - _READONLY_FIELDS
    return {key: value for key, value in changes.items() if key in allowed}


class DbClient(Protocol):
    """Interface for database access."""

    def list_events(
        self, *, include_hidden: bool = False, limit: Optional[int] = None
    ) -> tuple[list[EventRecord], int]:
        ...

    def get_event(self, event_id: str) -> Optional[EventRecord]:
        ...

    def create_event(self, values: dict) -> EventRecord:
        ...

    def update_event(self, event_id: str, changes: dict) -> Optional[EventRecord]:
        ...

    def delete_event(self, event_id: str) -> Optional[EventRecord]:
        ...

    def list_resources(
        self,
        *,
        include_hidden: bool = False,
        featured_only: bool = False,
        limit: Optional[int] = None,
    ) -> tuple[list[ResourceRecord], int]:
        ...

    def get_resource(self, resource_id: str) -> Optional[ResourceRecord]:
        ...

    def create_resource(self, values: dict) -> ResourceRecord:
        ...

    def update_resource(
        self, resource_id: str, changes: dict
    ) -> Optional[ResourceRecord]:
        ...

    def delete_resource(self, resource_id: str) -> Optional[ResourceRecord]:
        ...

    def list_tech_items(self, *, include_hidden: bool = False) -> list[TechItemRecord]:
        ...

    def get_tech_item(self, item_id: str) -> Optional[TechItemRecord]:
        ...

    def create_tech_item(self, values: dict) -> TechItemRecord:
        ...

    def update_tech_item(
        self, item_id: str, changes: dict
    ) -> Optional[TechItemRecord]:
        ...

    def delete_tech_item(self, item_id: str) -> Optional[TechItemRecord]:
        ...

    def create_contact(self, name: str, email: str, message: str) -> ContactRecord:
        ...

    def list_contacts(
        self, *, limit: int = 50, skip: int = 0, unread_only: bool = False
    ) -> tuple[list[ContactRecord], int]:
        ...

    def count_unread_contacts(self) -> int:
        ...

    def set_contact_read(self, contact_id: str, read: bool) -> Optional[ContactRecord]:
        ...

    def delete_contact(self, contact_id: str) -> Optional[ContactRecord]:
        ...

    def clear_content(self) -> None:
        ...


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.events: Dict[str, EventRecord] = {}
        self.resources: Dict[str, ResourceRecord] = {}
        self.tech_items: Dict[str, TechItemRecord] = {}
        self.contacts: Dict[str, ContactRecord] = {}

    def clear_content(self) -> None:
        self.events.clear()
        self.resources.clear()
        self.tech_items.clear()

    @staticmethod
    def _update(store: dict, record_id: str, record_cls: type, changes: dict):
        record = store.get(record_id)
        if record is None:
            return None
        updated = replace(record, **_editable(record_cls, changes), updated_at=_now())
        store[record_id] = updated
        return updated

    # Events

    def list_events(
        self, *, include_hidden: bool = False, limit: Optional[int] = None
    ) -> tuple[list[EventRecord], int]:
        events = [e for e in self.events.values() if include_hidden or e.is_visible]
        events.sort(key=lambda e: e.date, reverse=True)
        total = len(events)
        if limit:
            events = events[:limit]
        return events, total

    def get_event(self, event_id: str) -> Optional[EventRecord]:
        return self.events.get(event_id)

    def create_event(self, values: dict) -> EventRecord:
        record = EventRecord(id=_new_id(), **_editable(EventRecord, values))
        self.events[record.id] = record
        return record

    def update_event(self, event_id: str, changes: dict) -> Optional[EventRecord]:
        return self._update(self.events, event_id, EventRecord, changes)

    def delete_event(self, event_id: str) -> Optional[EventRecord]:
        return self.events.pop(event_id, None)

    # Resources

    def list_resources(
        self,
        *,
        include_hidden: bool = False,
        featured_only: bool = False,
        limit: Optional[int] = None,
    ) -> tuple[list[ResourceRecord], int]:
        resources = [
            r
            for r in self.resources.values()
            if (include_hidden or r.is_visible) and (not featured_only or r.featured)
        ]
        resources.sort(key=lambda r: r.order)
        total = len(resources)
        if limit:
            resources = resources[:limit]
        return resources, total

    def get_resource(self, resource_id: str) -> Optional[ResourceRecord]:
        return self.resources.get(resource_id)

    def create_resource(self, values: dict) -> ResourceRecord:
        record = ResourceRecord(id=_new_id(), **_editable(ResourceRecord, values))
        self.resources[record.id] = record
        return record

    def update_resource(
        self, resource_id: str, changes: dict
    ) -> Optional[ResourceRecord]:
        return self._update(self.resources, resource_id, ResourceRecord, changes)

    def delete_resource(self, resource_id: str) -> Optional[ResourceRecord]:
        return self.resources.pop(resource_id, None)

    # Tech list

    def _name_taken(self, name: str, exclude_id: Optional[str] = None) -> bool:
        return any(
            item.name == name and item.id != exclude_id
            for item in self.tech_items.values()
        )

    def list_tech_items(self, *, include_hidden: bool = False) -> list[TechItemRecord]:
        items = [i for i in self.tech_items.values() if include_hidden or i.is_visible]
        items.sort(key=lambda i: (i.order, i.name))
        return items

    def get_tech_item(self, item_id: str) -> Optional[TechItemRecord]:
        return self.tech_items.get(item_id)

    def create_tech_item(self, values: dict) -> TechItemRecord:
        record = TechItemRecord(id=_new_id(), **_editable(TechItemRecord, values))
        if self._name_taken(record.name):
            raise DuplicateNameError(record.name)
        self.tech_items[record.id] = record
        return record

    def update_tech_item(
        self, item_id: str, changes: dict
    ) -> Optional[TechItemRecord]:
        name = changes.get("name")
        if name is not None and self._name_taken(name, exclude_id=item_id):
            raise DuplicateNameError(name)
        return self._update(self.tech_items, item_id, TechItemRecord, changes)

    def delete_tech_item(self, item_id: str) -> Optional[TechItemRecord]:
        return self.tech_items.pop(item_id, None)

    # Contact submissions

    def create_contact(self, name: str, email: str, message: str) -> ContactRecord:
        record = ContactRecord(id=_new_id(), name=name, email=email, message=message)
        self.contacts[record.id] = record
        return record

    def list_contacts(
        self, *, limit: int = 50, skip: int = 0, unread_only: bool = False
    ) -> tuple[list[ContactRecord], int]:
        contacts = [c for c in self.contacts.values() if not unread_only or not c.read]
        contacts.sort(key=lambda c: c.created_at, reverse=True)
        return contacts[skip : skip + limit], len(contacts)

    def count_unread_contacts(self) -> int:
        return sum(1 for c in self.contacts.values() if not c.read)

    def set_contact_read(self, contact_id: str, read: bool) -> Optional[ContactRecord]:
        return self._update(self.contacts, contact_id, ContactRecord, {"read": read})

    def delete_contact(self, contact_id: str) -> Optional[ContactRecord]:
        return self.contacts.pop(contact_id, None)


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _to_record(row, record_cls: type[RecordT]) -> RecordT:
        return record_cls(**{f.name: getattr(row, f.name) for f in fields(record_cls)})

    def _create(self, row_cls: type, record_cls: type, values: dict):
        now = _now()
        with self.Session() as session:
            row = row_cls(
                id=_new_id(),
                created_at=now,
                updated_at=now,
                **_editable(record_cls, values),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(row, record_cls)

    def _get(self, row_cls: type, record_cls: type, record_id: str):
        with self.Session() as session:
            row = session.get(row_cls, record_id)
            return self._to_record(row, record_cls) if row else None

    def _update(self, row_cls: type, record_cls: type, record_id: str, changes: dict):
        with self.Session() as session:
            row = session.get(row_cls, record_id)
            if not row:
                return None
            for key, value in _editable(record_cls, changes).items():
                setattr(row, key, value)
            row.updated_at = _now()
            session.commit()
            session.refresh(row)
            return self._to_record(row, record_cls)

    def _delete(self, row_cls: type, record_cls: type, record_id: str):
        with self.Session() as session:
            row = session.get(row_cls, record_id)
            if not row:
                return None
            record = self._to_record(row, record_cls)
            session.delete(row)
            session.commit()
            return record

    def _list(self, stmt, record_cls: type, limit: Optional[int] = None):
        with self.Session() as session:
            total = session.execute(
                select(func.count()).select_from(stmt.order_by(None).subquery())
            ).scalar_one()
            if limit:
                stmt = stmt.limit(limit)
            rows = session.execute(stmt).scalars().all()
            return [self._to_record(row, record_cls) for row in rows], total

    # Events

    def list_events(
        self, *, include_hidden: bool = False, limit: Optional[int] = None
    ) -> tuple[list[EventRecord], int]:
        stmt = select(EventRow).order_by(EventRow.date.desc())
        if not include_hidden:
            stmt = stmt.where(EventRow.is_visible.is_(True))
        return self._list(stmt, EventRecord, limit)

    def get_event(self, event_id: str) -> Optional[EventRecord]:
        return self._get(EventRow, EventRecord, event_id)

    def create_event(self, values: dict) -> EventRecord:
        return self._create(EventRow, EventRecord, values)

    def update_event(self, event_id: str, changes: dict) -> Optional[EventRecord]:
        return self._update(EventRow, EventRecord, event_id, changes)

    def delete_event(self, event_id: str) -> Optional[EventRecord]:
        return self._delete(EventRow, EventRecord, event_id)

    # Resources

    def list_resources(
        self,
        *,
        include_hidden: bool = False,
        featured_only: bool = False,
        limit: Optional[int] = None,
    ) -> tuple[list[ResourceRecord], int]:
        stmt = select(ResourceRow).order_by(ResourceRow.order.asc())
        if not include_hidden:
            stmt = stmt.where(ResourceRow.is_visible.is_(True))
        if featured_only:
            stmt = stmt.where(ResourceRow.featured.is_(True))
        return self._list(stmt, ResourceRecord, limit)

    def get_resource(self, resource_id: str) -> Optional[ResourceRecord]:
        return self._get(ResourceRow, ResourceRecord, resource_id)

    def create_resource(self, values: dict) -> ResourceRecord:
        return self._create(ResourceRow, ResourceRecord, values)

    def update_resource(
        self, resource_id: str, changes: dict
    ) -> Optional[ResourceRecord]:
        return self._update(ResourceRow, ResourceRecord, resource_id, changes)

    def delete_resource(self, resource_id: str) -> Optional[ResourceRecord]:
        return self._delete(ResourceRow, ResourceRecord, resource_id)

    # Tech list

    def list_tech_items(self, *, include_hidden: bool = False) -> list[TechItemRecord]:
        stmt = select(TechItemRow).order_by(TechItemRow.order.asc(), TechItemRow.name.asc())
        if not include_hidden:
            stmt = stmt.where(TechItemRow.is_visible.is_(True))
        items, _ = self._list(stmt, TechItemRecord)
        return items

    def get_tech_item(self, item_id: str) -> Optional[TechItemRecord]:
        return self._get(TechItemRow, TechItemRecord, item_id)

    def create_tech_item(self, values: dict) -> TechItemRecord:
        try:
            return self._create(TechItemRow, TechItemRecord, values)
        except IntegrityError as exc:
            raise DuplicateNameError(values.get("name")) from exc

    def update_tech_item(
        self, item_id: str, changes: dict
    ) -> Optional[TechItemRecord]:
        try:
            return self._update(TechItemRow, TechItemRecord, item_id, changes)
        except IntegrityError as exc:
            raise DuplicateNameError(changes.get("name")) from exc

    def delete_tech_item(self, item_id: str) -> Optional[TechItemRecord]:
        return self._delete(TechItemRow, TechItemRecord, item_id)

    # Contact submissions

    def create_contact(self, name: str, email: str, message: str) -> ContactRecord:
        return self._create(
            ContactRow,
            ContactRecord,
            {"name": name, "email": email, "message": message, "read": False},
        )

    def list_contacts(
        self, *, limit: int = 50, skip: int = 0, unread_only: bool = False
    ) -> tuple[list[ContactRecord], int]:
        stmt = select(ContactRow).order_by(ContactRow.created_at.desc())
        if unread_only:
            stmt = stmt.where(ContactRow.read.is_(False))
        with self.Session() as session:
            total = session.execute(
                select(func.count()).select_from(stmt.order_by(None).subquery())
            ).scalar_one()
            rows = session.execute(stmt.offset(skip).limit(limit)).scalars().all()
            return [self._to_record(row, ContactRecord) for row in rows], total

    def count_unread_contacts(self) -> int:
        with self.Session() as session:
            return session.execute(
                select(func.count()).select_from(ContactRow).where(ContactRow.read.is_(False))
            ).scalar_one()

    def set_contact_read(self, contact_id: str, read: bool) -> Optional[ContactRecord]:
        return self._update(ContactRow, ContactRecord, contact_id, {"read": read})

    def delete_contact(self, contact_id: str) -> Optional[ContactRecord]:
        return self._delete(ContactRow, ContactRecord, contact_id)

    def clear_content(self) -> None:
        with self.Session() as session:
            session.execute(delete(EventRow))
            session.execute(delete(ResourceRow))
            session.execute(delete(TechItemRow))
            session.commit()


Base = declarative_base()


class EventRow(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(String, nullable=False)
    presenter = Column(String, nullable=True)
    presenter_url = Column(String, nullable=True)
    topic = Column(String, nullable=False)
    location = Column(String, nullable=False)
    location_url = Column(String, nullable=True)
    is_visible = Column(Boolean, nullable=False, default=True)
    content = Column(Text, nullable=True)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class ResourceRow(Base):
    __tablename__ = "resources"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    url = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    thumbnail = Column(String, nullable=True)
    featured = Column(Boolean, nullable=False, default=False)
    order = Column("sort_order", Integer, nullable=False, default=0, index=True)
    is_visible = Column(Boolean, nullable=False, default=True)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class TechItemRow(Base):
    __tablename__ = "tech_items"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    url = Column(String, nullable=False)
    order = Column("sort_order", Integer, nullable=False, default=0)
    is_visible = Column(Boolean, nullable=False, default=True)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class ContactRow(Base):
    __tablename__ = "contact_submissions"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(Float, nullable=False, index=True)
    updated_at = Column(Float, nullable=False)
