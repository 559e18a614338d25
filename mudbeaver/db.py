"""
Document store abstraction for SQL databases and an in-memory test implementation.
"""

from __future__ import annotations

import copy
import logging
import secrets
from contextlib import contextmanager
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from typing import ClassVar, Dict, Iterator, Optional, Protocol, Type, TypeVar, Union

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    String,
    Text,
    create_engine,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from mudbeaver.errors import PersistenceError

logger = logging.getLogger(__name__)


def new_object_id() -> str:
    """24 lower-case hex characters, the shape of a document-store id."""
    return secrets.token_hex(12)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _json_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, list):
        return list(value)
    return value


_RENAMED = {"created_at": "createdAt", "updated_at": "updatedAt"}


class Document:
    """Shared JSON projection for stored records."""

    def as_dict(self) -> dict:
        return {
            _RENAMED.get(f.name, f.name): _json_value(getattr(self, f.name))
            for f in fields(self)
        }


@dataclass
class UserRecord(Document):
    name: str
    email: str
    role: str = "user"
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def summary(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email}


@dataclass
class BlogPost(Document):
    title: str
    content: str
    author_id: str
    images: list = field(default_factory=list)
    published: bool = False
    slug: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    MAX_IMAGES: ClassVar[int] = 4


@dataclass
class ContactMessage(Document):
    name: str
    email: str
    subject: str
    message: str
    status: str = "new"
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    STATUSES: ClassVar[tuple] = ("new", "read", "replied")


@dataclass
class InternshipApplication(Document):
    name: str
    email: str
    phone: str
    address: str
    city: str
    region: str
    zip_code: str
    institution: str
    payment_screenshot: str
    date_of_birth: Optional[date] = None
    status: str = "pending"
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    STATUSES: ClassVar[tuple] = ("pending", "approved", "rejected")


@dataclass
class Requirement(Document):
    username: str
    email: str
    phone: str
    address: Optional[str] = None
    site_details: Optional[str] = None
    area: Optional[str] = None
    budget: Optional[str] = None
    category: Optional[str] = None
    services: Optional[str] = None
    drawings: Optional[str] = None
    message: Optional[str] = None
    status: str = "new"
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    STATUSES: ClassVar[tuple] = ("new", "contacted", "quoted", "closed")


Submission = Union[ContactMessage, InternshipApplication, Requirement]
S = TypeVar("S", ContactMessage, InternshipApplication, Requirement)


class DbClient(Protocol):
    """Interface for document store access."""

    def create_user(self, user: UserRecord) -> UserRecord:
        ...

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        ...

    def create_blog(self, post: BlogPost) -> BlogPost:
        ...

    def get_blog(self, blog_id: str) -> Optional[BlogPost]:
        ...

    def find_blog_by_slug(self, slug: str) -> Optional[BlogPost]:
        ...

    def list_blogs(self, published: Optional[bool] = None) -> list[BlogPost]:
        ...

    def update_blog(self, blog_id: str, changes: dict) -> Optional[BlogPost]:
        ...

    def delete_blog(self, blog_id: str) -> bool:
        ...

    def create_submission(self, record: S) -> S:
        ...

    def get_submission(self, kind: Type[S], record_id: str) -> Optional[S]:
        ...

    def list_submissions(self, kind: Type[S]) -> list[S]:
        ...

    def update_submission_status(
        self, kind: Type[S], record_id: str, status: str
    ) -> Optional[S]:
        ...


def _newest_first(records: list) -> list:
    # Ties keep the most recently inserted record first.
    return sorted(reversed(records), key=lambda r: r.created_at, reverse=True)


class InMemoryDbClient:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.users: Dict[str, UserRecord] = {}
        self.blogs: Dict[str, BlogPost] = {}
        self.submissions: Dict[type, Dict[str, Submission]] = {
            ContactMessage: {},
            InternshipApplication: {},
            Requirement: {},
        }

    def _insert(self, collection: dict, record):
        stored = copy.deepcopy(record)
        stored.id = stored.id or new_object_id()
        stored.created_at = stored.created_at or _now()
        stored.updated_at = stored.created_at
        collection[stored.id] = stored
        return copy.deepcopy(stored)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.users.clear()
        self.blogs.clear()
        for collection in self.submissions.values():
            collection.clear()

    def create_user(self, user: UserRecord) -> UserRecord:
        return self._insert(self.users, user)

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        user = self.users.get(user_id)
        return copy.deepcopy(user) if user else None

    def create_blog(self, post: BlogPost) -> BlogPost:
        if post.slug and self.find_blog_by_slug(post.slug):
            raise PersistenceError(f"Duplicate slug {post.slug!r}")
        return self._insert(self.blogs, post)

    def get_blog(self, blog_id: str) -> Optional[BlogPost]:
        post = self.blogs.get(blog_id)
        return copy.deepcopy(post) if post else None

    def find_blog_by_slug(self, slug: str) -> Optional[BlogPost]:
        for post in self.blogs.values():
            if post.slug == slug:
                return copy.deepcopy(post)
        return None

    def list_blogs(self, published: Optional[bool] = None) -> list[BlogPost]:
        posts = [
            copy.deepcopy(p)
            for p in self.blogs.values()
            if published is None or p.published == published
        ]
        return _newest_first(posts)

    def update_blog(self, blog_id: str, changes: dict) -> Optional[BlogPost]:
        post = self.blogs.get(blog_id)
        if not post:
            return None
        slug = changes.get("slug")
        if slug:
            holder = self.find_blog_by_slug(slug)
            if holder and holder.id != blog_id:
                raise PersistenceError(f"Duplicate slug {slug!r}")
        for key, value in changes.items():
            setattr(post, key, copy.deepcopy(value))
        post.updated_at = _now()
        return copy.deepcopy(post)

    def delete_blog(self, blog_id: str) -> bool:
        return self.blogs.pop(blog_id, None) is not None

    def create_submission(self, record: S) -> S:
        return self._insert(self.submissions[type(record)], record)

    def get_submission(self, kind: Type[S], record_id: str) -> Optional[S]:
        record = self.submissions[kind].get(record_id)
        return copy.deepcopy(record) if record else None

    def list_submissions(self, kind: Type[S]) -> list[S]:
        return _newest_first([copy.deepcopy(r) for r in self.submissions[kind].values()])

    def update_submission_status(
        self, kind: Type[S], record_id: str, status: str
    ) -> Optional[S]:
        record = self.submissions[kind].get(record_id)
        if not record:
            return None
        record.status = status
        record.updated_at = _now()
        return copy.deepcopy(record)


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

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.Session()
        try:
            yield session
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Document store operation failed")
            raise PersistenceError(str(exc)) from exc
        finally:
            session.close()

    @staticmethod
    def _to_record(kind: type, row):
        record = kind(**{f.name: getattr(row, f.name) for f in fields(kind)})
        record.created_at = _aware(record.created_at)
        record.updated_at = _aware(record.updated_at)
        if isinstance(record, BlogPost):
            record.images = list(record.images or [])
        return record

    def _insert(self, record):
        kind = type(record)
        now = _now()
        values = {f.name: getattr(record, f.name) for f in fields(kind)}
        values.update(id=record.id or new_object_id(), created_at=now, updated_at=now)
        with self._session() as session:
            row = _ROWS[kind](**values)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(kind, row)

    def _get(self, kind: type, record_id: str):
        with self._session() as session:
            row = session.get(_ROWS[kind], record_id)
            return self._to_record(kind, row) if row else None

    def _update(self, kind: type, record_id: str, changes: dict):
        with self._session() as session:
            row = session.get(_ROWS[kind], record_id)
            if not row:
                return None
            for key, value in changes.items():
                setattr(row, key, value)
            row.updated_at = _now()
            session.commit()
            session.refresh(row)
            return self._to_record(kind, row)

    def create_user(self, user: UserRecord) -> UserRecord:
        return self._insert(user)

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self._get(UserRecord, user_id)

    def create_blog(self, post: BlogPost) -> BlogPost:
        return self._insert(post)

    def get_blog(self, blog_id: str) -> Optional[BlogPost]:
        return self._get(BlogPost, blog_id)

    def find_blog_by_slug(self, slug: str) -> Optional[BlogPost]:
        with self._session() as session:
            stmt = select(BlogPostRow).where(BlogPostRow.slug == slug).limit(1)
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_record(BlogPost, row) if row else None

    def list_blogs(self, published: Optional[bool] = None) -> list[BlogPost]:
        with self._session() as session:
            stmt = select(BlogPostRow).order_by(BlogPostRow.created_at.desc())
            if published is not None:
                stmt = stmt.where(BlogPostRow.published == published)
            rows = session.execute(stmt).scalars().all()
            return [self._to_record(BlogPost, row) for row in rows]

    def update_blog(self, blog_id: str, changes: dict) -> Optional[BlogPost]:
        return self._update(BlogPost, blog_id, changes)

    def delete_blog(self, blog_id: str) -> bool:
        with self._session() as session:
            row = session.get(BlogPostRow, blog_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def create_submission(self, record: S) -> S:
        return self._insert(record)

    def get_submission(self, kind: Type[S], record_id: str) -> Optional[S]:
        return self._get(kind, record_id)

    def list_submissions(self, kind: Type[S]) -> list[S]:
        row_type = _ROWS[kind]
        with self._session() as session:
            stmt = select(row_type).order_by(row_type.created_at.desc())
            rows = session.execute(stmt).scalars().all()
            return [self._to_record(kind, row) for row in rows]

    def update_submission_status(
        self, kind: Type[S], record_id: str, status: str
    ) -> Optional[S]:
        return self._update(kind, record_id, {"status": status})


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(24), primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    role = Column(String, nullable=False, default="user")
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class BlogPostRow(Base):
    __tablename__ = "blog_posts"

    id = Column(String(24), primary_key=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    images = Column(JSON, nullable=False, default=list)
    author_id = Column(String(24), nullable=False, index=True)
    published = Column(Boolean, nullable=False, default=False, index=True)
    # NULLs never collide, so posts without a slug are exempt.
    slug = Column(String, nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class ContactMessageRow(Base):
    __tablename__ = "contact_messages"

    id = Column(String(24), primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="new")
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class InternshipApplicationRow(Base):
    __tablename__ = "internship_applications"

    id = Column(String(24), primary_key=True)
    name = Column(String, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    address = Column(Text, nullable=False)
    city = Column(String, nullable=False)
    region = Column(String, nullable=False)
    zip_code = Column(String, nullable=False)
    institution = Column(String, nullable=False)
    payment_screenshot = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class RequirementRow(Base):
    __tablename__ = "requirements"

    id = Column(String(24), primary_key=True)
    username = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    address = Column(Text, nullable=True)
    site_details = Column(Text, nullable=True)
    area = Column(String, nullable=True)
    budget = Column(String, nullable=True)
    category = Column(String, nullable=True)
    services = Column(String, nullable=True)
    drawings = Column(String, nullable=True)
    message = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="new")
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


_ROWS = {
    UserRecord: UserRow,
    BlogPost: BlogPostRow,
    ContactMessage: ContactMessageRow,
    InternshipApplication: InternshipApplicationRow,
    Requirement: RequirementRow,
}
