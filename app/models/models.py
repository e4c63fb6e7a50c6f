from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Table, Uuid
from sqlalchemy.orm import relationship

from app.core.database import Base


def utcnow() -> datetime:
    # naive UTC, so values compare the same on SQLite and Postgres
    return datetime.now(timezone.utc).replace(tzinfo=None)


book_library = Table(
    "book_library",
    Base.metadata,
    Column("book_id", Uuid, ForeignKey("books.id"), primary_key=True),
    Column("library_id", Uuid, ForeignKey("libraries.id"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"
    id = Column(Uuid, primary_key=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True, index=True)

    books = relationship("Book", back_populates="user")


class Book(Base):
    __tablename__ = "books"
    id = Column(Uuid, primary_key=True)
    title = Column(String(100), nullable=False, index=True)
    author = Column(String(100), nullable=False, index=True)
    description = Column(String(1024), default="")
    cover_url = Column(String(1024), default="")
    genre = Column(String(100), default="")
    isbn = Column(String(20), default="", index=True)
    published_date = Column(String(20), default="")
    language = Column(String(10), default="")
    pages = Column(Integer, default=0)
    read = Column(Boolean, default=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="books")
    libraries = relationship("Library", secondary=book_library, back_populates="books")


Index("ix_books_title_author", Book.title, Book.author)


class Library(Base):
    __tablename__ = "libraries"
    id = Column(Uuid, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(String(1024), default="")
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    books = relationship("Book", secondary=book_library, back_populates="libraries", order_by=Book.title)


class Loan(Base):
    __tablename__ = "loans"
    id = Column(Uuid, primary_key=True)
    # no FK: returned loans outlive the book they point at
    book_id = Column(Uuid, nullable=False, index=True)
    borrower_name = Column(String(100), nullable=False)
    loan_date = Column(String(20), nullable=False)
    is_returned = Column(Boolean, default=False, nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class ValidationToken(Base):
    __tablename__ = "validation_tokens"
    token = Column(String(100), primary_key=True)
    type = Column(String(100), nullable=False)
    valid = Column(Boolean, default=True, nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        """Valid and strictly before expiry; the expiry instant itself is expired."""
        now = now or utcnow()
        return bool(self.valid) and now < self.expires_at
