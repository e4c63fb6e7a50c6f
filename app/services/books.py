from typing import Any, Dict, List, Mapping
from uuid import UUID

from sqlalchemy.orm import Session

from app.core import security, validation
from app.models.models import Book, User
from app.repositories.books import BookRepository
from app.services.common import clean, parse_bool, parse_id

BOOK_DEFAULTS = {
    "description": "",
    "cover_url": "",
    "genre": "",
    "isbn": "",
    "published_date": "",
    "language": "",
    "pages": 0,
    "read": False,
}


class BookService:
    def __init__(self, db: Session):
        self.repo = BookRepository(db)

    def create(self, user: User, payload: Mapping[str, Any]) -> UUID:
        data: Dict[str, Any] = dict(BOOK_DEFAULTS)
        data.update({k: v for k, v in payload.items() if v is not None})
        data["id"] = security.generate_id()
        validation.validate(data, validation.BOOK_RULES)
        book = Book(user_id=user.id, **data)
        self.repo.create(book)
        return book.id

    def list(self, user: User, title=None, author=None, genre=None, isbn=None,
             language=None, read=None) -> List[Book]:
        filters = {
            "title": clean(title),
            "author": clean(author),
            "genre": clean(genre),
            "isbn": clean(isbn),
            "language": clean(language),
            "read": parse_bool(read, "read"),
        }
        return self.repo.get_all(user.id, filters)

    def get(self, user: User, book_id: str) -> Book:
        return self.repo.get_by_id(user.id, parse_id(book_id, "book"))

    def update(self, user: User, book_id: str, payload: Mapping[str, Any]) -> Book:
        entity_id = parse_id(book_id, "book")
        validation.validate(payload, validation.BOOK_RULES, partial=True)
        return self.repo.update(user.id, entity_id, payload)

    def delete(self, user: User, book_id: str) -> None:
        self.repo.delete(user.id, parse_id(book_id, "book"))
