from typing import Any, List, Mapping, Optional
from uuid import UUID

from app.core.errors import ConflictError
from app.models.models import Book, Loan, book_library
from app.repositories.base import OwnedRepository

# case-insensitive substring match
TEXT_FILTERS = ("title", "author", "genre", "language")
# exact match
EXACT_FILTERS = ("isbn", "read")


class BookRepository(OwnedRepository):
    model = Book
    name = "book"
    updatable = (
        "title", "author", "description", "cover_url", "genre",
        "isbn", "published_date", "language", "pages", "read",
    )

    def get_all(self, user_id: UUID, filters: Optional[Mapping[str, Any]] = None) -> List[Book]:
        filters = filters or {}
        query = self.scoped(user_id)
        for field in TEXT_FILTERS:
            value = filters.get(field)
            if value:
                query = query.filter(getattr(Book, field).ilike(f"%{value}%"))
        for field in EXACT_FILTERS:
            value = filters.get(field)
            if value is not None and value != "":
                query = query.filter(getattr(Book, field) == value)
        return self.newest_first(query)

    def delete_dependents(self, user_id: UUID, entity_id: UUID) -> None:
        active = (
            self.db.query(Loan)
            .filter(Loan.user_id == user_id, Loan.book_id == entity_id, Loan.is_returned.is_(False))
            .count()
        )
        if active > 0:
            raise ConflictError("cannot delete book with active loans")
        self.db.execute(book_library.delete().where(book_library.c.book_id == entity_id))
