import logging
from typing import Any, List, Mapping, Optional
from uuid import UUID

from sqlalchemy.orm import selectinload

from app.core.database import transaction
from app.core.errors import NotFoundError
from app.models.models import Book, Library, book_library
from app.repositories.base import OwnedRepository

logger = logging.getLogger(__name__)


class LibraryRepository(OwnedRepository):
    model = Library
    name = "library"
    updatable = ("name", "description")

    def get_all(self, user_id: UUID, filters: Optional[Mapping[str, Any]] = None) -> List[Library]:
        filters = filters or {}
        query = self.scoped(user_id)
        if filters.get("name"):
            query = query.filter(Library.name.ilike(f"%{filters['name']}%"))
        return self.newest_first(query)

    def get_by_id(self, user_id: UUID, entity_id: UUID) -> Library:
        library = (
            self.scoped(user_id)
            .options(selectinload(Library.books))
            .filter(Library.id == entity_id)
            .first()
        )
        if library is None:
            raise NotFoundError(self.not_found)
        return library

    def delete_dependents(self, user_id: UUID, entity_id: UUID) -> None:
        self.db.execute(book_library.delete().where(book_library.c.library_id == entity_id))

    def _owned_pair(self, user_id: UUID, library_id: UUID, book_id: UUID):
        library = self.owned(user_id, library_id)
        book = (
            self.db.query(Book)
            .filter(Book.id == book_id, Book.user_id == user_id)
            .first()
        )
        if book is None:
            raise NotFoundError("book not found")
        return library, book

    def add_book(self, user_id: UUID, library_id: UUID, book_id: UUID) -> None:
        """Link a book to a library; both must belong to the user. Re-adding is a no-op."""
        with transaction(self.db):
            library, book = self._owned_pair(user_id, library_id, book_id)
            if book not in library.books:
                library.books.append(book)
        logger.info(f"Added book {book_id} to library {library_id}")

    def remove_book(self, user_id: UUID, library_id: UUID, book_id: UUID) -> None:
        with transaction(self.db):
            library, book = self._owned_pair(user_id, library_id, book_id)
            if book in library.books:
                library.books.remove(book)
        logger.info(f"Removed book {book_id} from library {library_id}")
