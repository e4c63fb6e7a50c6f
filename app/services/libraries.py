from typing import Any, List, Mapping, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core import security, validation
from app.models.models import Library, User
from app.repositories.libraries import LibraryRepository
from app.services.common import clean, parse_id


class LibraryService:
    def __init__(self, db: Session):
        self.repo = LibraryRepository(db)

    def create(self, user: User, payload: Mapping[str, Any]) -> UUID:
        data = {
            "id": security.generate_id(),
            "name": payload.get("name"),
            "description": payload.get("description") or "",
        }
        validation.validate(data, validation.LIBRARY_RULES)
        library = Library(user_id=user.id, **data)
        self.repo.create(library)
        return library.id

    def list(self, user: User, name: Optional[str] = None) -> List[Library]:
        return self.repo.get_all(user.id, {"name": clean(name)})

    def get(self, user: User, library_id: str) -> Library:
        return self.repo.get_by_id(user.id, parse_id(library_id, "library"))

    def update(self, user: User, library_id: str, payload: Mapping[str, Any]) -> Library:
        entity_id = parse_id(library_id, "library")
        validation.validate(payload, validation.LIBRARY_RULES, partial=True)
        return self.repo.update(user.id, entity_id, payload)

    def delete(self, user: User, library_id: str) -> None:
        self.repo.delete(user.id, parse_id(library_id, "library"))

    def add_book(self, user: User, library_id: str, book_id: str) -> None:
        self.repo.add_book(user.id, parse_id(library_id, "library"), parse_id(book_id, "book"))

    def remove_book(self, user: User, library_id: str, book_id: str) -> None:
        self.repo.remove_book(user.id, parse_id(library_id, "library"), parse_id(book_id, "book"))
