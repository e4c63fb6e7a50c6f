import logging
from typing import Any, Dict, Iterable, List, Mapping
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from app.core.database import transaction
from app.core.errors import AlreadyExistsError, NotFoundError
from app.models.models import utcnow

logger = logging.getLogger(__name__)


class OwnedRepository:
    """CRUD for rows that belong to a user.

    Every read and write is filtered on ``user_id``, so a row owned by
    someone else looks exactly like a missing one.
    """

    model = None
    name = "record"
    updatable: Iterable[str] = ()

    def __init__(self, db: Session):
        self.db = db

    @property
    def not_found(self) -> str:
        return f"{self.name} not found"

    def scoped(self, user_id: UUID) -> Query:
        return self.db.query(self.model).filter(self.model.user_id == user_id)

    def owned(self, user_id: UUID, entity_id: UUID):
        """Fetch an owned row or raise NotFoundError; usable inside a transaction."""
        entity = self.scoped(user_id).filter(self.model.id == entity_id).first()
        if entity is None:
            raise NotFoundError(self.not_found)
        return entity

    def create(self, entity):
        try:
            with transaction(self.db):
                self.db.add(entity)
                self.db.flush()
        except IntegrityError as e:
            raise AlreadyExistsError(f"{self.name} already exists") from e
        self.db.refresh(entity)
        logger.info(f"Created {self.name} id={entity.id} user={entity.user_id}")
        return entity

    def get_by_id(self, user_id: UUID, entity_id: UUID):
        return self.owned(user_id, entity_id)

    def newest_first(self, query: Query) -> List[Any]:
        return query.order_by(self.model.created_at.desc(), self.model.id).all()

    def update(self, user_id: UUID, entity_id: UUID, values: Mapping[str, Any]):
        """Partial update; None values and non-updatable keys are ignored."""
        changes: Dict[str, Any] = {
            key: value for key, value in values.items() if key in self.updatable and value is not None
        }
        changes["updated_at"] = utcnow()
        with transaction(self.db):
            matched = (
                self.scoped(user_id)
                .filter(self.model.id == entity_id)
                .update(changes, synchronize_session=False)
            )
            if matched == 0:
                raise NotFoundError(self.not_found)
        logger.info(f"Updated {self.name} id={entity_id} fields={sorted(changes)}")
        return self.get_by_id(user_id, entity_id)

    def delete(self, user_id: UUID, entity_id: UUID) -> None:
        with transaction(self.db):
            self.delete_dependents(user_id, entity_id)
            deleted = (
                self.scoped(user_id)
                .filter(self.model.id == entity_id)
                .delete(synchronize_session=False)
            )
            if deleted == 0:
                raise NotFoundError(self.not_found)
        logger.info(f"Deleted {self.name} id={entity_id}")

    def delete_dependents(self, user_id: UUID, entity_id: UUID) -> None:
        """Hook run inside the delete transaction before the row goes."""
