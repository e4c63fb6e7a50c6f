import logging
from typing import Any, List, Mapping, Optional
from uuid import UUID

from app.core.database import transaction
from app.core.errors import ConflictError, NotFoundError
from app.models.models import Book, Loan, utcnow
from app.repositories.base import OwnedRepository

logger = logging.getLogger(__name__)


class LoanRepository(OwnedRepository):
    model = Loan
    name = "loan"
    updatable = ("borrower_name", "loan_date", "is_returned")

    def create(self, loan: Loan) -> Loan:
        with transaction(self.db):
            book = (
                self.db.query(Book)
                .filter(Book.id == loan.book_id, Book.user_id == loan.user_id)
                .with_for_update()
                .first()
            )
            if book is None:
                raise NotFoundError("book not found")
            active = (
                self.db.query(Loan)
                .filter(Loan.book_id == loan.book_id, Loan.is_returned.is_(False))
                .first()
            )
            if active is not None:
                raise ConflictError("book already borrowed")
            self.db.add(loan)
        self.db.refresh(loan)
        logger.info(f"User {loan.user_id} lent book {loan.book_id} loan {loan.id}")
        return loan

    def get_all(self, user_id: UUID, filters: Optional[Mapping[str, Any]] = None) -> List[Loan]:
        filters = filters or {}
        query = self.scoped(user_id)
        if filters.get("book_id") is not None:
            query = query.filter(Loan.book_id == filters["book_id"])
        if filters.get("is_returned") is not None:
            query = query.filter(Loan.is_returned == filters["is_returned"])
        return self.newest_first(query)

    def return_loan(self, user_id: UUID, loan_id: UUID) -> Loan:
        """Mark a loan returned. Returning an already returned loan changes nothing."""
        with transaction(self.db):
            matched = (
                self.scoped(user_id)
                .filter(Loan.id == loan_id)
                .update({"is_returned": True, "updated_at": utcnow()}, synchronize_session=False)
            )
            if matched == 0:
                raise NotFoundError(self.not_found)
        logger.info(f"Loan {loan_id} returned")
        return self.get_by_id(user_id, loan_id)
