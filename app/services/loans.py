from typing import Any, List, Mapping, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core import security, validation
from app.models.models import Loan, User
from app.repositories.loans import LoanRepository
from app.services.common import parse_bool, parse_id, parse_query_id


class LoanService:
    def __init__(self, db: Session):
        self.repo = LoanRepository(db)

    def create(self, user: User, payload: Mapping[str, Any]) -> UUID:
        data = {
            "id": security.generate_id(),
            "book_id": payload.get("book_id"),
            "borrower_name": payload.get("borrower_name"),
            "loan_date": payload.get("loan_date"),
        }
        validation.validate(data, validation.LOAN_RULES)
        data["book_id"] = UUID(str(data["book_id"]))
        loan = Loan(user_id=user.id, is_returned=False, **data)
        self.repo.create(loan)
        return loan.id

    def list(self, user: User, book_id: Optional[str] = None, returned: Optional[str] = None) -> List[Loan]:
        filters = {
            "book_id": parse_query_id(book_id, "book_id"),
            "is_returned": parse_bool(returned, "returned"),
        }
        return self.repo.get_all(user.id, filters)

    def get(self, user: User, loan_id: str) -> Loan:
        return self.repo.get_by_id(user.id, parse_id(loan_id, "loan"))

    def update(self, user: User, loan_id: str, payload: Mapping[str, Any]) -> Loan:
        entity_id = parse_id(loan_id, "loan")
        validation.validate(payload, validation.LOAN_RULES, partial=True)
        return self.repo.update(user.id, entity_id, payload)

    def return_loan(self, user: User, loan_id: str) -> Loan:
        return self.repo.return_loan(user.id, parse_id(loan_id, "loan"))

    def delete(self, user: User, loan_id: str) -> None:
        self.repo.delete(user.id, parse_id(loan_id, "loan"))
