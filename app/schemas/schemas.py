from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

# Request bodies only bind types; constraints live in app.core.validation so
# that every payload reports its first violation the same way.


class Credentials(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordIn(BaseModel):
    email: Optional[str] = None


class ResetPasswordIn(BaseModel):
    password: Optional[str] = None


class BookIn(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    cover_url: Optional[str] = None
    genre: Optional[str] = None
    isbn: Optional[str] = None
    published_date: Optional[str] = None
    language: Optional[str] = None
    pages: Optional[int] = None
    read: Optional[bool] = None


class LibraryIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class LoanIn(BaseModel):
    book_id: Optional[str] = None
    borrower_name: Optional[str] = None
    loan_date: Optional[str] = None


class LoanUpdate(BaseModel):
    borrower_name: Optional[str] = None
    loan_date: Optional[str] = None


class CreatedOut(BaseModel):
    id: UUID


class MessageOut(BaseModel):
    message: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    created_at: datetime
    updated_at: datetime


class ValidateTokenOut(BaseModel):
    user: UserOut


class BookOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    author: str
    description: Optional[str] = ""
    cover_url: Optional[str] = ""
    genre: Optional[str] = ""
    isbn: Optional[str] = ""
    published_date: Optional[str] = ""
    language: Optional[str] = ""
    pages: int = 0
    read: bool = False
    created_at: datetime
    updated_at: datetime


class LibraryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = ""
    created_at: datetime
    updated_at: datetime


class LibraryDetailOut(LibraryOut):
    books: List[BookOut] = []


class LoanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    book_id: UUID
    borrower_name: str
    loan_date: str
    is_returned: bool
    created_at: datetime
    updated_at: datetime


class HealthOut(BaseModel):
    status: str
    database: str
