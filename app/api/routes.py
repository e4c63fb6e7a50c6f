from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_auth_service, get_current_user, get_settings
from app.core.config import AUTH_COOKIE_NAME, Settings
from app.core.database import get_db
from app.models.models import User
from app.schemas import schemas
from app.services.auth import AuthService
from app.services.books import BookService
from app.services.libraries import LibraryService
from app.services.loans import LoanService

router = APIRouter()

# -----------------------------
# Auth
# -----------------------------
@router.post("/auth/signup/credentials", response_model=schemas.CreatedOut, status_code=status.HTTP_201_CREATED)
def sign_up(body: schemas.Credentials, auth: AuthService = Depends(get_auth_service)):
    return {"id": auth.sign_up(body.email, body.password)}

@router.post("/auth/signin/credentials", response_model=schemas.MessageOut)
def sign_in(body: schemas.Credentials, response: Response,
            auth: AuthService = Depends(get_auth_service),
            settings: Settings = Depends(get_settings)):
    token = auth.sign_in(body.email, body.password)
    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        max_age=settings.jwt_expires_hours * 3600,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return {"message": "signed in successfully"}

@router.post("/auth/signout", response_model=schemas.MessageOut)
def sign_out(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(AUTH_COOKIE_NAME, httponly=True, secure=settings.cookie_secure, samesite="lax")
    return {"message": "signed out successfully"}

@router.post("/auth/forgot-password", response_model=schemas.MessageOut)
def forgot_password(body: schemas.ForgotPasswordIn, auth: AuthService = Depends(get_auth_service)):
    auth.forgot_password(body.email)
    # same answer whether or not the address exists
    return {"message": "if the email exists, a reset link has been sent"}

@router.post("/auth/reset-password/{token}", response_model=schemas.MessageOut)
def reset_password(token: str, body: schemas.ResetPasswordIn, auth: AuthService = Depends(get_auth_service)):
    auth.reset_password(token, body.password)
    return {"message": "password reset successful"}

@router.get("/auth/validate-token", response_model=schemas.ValidateTokenOut)
def validate_token(current_user: User = Depends(get_current_user)):
    return {"user": schemas.UserOut.model_validate(current_user)}

# -----------------------------
# Books
# -----------------------------
@router.post("/books", response_model=schemas.CreatedOut, status_code=status.HTTP_201_CREATED)
def create_book(body: schemas.BookIn, db: Session = Depends(get_db),
                current_user: User = Depends(get_current_user)):
    return {"id": BookService(db).create(current_user, body.model_dump())}

@router.get("/books", response_model=List[schemas.BookOut])
def list_books(title: Optional[str] = None, author: Optional[str] = None, genre: Optional[str] = None,
               isbn: Optional[str] = None, language: Optional[str] = None, read: Optional[str] = None,
               db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return BookService(db).list(current_user, title=title, author=author, genre=genre,
                                isbn=isbn, language=language, read=read)

@router.get("/books/{book_id}", response_model=schemas.BookOut)
def read_book(book_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return BookService(db).get(current_user, book_id)

@router.put("/books/{book_id}", response_model=schemas.BookOut)
def update_book(book_id: str, body: schemas.BookIn, db: Session = Depends(get_db),
                current_user: User = Depends(get_current_user)):
    return BookService(db).update(current_user, book_id, body.model_dump(exclude_unset=True))

@router.delete("/books/{book_id}", response_model=schemas.MessageOut)
def delete_book(book_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    BookService(db).delete(current_user, book_id)
    return {"message": "book deleted successfully"}

# -----------------------------
# Libraries
# -----------------------------
@router.post("/libraries", response_model=schemas.CreatedOut, status_code=status.HTTP_201_CREATED)
def create_library(body: schemas.LibraryIn, db: Session = Depends(get_db),
                   current_user: User = Depends(get_current_user)):
    return {"id": LibraryService(db).create(current_user, body.model_dump())}

@router.get("/libraries", response_model=List[schemas.LibraryOut])
def list_libraries(name: Optional[str] = None, db: Session = Depends(get_db),
                   current_user: User = Depends(get_current_user)):
    return LibraryService(db).list(current_user, name=name)

@router.get("/libraries/{library_id}", response_model=schemas.LibraryDetailOut)
def read_library(library_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return LibraryService(db).get(current_user, library_id)

@router.put("/libraries/{library_id}", response_model=schemas.LibraryOut)
def update_library(library_id: str, body: schemas.LibraryIn, db: Session = Depends(get_db),
                   current_user: User = Depends(get_current_user)):
    return LibraryService(db).update(current_user, library_id, body.model_dump(exclude_unset=True))

@router.delete("/libraries/{library_id}", response_model=schemas.MessageOut)
def delete_library(library_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    LibraryService(db).delete(current_user, library_id)
    return {"message": "library deleted successfully"}

@router.post("/libraries/{library_id}/books/{book_id}", response_model=schemas.MessageOut)
def add_book_to_library(library_id: str, book_id: str, db: Session = Depends(get_db),
                        current_user: User = Depends(get_current_user)):
    LibraryService(db).add_book(current_user, library_id, book_id)
    return {"message": "book added to library"}

@router.delete("/libraries/{library_id}/books/{book_id}", response_model=schemas.MessageOut)
def remove_book_from_library(library_id: str, book_id: str, db: Session = Depends(get_db),
                             current_user: User = Depends(get_current_user)):
    LibraryService(db).remove_book(current_user, library_id, book_id)
    return {"message": "book removed from library"}

# -----------------------------
# Loans
# -----------------------------
@router.post("/loans", response_model=schemas.CreatedOut, status_code=status.HTTP_201_CREATED)
def create_loan(body: schemas.LoanIn, db: Session = Depends(get_db),
                current_user: User = Depends(get_current_user)):
    return {"id": LoanService(db).create(current_user, body.model_dump())}

@router.get("/loans", response_model=List[schemas.LoanOut])
def list_loans(book_id: Optional[str] = None, returned: Optional[str] = None,
               db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return LoanService(db).list(current_user, book_id=book_id, returned=returned)

@router.get("/loans/{loan_id}", response_model=schemas.LoanOut)
def read_loan(loan_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return LoanService(db).get(current_user, loan_id)

@router.put("/loans/{loan_id}", response_model=schemas.LoanOut)
def update_loan(loan_id: str, body: schemas.LoanUpdate, db: Session = Depends(get_db),
                current_user: User = Depends(get_current_user)):
    return LoanService(db).update(current_user, loan_id, body.model_dump(exclude_unset=True))

@router.put("/loans/{loan_id}/return", response_model=schemas.LoanOut)
def return_loan(loan_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return LoanService(db).return_loan(current_user, loan_id)

@router.delete("/loans/{loan_id}", response_model=schemas.MessageOut)
def delete_loan(loan_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    LoanService(db).delete(current_user, loan_id)
    return {"message": "loan deleted successfully"}
