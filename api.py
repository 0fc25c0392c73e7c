import html
import logging
from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field, field_validator

from book import Book
from config import settings
from errors import (
    BookNotFoundError,
    DuplicateEmailError,
    DuplicateKeyError,
    LibraryError,
    LoanStateError,
    QuotaError,
    UserNotFoundError,
)
from library import Library
from seed import seed_demo_data
from users import Professor, Student, User
from utils.validators import EmailValidator, TextValidator

logger = logging.getLogger(__name__)


# --- Models ---
class BookModel(BaseModel):
    book_id: str
    title: str
    author: str
    page_count: int = 0
    publisher: str | None = None
    publication_date: str | None = None
    available: bool
    borrower_id: str | None = None
    borrow_date: str | None = None
    due_date: str | None = None


def _clean_title(v: str) -> str:
    if not TextValidator.validate_title(v):
        raise ValueError("Title must contain letters.")
    cleaned = TextValidator.sanitize_text(v)
    if not cleaned:
        raise ValueError("Title is empty once markup is removed.")
    return cleaned


def _clean_author(v: str) -> str:
    if not TextValidator.validate_author(v):
        raise ValueError("Author must not be empty or numeric.")
    cleaned = TextValidator.sanitize_text(v)
    if not cleaned:
        raise ValueError("Author is empty once markup is removed.")
    return cleaned


class BookCreateModel(BaseModel):
    book_id: str = Field(..., min_length=1, description="Catalog key (ISBN)")
    title: str
    author: str
    page_count: int = Field(0, ge=0)
    publisher: str | None = None
    publication_date: date | None = None

    @field_validator("book_id")
    @classmethod
    def _check_book_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Book id must not be blank.")
        return v.strip()

    @field_validator("title")
    @classmethod
    def _check_title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("author")
    @classmethod
    def _check_author(cls, v: str) -> str:
        return _clean_author(v)


class UpdateBookModel(BaseModel):
    title: str | None = None
    author: str | None = None
    page_count: int | None = Field(None, ge=0)
    publisher: str | None = None
    publication_date: date | None = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, v: str | None) -> str | None:
        return None if v is None else _clean_title(v)

    @field_validator("author")
    @classmethod
    def _check_author(cls, v: str | None) -> str | None:
        return None if v is None else _clean_author(v)


class UserModel(BaseModel):
    user_id: str
    name: str
    email: str
    user_type: str
    current_loans: int
    max_loans: int
    loan_duration_days: int
    student_number: str | None = None
    level: int | None = None
    field_of_study: str | None = None
    department: str | None = None
    special_resources_access: bool | None = None


class UserCreateModel(BaseModel):
    kind: Literal["student", "professor"]
    name: str
    email: str
    # student
    student_number: str | None = None
    level: int | None = Field(None, ge=1, le=5)
    field_of_study: str | None = None
    # professor
    department: str | None = None
    special_resources_access: bool = True

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not TextValidator.validate_name(v):
            raise ValueError("Name must contain letters.")
        return TextValidator.sanitize_text(v)

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        if not EmailValidator.is_valid_email(v):
            raise ValueError("Invalid email address.")
        return EmailValidator.normalize_email(v)


class LoanCreateModel(BaseModel):
    book_id: str
    user_id: str


class ReturnReceiptModel(BaseModel):
    book_id: str
    user_id: str
    borrow_date: str
    due_date: str
    returned_on: str
    overdue: bool
    days_overdue: int


class StatsModel(BaseModel):
    library_name: str
    total_books: int
    available_books: int
    borrowed_books: int
    unique_authors: int
    total_users: int
    users_by_type: Dict[str, int]
    overdue_books: int


# --- Helper Functions ---
def get_library(request: Request) -> Library:
    return request.app.state.library


def _http_error(exc: LibraryError) -> HTTPException:
    """Map a core error onto an HTTP status."""
    if isinstance(exc, (BookNotFoundError, UserNotFoundError)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (DuplicateKeyError, DuplicateEmailError, LoanStateError, QuotaError)):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _book_model(book: Book) -> BookModel:
    return BookModel(**book.to_dict())


def _user_model(user: User) -> UserModel:
    return UserModel(**user.to_dict())


def _build_user(payload: UserCreateModel) -> User:
    if payload.kind == "student":
        if payload.level is None or not payload.student_number:
            raise HTTPException(status_code=422, detail="Students need a student_number and a level (1-5).")
        return Student(payload.name, payload.email, payload.student_number, payload.level,
                       payload.field_of_study or "")
    if not payload.department:
        raise HTTPException(status_code=422, detail="Professors need a department.")
    return Professor(payload.name, payload.email, payload.department, payload.special_resources_access)


# --- Application factory ---
def create_app(library: Optional[Library] = None) -> FastAPI:
    """Build the API around ``library``; a fresh (optionally seeded) one if omitted."""
    logging.basicConfig(level=settings.log_level)
    if library is None:
        library = Library()
        if settings.seed_demo_data:
            seed_demo_data(library)

    app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug)
    app.state.library = library
    logger.info(f"Serving {library.name}: {library.catalog_size()} book(s), {library.user_count()} user(s)")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Health check ---
    @app.get("/health")
    def health(lib: Library = Depends(get_library)):
        return {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "environment": settings.environment,
            "library": lib.name,
            "total_books": lib.catalog_size(),
            "total_users": lib.user_count(),
        }

    @app.get("/", response_class=HTMLResponse)
    def index(lib: Library = Depends(get_library)):
        """HTML listing of the whole catalog."""
        items = "\n".join(
            f"<li>{html.escape(b.title)} - {html.escape(b.author)}</li>" for b in lib.list_all_books()
        )
        title = html.escape(lib.name)
        return (
            f"<html><head><title>{title}</title></head><body>"
            f"<h1>Books</h1><ul>\n{items}\n</ul></body></html>"
        )

    @app.get("/stats", response_model=StatsModel)
    def get_library_stats(lib: Library = Depends(get_library)):
        """Get basic statistics about the library."""
        return StatsModel(**lib.get_statistics())

    # --- Books ---
    @app.get("/books", response_model=List[BookModel])
    def get_books(
        q: Optional[str] = Query(None, description="Title or author fragment"),
        author: Optional[str] = Query(None, description="Exact author name, any case"),
        lib: Library = Depends(get_library),
    ):
        """List the catalog, optionally narrowed by a text query or an author."""
        if author is not None:
            books = lib.find_books_by_author(author)
            if q is not None:
                wanted = set(lib.search_books(q))
                books = [b for b in books if b in wanted]
        elif q is not None:
            books = lib.search_books(q)
        else:
            books = lib.list_all_books()
        return [_book_model(b) for b in books]

    @app.get("/books/available", response_model=List[BookModel])
    def get_available_books(lib: Library = Depends(get_library)):
        return [_book_model(b) for b in lib.list_available_books()]

    @app.get("/books/borrowed", response_model=List[BookModel])
    def get_borrowed_books(lib: Library = Depends(get_library)):
        return [_book_model(b) for b in lib.list_borrowed_books()]

    @app.get("/books/overdue", response_model=List[BookModel])
    def get_overdue_books(lib: Library = Depends(get_library)):
        return [_book_model(b) for b in lib.overdue_books()]

    @app.get("/books/{book_id}", response_model=BookModel)
    def get_book(book_id: str, lib: Library = Depends(get_library)):
        """Get a single book by its id."""
        try:
            book = lib.get_book(book_id)
        except LibraryError as e:
            raise _http_error(e)
        return _book_model(book)

    @app.post("/books", response_model=BookModel, status_code=201)
    def add_book(payload: BookCreateModel, lib: Library = Depends(get_library)):
        try:
            book = Book.from_dict(payload.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        try:
            lib.add_book(book)
        except LibraryError as e:
            raise _http_error(e)
        return _book_model(book)

    @app.put("/books/{book_id}", response_model=BookModel)
    def update_book(book_id: str, update: UpdateBookModel, lib: Library = Depends(get_library)):
        changes = {k: v for k, v in update.model_dump().items() if v is not None}
        if not changes:
            raise HTTPException(status_code=400, detail="Provide at least one field to update.")
        book = lib.update_book(book_id, **changes)
        if not book:
            raise HTTPException(status_code=404, detail="Book not found.")
        return _book_model(book)

    @app.delete("/books/{book_id}")
    def delete_book(book_id: str, lib: Library = Depends(get_library)):
        try:
            removed = lib.remove_book(book_id)
        except LibraryError as e:
            raise _http_error(e)
        if not removed:
            raise HTTPException(status_code=404, detail="Book not found.")
        return {"message": "Book removed."}

    @app.post("/books/{book_id}/return", response_model=ReturnReceiptModel)
    def return_book(book_id: str, lib: Library = Depends(get_library)):
        try:
            receipt = lib.return_book(book_id)
        except LibraryError as e:
            raise _http_error(e)
        return ReturnReceiptModel(**receipt.to_dict())

    # --- Users ---
    @app.get("/users", response_model=List[UserModel])
    def get_users(name: Optional[str] = Query(None), lib: Library = Depends(get_library)):
        users = lib.find_users_by_name(name) if name else lib.list_users()
        return [_user_model(u) for u in users]

    @app.post("/users", response_model=UserModel, status_code=201)
    def add_user(payload: UserCreateModel, lib: Library = Depends(get_library)):
        user = _build_user(payload)
        try:
            lib.add_user(user)
        except LibraryError as e:
            raise _http_error(e)
        return _user_model(user)

    @app.get("/users/{user_id}", response_model=UserModel)
    def get_user(user_id: str, lib: Library = Depends(get_library)):
        user = lib.find_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found.")
        return _user_model(user)

    @app.get("/users/{user_id}/loans", response_model=List[BookModel])
    def get_user_loans(user_id: str, lib: Library = Depends(get_library)):
        try:
            books = lib.loans_for(user_id)
        except LibraryError as e:
            raise _http_error(e)
        return [_book_model(b) for b in books]

    # --- Loans ---
    @app.post("/loans", response_model=BookModel, status_code=201)
    def borrow_book(payload: LoanCreateModel, lib: Library = Depends(get_library)):
        try:
            book = lib.borrow_book(payload.book_id, payload.user_id)
        except LibraryError as e:
            raise _http_error(e)
        return _book_model(book)

    return app
