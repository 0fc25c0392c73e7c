from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from errors import AlreadyBorrowedError, NotBorrowedError, QuotaExceededError
from users import User


class Book:
    """A single catalog item together with its borrow state.

    A book is either available or borrowed. While borrowed it remembers who holds
    it (by user id), when the loan started and how many days the borrower's policy
    grants, which is enough to answer due-date questions without a registry.
    """

    def __init__(self, book_id: str, title: str, author: str, page_count: int = 0,
                 publisher: str | None = None, publication_date: date | None = None) -> None:
        if not book_id or not str(book_id).strip():
            raise ValueError("Book identifier cannot be empty.")
        if not title or not title.strip():
            raise ValueError("Book title cannot be empty.")
        if not author or not author.strip():
            raise ValueError("Book author cannot be empty.")
        self._book_id = str(book_id).strip()
        self._title = title.strip()
        self._author = author.strip()
        self.page_count = page_count
        self.publisher = publisher
        self.publication_date = publication_date

        self._borrower_id: Optional[str] = None
        self._borrow_date: Optional[date] = None
        self._loan_duration_days: Optional[int] = None

    @property
    def book_id(self) -> str:
        return self._book_id

    @property
    def title(self) -> str:
        return self._title

    @property
    def author(self) -> str:
        return self._author

    @property
    def available(self) -> bool:
        return self._borrower_id is None

    @property
    def borrower_id(self) -> Optional[str]:
        return self._borrower_id

    @property
    def borrow_date(self) -> Optional[date]:
        return self._borrow_date

    def _rename(self, title: str | None = None, author: str | None = None) -> None:
        # Only Catalog.update calls this; the author index is keyed on the author.
        if title:
            self._title = title
        if author:
            self._author = author

    # ------------------------- Borrow state machine ------------------------- #
    def is_available(self) -> bool:
        return self.available

    def borrow(self, user: User, today: date | None = None) -> None:
        if not self.is_available():
            raise AlreadyBorrowedError(f"'{self.title}' is already borrowed.")
        if not user.can_borrow():
            raise QuotaExceededError(f"Loan quota exceeded for {user.name}.")

        user.increment_loans()
        self._borrower_id = user.user_id
        self._borrow_date = today or date.today()
        self._loan_duration_days = user.loan_duration_days

    def return_book(self, borrower: User) -> None:
        if self.is_available():
            raise NotBorrowedError(f"'{self.title}' is not borrowed.")
        if borrower.user_id != self._borrower_id:
            raise ValueError(
                f"User {borrower.user_id} does not hold '{self.title}' (borrower is {self._borrower_id})."
            )

        borrower.decrement_loans()
        self._borrower_id = None
        self._borrow_date = None
        self._loan_duration_days = None

    def due_date(self) -> Optional[date]:
        if self._borrow_date is None or self._loan_duration_days is None:
            return None
        return self._borrow_date + timedelta(days=self._loan_duration_days)

    def is_overdue(self, today: date | None = None) -> bool:
        due = self.due_date()
        return due is not None and (today or date.today()) > due

    def days_overdue(self, today: date | None = None) -> int:
        today = today or date.today()
        if not self.is_overdue(today):
            return 0
        return (today - self.due_date()).days

    # ------------------------- Ordering and identity ------------------------- #
    def sort_key(self) -> tuple[str, str]:
        return (self.title.lower(), self.author.lower())

    def __lt__(self, other: "Book") -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.book_id == other.book_id

    def __hash__(self) -> int:
        return hash(self.book_id)

    def __repr__(self) -> str:
        return f"Book({self.book_id!r}, {self.title!r}, {self.author!r})"

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        status = "Available" if self.available else f"Borrowed by {self._borrower_id}"
        return f"'{self.title}' by {self.author} (ISBN: {self.book_id}) - {status}"

    # ------------------------- Serialization ------------------------- #
    def to_dict(self) -> dict:
        due = self.due_date()
        return {
            "book_id": self.book_id,
            "title": self.title,
            "author": self.author,
            "page_count": self.page_count,
            "publisher": self.publisher,
            "publication_date": self.publication_date.isoformat() if self.publication_date else None,
            "available": self.available,
            "borrower_id": self._borrower_id,
            "borrow_date": self._borrow_date.isoformat() if self._borrow_date else None,
            "due_date": due.isoformat() if due else None,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        """Build an available book from descriptive fields; borrow state is ignored."""
        published = data.get("publication_date")
        if isinstance(published, str):
            published = date.fromisoformat(published) if published else None
        return Book(
            book_id=data["book_id"],
            title=data["title"],
            author=data["author"],
            page_count=data.get("page_count") or 0,
            publisher=data.get("publisher"),
            publication_date=published,
        )
