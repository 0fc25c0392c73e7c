from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from book import Book
from catalog import Catalog
from errors import BookNotFoundError, NotBorrowedError, UserNotFoundError
from registry import UserRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReturnReceipt:
    """Outcome of a return. Lateness is reported, never enforced."""

    book_id: str
    user_id: str
    borrow_date: date
    due_date: date
    returned_on: date
    days_overdue: int = 0

    @property
    def overdue(self) -> bool:
        return self.days_overdue > 0

    def to_dict(self) -> dict:
        return {
            "book_id": self.book_id,
            "user_id": self.user_id,
            "borrow_date": self.borrow_date.isoformat(),
            "due_date": self.due_date.isoformat(),
            "returned_on": self.returned_on.isoformat(),
            "overdue": self.overdue,
            "days_overdue": self.days_overdue,
        }


class LendingService:
    """Runs borrow and return across the catalog and the user registry.

    The book performs its own state transition; this service looks the entities
    up and keeps the catalog's availability cache in step with the transition.
    Both steps happen while the catalog lock is held.
    """

    def __init__(self, catalog: Catalog, users: UserRegistry) -> None:
        self.catalog = catalog
        self.users = users

    def borrow_book(self, book_id: str, user_id: str, today: Optional[date] = None) -> Book:
        with self.catalog.lock:
            book = self.catalog.find_by_id(book_id)
            if book is None:
                raise BookNotFoundError(f"Book with ISBN {book_id} not found.")
            user = self.users.find_by_id(user_id)
            if user is None:
                raise UserNotFoundError(f"User with id {user_id} not found.")

            book.borrow(user, today=today)
            self.catalog.mark_borrowed(book)
        logger.info(f"Loan started: '{book.title}' borrowed by {user.name}, due {book.due_date()}")
        return book

    def return_book(self, book_id: str, today: Optional[date] = None) -> ReturnReceipt:
        today = today or date.today()
        with self.catalog.lock:
            book = self.catalog.find_by_id(book_id)
            if book is None:
                raise BookNotFoundError(f"Book with ISBN {book_id} not found.")
            if book.is_available():
                raise NotBorrowedError(f"'{book.title}' is not borrowed.")
            borrower = self.users.find_by_id(book.borrower_id)
            if borrower is None:
                raise UserNotFoundError(f"Borrower {book.borrower_id} is not registered.")

            # Lateness has to be measured before the loan is cleared.
            receipt = ReturnReceipt(
                book_id=book.book_id,
                user_id=borrower.user_id,
                borrow_date=book.borrow_date,
                due_date=book.due_date(),
                returned_on=today,
                days_overdue=book.days_overdue(today),
            )
            book.return_book(borrower)
            self.catalog.mark_returned(book)

        logger.info(f"Loan ended: '{book.title}' returned by {borrower.name}")
        if receipt.overdue:
            logger.warning(f"Late return of '{book.title}': {receipt.days_overdue} day(s) overdue")
        return receipt

    def loans_for(self, user_id: str) -> List[Book]:
        if user_id not in self.users:
            raise UserNotFoundError(f"User with id {user_id} not found.")
        return [b for b in self.catalog.borrowed_books() if b.borrower_id == user_id]

    def overdue_books(self, today: Optional[date] = None) -> List[Book]:
        today = today or date.today()
        return [b for b in self.catalog.borrowed_books() if b.is_overdue(today)]
