from datetime import date
from typing import Any, Dict, List, Optional

from book import Book
from catalog import Catalog
from config import settings
from errors import BookNotFoundError
from lending import LendingService, ReturnReceipt
from registry import UserRegistry
from users import User


class Library:
    """Owns the catalog, the user registry and the lending service of one library.

    Built once at startup and handed to whichever adapter serves requests; there is
    no module-level instance.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name or settings.library_name
        self.catalog = Catalog()
        self.users = UserRegistry()
        self.lending = LendingService(self.catalog, self.users)

    # ------------------------- Catalog ------------------------- #
    def add_book(self, book: Book) -> None:
        """Add a pre-constructed Book. Duplicate ids are rejected."""
        self.catalog.add(book)

    def remove_book(self, book_id: str) -> bool:
        return self.catalog.remove(book_id)

    def update_book(self, book_id: str, **changes: Any) -> Optional[Book]:
        """Update descriptive fields by id. Returns the updated book or None if not found."""
        return self.catalog.update(book_id, **changes)

    def find_book_by_id(self, book_id: str) -> Optional[Book]:
        return self.catalog.find_by_id(book_id)

    def get_book(self, book_id: str) -> Book:
        book = self.catalog.find_by_id(book_id)
        if book is None:
            raise BookNotFoundError(f"Book with ISBN {book_id} not found.")
        return book

    def find_books_by_author(self, author: str) -> List[Book]:
        return self.catalog.find_by_author(author)

    def search_books(self, query: str) -> List[Book]:
        """Search for books by title or author."""
        return self.catalog.search_text(query)

    def list_all_books(self) -> List[Book]:
        return self.catalog.all_books()

    def list_available_books(self) -> List[Book]:
        return self.catalog.available_books()

    def list_borrowed_books(self) -> List[Book]:
        return self.catalog.borrowed_books()

    def list_authors(self) -> List[str]:
        return self.catalog.authors()

    def catalog_size(self) -> int:
        return len(self.catalog)

    # ------------------------- Users ------------------------- #
    def add_user(self, user: User) -> None:
        self.users.add(user)

    def find_user_by_id(self, user_id: str) -> Optional[User]:
        return self.users.find_by_id(user_id)

    def find_users_by_name(self, fragment: str) -> List[User]:
        return self.users.find_by_name(fragment)

    def list_users(self) -> List[User]:
        return self.users.all_users()

    def user_count(self) -> int:
        return len(self.users)

    # ------------------------- Loans ------------------------- #
    def borrow_book(self, book_id: str, user_id: str, today: Optional[date] = None) -> Book:
        return self.lending.borrow_book(book_id, user_id, today=today)

    def return_book(self, book_id: str, today: Optional[date] = None) -> ReturnReceipt:
        return self.lending.return_book(book_id, today=today)

    def loans_for(self, user_id: str) -> List[Book]:
        return self.lending.loans_for(user_id)

    def overdue_books(self, today: Optional[date] = None) -> List[Book]:
        return self.lending.overdue_books(today)

    # ------------------------- Reporting ------------------------- #
    def get_statistics(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Get library statistics."""
        total = self.catalog_size()
        available = self.catalog.available_count()
        return {
            "library_name": self.name,
            "total_books": total,
            "available_books": available,
            "borrowed_books": total - available,
            "unique_authors": len(self.catalog.authors()),
            "total_users": self.user_count(),
            "users_by_type": self.users.count_by_type(),
            "overdue_books": len(self.overdue_books(today)),
        }
