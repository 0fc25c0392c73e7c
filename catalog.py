from __future__ import annotations

import logging
from datetime import date
from threading import RLock
from typing import Dict, List, Optional, Set

from book import Book
from errors import BookNotRemovableError, DuplicateKeyError

logger = logging.getLogger(__name__)


class Catalog:
    """All books of the library, indexed by id and by author.

    Besides the id map the catalog keeps two derived structures: author buckets
    (keyed by lower-cased author name) and the set of currently available books.
    Every mutation updates all three under one lock, and every listing returns a
    fresh sorted list so callers never see the internal containers.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._by_id: Dict[str, Book] = {}
        self._by_author: Dict[str, Set[Book]] = {}
        self._available: Set[Book] = set()

    @property
    def lock(self) -> RLock:
        return self._lock

    # ------------------------- Mutations ------------------------- #
    def add(self, book: Book) -> None:
        with self._lock:
            if book.book_id in self._by_id:
                raise DuplicateKeyError(f"Book with ISBN {book.book_id} already exists.")
            self._by_id[book.book_id] = book
            self._by_author.setdefault(book.author.lower(), set()).add(book)
            if book.is_available():
                self._available.add(book)
        logger.info(f"Book added: {book.title} ({book.book_id})")

    def remove(self, book_id: str) -> bool:
        with self._lock:
            book = self._by_id.get(book_id)
            if book is None:
                return False
            if not book.is_available():
                raise BookNotRemovableError(f"Cannot remove '{book.title}' while it is borrowed.")
            del self._by_id[book_id]
            self._drop_from_author_bucket(book, book.author)
            self._available.discard(book)
        logger.info(f"Book removed: {book.title} ({book_id})")
        return True

    def update(self, book_id: str, *, title: Optional[str] = None, author: Optional[str] = None,
               page_count: Optional[int] = None, publisher: Optional[str] = None,
               publication_date: Optional[date] = None) -> Optional[Book]:
        """Update descriptive fields of a book. Returns the book, or None if not found."""
        if all(v is None for v in (title, author, page_count, publisher, publication_date)):
            raise ValueError("Nothing to update.")

        with self._lock:
            book = self._by_id.get(book_id)
            if book is None:
                return None

            if title is not None and title.strip():
                book._rename(title=title.strip())
            if author is not None and author.strip() and author.strip() != book.author:
                old_author = book.author
                book._rename(author=author.strip())
                self._drop_from_author_bucket(book, old_author)
                self._by_author.setdefault(book.author.lower(), set()).add(book)
            if page_count is not None:
                book.page_count = page_count
            if publisher is not None:
                book.publisher = publisher
            if publication_date is not None:
                book.publication_date = publication_date
            return book

    def mark_borrowed(self, book: Book) -> None:
        """Repair the availability cache after ``book`` changed state."""
        with self._lock:
            if not book.is_available():
                self._available.discard(book)

    def mark_returned(self, book: Book) -> None:
        with self._lock:
            if book.is_available() and book.book_id in self._by_id:
                self._available.add(book)

    def _drop_from_author_bucket(self, book: Book, author: str) -> None:
        key = author.lower()
        bucket = self._by_author.get(key)
        if bucket is None:
            return
        bucket.discard(book)
        if not bucket:
            del self._by_author[key]

    # ------------------------- Lookups ------------------------- #
    def find_by_id(self, book_id: str) -> Optional[Book]:
        with self._lock:
            return self._by_id.get(book_id)

    def find_by_author(self, author: str) -> List[Book]:
        with self._lock:
            return sorted(self._by_author.get(author.lower(), ()))

    def search_text(self, query: str) -> List[Book]:
        """Books whose title or author contains ``query``, ignoring case.

        A blank query matches nothing.
        """
        if query is None or not query.strip():
            return []
        needle = query.lower()
        with self._lock:
            return sorted(
                b for b in self._by_id.values()
                if needle in b.title.lower() or needle in b.author.lower()
            )

    def all_books(self) -> List[Book]:
        with self._lock:
            return sorted(self._by_id.values())

    def available_books(self) -> List[Book]:
        with self._lock:
            return sorted(self._available)

    def borrowed_books(self) -> List[Book]:
        with self._lock:
            return sorted(b for b in self._by_id.values() if b not in self._available)

    def authors(self) -> List[str]:
        """One display name per author bucket, taken from the bucket's lowest book by title then author."""
        with self._lock:
            names = [min(bucket).author for bucket in self._by_author.values()]
        return sorted(names, key=str.lower)

    def available_count(self) -> int:
        with self._lock:
            return len(self._available)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)

    def __contains__(self, book_id: object) -> bool:
        with self._lock:
            return book_id in self._by_id
