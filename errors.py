from __future__ import annotations


class LibraryError(Exception):
    """Base class for every business-rule violation raised by the library core."""


class DuplicateKeyError(LibraryError, ValueError):
    pass


class DuplicateEmailError(LibraryError, ValueError):
    pass


class BookNotFoundError(LibraryError, LookupError):
    pass


class UserNotFoundError(LibraryError, LookupError):
    pass


class LoanStateError(LibraryError):
    """The book is not in the state the requested transition needs."""


class AlreadyBorrowedError(LoanStateError):
    pass


class NotBorrowedError(LoanStateError):
    pass


class BookNotRemovableError(LoanStateError):
    pass


class QuotaError(LibraryError):
    pass


class QuotaExceededError(QuotaError):
    """Raised by a borrow attempt from a user already holding ``max_loans`` books."""


class QuotaAtCapacityError(QuotaError):
    """Raised when a loan counter is incremented past its ceiling."""
