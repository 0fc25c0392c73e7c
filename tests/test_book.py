from datetime import date, timedelta

import pytest

from book import Book
from errors import AlreadyBorrowedError, NotBorrowedError, QuotaExceededError
from users import Professor, Student


def test_new_book_is_available():
    book = Book("1", "  Java Facile ", " Auteur A ")
    assert book.is_available()
    assert book.borrower_id is None
    assert book.borrow_date is None
    assert book.due_date() is None
    assert book.title == "Java Facile"
    assert book.author == "Auteur A"


@pytest.mark.parametrize("book_id,title,author", [("", "T", "A"), ("1", "  ", "A"), ("1", "T", "")])
def test_blank_fields_rejected(book_id, title, author):
    with pytest.raises(ValueError):
        Book(book_id, title, author)


def test_borrow_sets_state_and_counts_loan(student, day):
    book = Book("1", "Java Facile", "Auteur A")
    book.borrow(student, today=day)

    assert not book.is_available()
    assert book.borrower_id == student.user_id
    assert book.borrow_date == day
    assert book.due_date() == day + timedelta(days=15)
    assert student.current_loans == 1


def test_borrow_twice_fails(student, professor, day):
    book = Book("1", "Java Facile", "Auteur A")
    book.borrow(student, today=day)
    with pytest.raises(AlreadyBorrowedError):
        book.borrow(professor, today=day)
    assert book.borrower_id == student.user_id
    assert professor.current_loans == 0


def test_borrow_over_quota_leaves_book_untouched(student, day):
    for i in range(student.max_loans):
        Book(str(i), f"Title {i}", "Someone").borrow(student, today=day)

    extra = Book("x", "Extra", "Someone")
    with pytest.raises(QuotaExceededError):
        extra.borrow(student, today=day)
    assert extra.is_available()
    assert student.current_loans == student.max_loans


def test_return_restores_state(student, day):
    book = Book("1", "Java Facile", "Auteur A")
    book.borrow(student, today=day)
    book.return_book(student)

    assert book.is_available()
    assert book.borrower_id is None
    assert book.borrow_date is None
    assert student.current_loans == 0


def test_return_available_book_fails(student):
    with pytest.raises(NotBorrowedError):
        Book("1", "Java Facile", "Auteur A").return_book(student)


def test_return_by_other_user_fails(student, professor, day):
    book = Book("1", "Java Facile", "Auteur A")
    book.borrow(student, today=day)
    with pytest.raises(ValueError):
        book.return_book(professor)
    assert book.borrower_id == student.user_id


def test_student_overdue_boundaries(student, day):
    book = Book("1", "Java Facile", "Auteur A")
    book.borrow(student, today=day)

    assert not book.is_overdue(day + timedelta(days=15))
    assert book.days_overdue(day + timedelta(days=15)) == 0
    assert book.is_overdue(day + timedelta(days=16))
    assert book.days_overdue(day + timedelta(days=20)) == 5


def test_professor_gets_thirty_days(professor, day):
    book = Book("1", "Java Facile", "Auteur A")
    book.borrow(professor, today=day)
    assert book.due_date() == day + timedelta(days=30)
    assert not book.is_overdue(day + timedelta(days=30))
    assert book.days_overdue(day + timedelta(days=31)) == 1


def test_available_book_is_never_overdue():
    book = Book("1", "Java Facile", "Auteur A")
    assert not book.is_overdue(date(2100, 1, 1))
    assert book.days_overdue(date(2100, 1, 1)) == 0


def test_ordering_by_title_then_author():
    b1 = Book("1", "maths pour tous", "Auteur B")
    b2 = Book("2", "Java Facile", "Auteur A")
    b3 = Book("3", "Maths pour Tous", "auteur a")
    assert [b.book_id for b in sorted([b1, b2, b3])] == ["2", "3", "1"]


def test_equality_is_by_id_only(student, day):
    a = Book("1", "Java Facile", "Auteur A")
    b = Book("1", "Other Title", "Other Author")
    b.borrow(student, today=day)
    assert a == b
    assert hash(a) == hash(b)
    assert a != Book("2", "Java Facile", "Auteur A")


def test_to_dict_and_from_dict(student, day):
    book = Book("1", "Java Facile", "Auteur A", 300, "Éditions Tech", date(2020, 5, 1))
    book.borrow(student, today=day)
    data = book.to_dict()

    assert data["publication_date"] == "2020-05-01"
    assert data["available"] is False
    assert data["due_date"] == (day + timedelta(days=15)).isoformat()

    copy = Book.from_dict(data)
    assert copy == book
    assert copy.publication_date == date(2020, 5, 1)
    assert copy.is_available()


def test_descriptive_fields_cannot_be_reassigned():
    book = Book("1", "Java Facile", "Auteur A")
    with pytest.raises(AttributeError):
        book.author = "Someone Else"
    with pytest.raises(AttributeError):
        book.title = "Other"
