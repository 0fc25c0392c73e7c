from datetime import date

import pytest

from book import Book
from library import Library
from users import Professor, Student


@pytest.fixture
def lib():
    # A fresh, empty library for every test
    return Library(name="Test Library")


@pytest.fixture
def student():
    return Student("Alice Martin", "alice@example.com", "E001", 2, "Computer Science")


@pytest.fixture
def professor():
    return Professor("Jean Dupont", "jean@example.com", "Mathematics")


@pytest.fixture
def day():
    return date(2024, 3, 1)


@pytest.fixture
def stocked_lib(lib, student, professor):
    lib.add_book(Book("1", "Java Facile", "Auteur A", 300, "Éditions Tech", date(2020, 5, 1)))
    lib.add_book(Book("2", "Maths pour Tous", "Auteur B", 200, "Éditions Math", date(2019, 3, 15)))
    lib.add_book(Book("3", "Algorithmique", "Auteur A"))
    lib.add_book(Book("4", "Zoologie", "Auteur C"))
    lib.add_user(student)
    lib.add_user(professor)
    return lib
