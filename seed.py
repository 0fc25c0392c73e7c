from __future__ import annotations

import logging
from datetime import date

from book import Book
from library import Library
from users import Professor, Student

logger = logging.getLogger(__name__)


def seed_demo_data(lib: Library) -> None:
    # books
    lib.add_book(Book("1", "Java Facile", "Auteur A", 300, "Éditions Tech", date(2020, 5, 1)))
    lib.add_book(Book("2", "Maths pour Tous", "Auteur B", 200, "Éditions Math", date(2019, 3, 15)))

    # users
    lib.add_user(Student("Alice Martin", "alice.martin@example.com", "E2024001", 2, "Computer Science"))
    lib.add_user(Professor("Jean Dupont", "jean.dupont@example.com", "Mathematics"))

    logger.info(f"Seeded {lib.catalog_size()} book(s) and {lib.user_count()} user(s) into {lib.name}")
