from __future__ import annotations

import uuid
from abc import ABC, abstractmethod

from errors import QuotaAtCapacityError


LEVEL_LABELS = {1: "L1", 2: "L2", 3: "L3", 4: "M1", 5: "M2"}


def _new_user_id() -> str:
    return uuid.uuid4().hex[:8]


class User(ABC):
    """A library member. Quota and loan length depend on the concrete kind."""

    def __init__(self, name: str, email: str) -> None:
        if not name or not name.strip():
            raise ValueError("User name cannot be empty.")
        if not email or not email.strip():
            raise ValueError("User email cannot be empty.")
        self._user_id = _new_user_id()
        self.name = name.strip()
        self.email = email.strip()
        self._current_loans = 0

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def current_loans(self) -> int:
        return self._current_loans

    @property
    @abstractmethod
    def max_loans(self) -> int: ...

    @property
    @abstractmethod
    def loan_duration_days(self) -> int: ...

    @property
    @abstractmethod
    def user_type_label(self) -> str: ...

    # ------------------------- Quota ------------------------- #
    def can_borrow(self) -> bool:
        return self._current_loans < self.max_loans

    def increment_loans(self) -> None:
        if self._current_loans >= self.max_loans:
            raise QuotaAtCapacityError(
                f"{self.name} already holds {self.max_loans} loan(s)."
            )
        self._current_loans += 1

    def decrement_loans(self) -> None:
        # Floor at zero; decrementing an idle account is tolerated.
        if self._current_loans > 0:
            self._current_loans -= 1

    # ------------------------- Presentation ------------------------- #
    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "user_type": self.user_type_label,
            "current_loans": self.current_loans,
            "max_loans": self.max_loans,
            "loan_duration_days": self.loan_duration_days,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self.user_id == other.user_id

    def __hash__(self) -> int:
        return hash(self.user_id)

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return (
            f"{self.user_type_label}: {self.name} ({self.email}) - "
            f"{self.current_loans}/{self.max_loans} loans"
        )


class Student(User):
    """Undergraduate (levels 1-3) or master's (levels 4-5) student."""

    def __init__(self, name: str, email: str, student_number: str, level: int, field_of_study: str) -> None:
        if level not in LEVEL_LABELS:
            raise ValueError(f"Student level must be between 1 and 5, got {level}.")
        super().__init__(name, email)
        self.student_number = student_number
        self.level = level
        self.field_of_study = field_of_study
        self._max_loans = 3 if level <= 3 else 5

    @property
    def max_loans(self) -> int:
        return self._max_loans

    @property
    def loan_duration_days(self) -> int:
        return 15

    @property
    def level_label(self) -> str:
        return LEVEL_LABELS[self.level]

    @property
    def user_type_label(self) -> str:
        return f"Student {self.level_label}"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "student_number": self.student_number,
            "level": self.level,
            "field_of_study": self.field_of_study,
        })
        return data


class Professor(User):
    def __init__(self, name: str, email: str, department: str, special_resources_access: bool = True) -> None:
        super().__init__(name, email)
        self.department = department
        self.special_resources_access = special_resources_access

    @property
    def max_loans(self) -> int:
        return 10

    @property
    def loan_duration_days(self) -> int:
        return 30

    @property
    def user_type_label(self) -> str:
        return "Professor"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "department": self.department,
            "special_resources_access": self.special_resources_access,
        })
        return data

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{super().__str__()} - Department: {self.department}"
