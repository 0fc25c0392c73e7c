from __future__ import annotations

import logging
from collections import Counter
from threading import RLock
from typing import Dict, List, Optional

from errors import DuplicateEmailError, DuplicateKeyError
from users import User

logger = logging.getLogger(__name__)


class UserRegistry:
    """Registered users keyed by id. Emails are unique regardless of case."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._users: Dict[str, User] = {}

    def add(self, user: User) -> None:
        with self._lock:
            if user.user_id in self._users:
                raise DuplicateKeyError(f"User with id {user.user_id} already exists.")
            email = user.email.lower()
            if any(u.email.lower() == email for u in self._users.values()):
                raise DuplicateEmailError(f"A user with email {user.email} already exists.")
            self._users[user.user_id] = user
        logger.info(f"User added: {user.name} ({user.user_type_label})")

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def find_by_name(self, fragment: str) -> List[User]:
        needle = (fragment or "").lower()
        with self._lock:
            matches = [u for u in self._users.values() if needle in u.name.lower()]
        return sorted(matches, key=lambda u: u.name)

    def all_users(self) -> List[User]:
        with self._lock:
            return list(self._users.values())

    def count_by_type(self) -> Dict[str, int]:
        with self._lock:
            return dict(Counter(u.user_type_label for u in self._users.values()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._users
