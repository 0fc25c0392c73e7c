import re
from typing import Optional

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class EmailValidator:
    """Loose syntactic email check; uniqueness is the registry's job."""

    @staticmethod
    def normalize_email(raw: Optional[str]) -> str:
        if raw is None:
            return ""
        return raw.strip()

    @staticmethod
    def is_valid_email(email: Optional[str]) -> bool:
        s = EmailValidator.normalize_email(email)
        return bool(s) and _EMAIL_RE.match(s) is not None


class TextValidator:
    """Very basic text validations and sanitization for request payloads."""

    @staticmethod
    def _is_non_empty_alpha(text: Optional[str]) -> bool:
        if text is None:
            return False
        t = text.strip()
        if not t:
            return False
        # allow spaces and letters, basic punctuation; reject purely numeric
        return any(c.isalpha() for c in t)

    @staticmethod
    def validate_title(title: Optional[str]) -> bool:
        return TextValidator._is_non_empty_alpha(title)

    @staticmethod
    def validate_author(author: Optional[str]) -> bool:
        # must not be digits only
        if author is None:
            return False
        t = author.strip()
        if not t:
            return False
        return not t.isdigit()

    @staticmethod
    def validate_name(name: Optional[str]) -> bool:
        return TextValidator._is_non_empty_alpha(name)

    @staticmethod
    def sanitize_text(text: Optional[str]) -> str:
        if text is None:
            return ""
        # strip HTML tags before anything reaches the HTML listing
        cleaned = re.sub(r"<[^>]*>", "", text)
        return cleaned.strip()
