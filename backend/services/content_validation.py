"""
Content Validation Service

Checks user-generated text (comments, posts) against length, link and
banned-word rules before anything is stored.
"""

import re
from typing import List, Set

from helpers.sanitization import sanitize_plain_text
from models.config import ContentLimits
from models.exceptions import ContentValidationException

URL_PATTERN = re.compile(r"https?://[^\s]+")


class ContentValidationService:
    """Service for validating user-generated content."""

    # Banned words (expandable)
    BANNED_WORDS: Set[str] = {
        "scam",
        "phishing",
        "malware",
    }

    @staticmethod
    def count_links(text: str) -> int:
        """Number of http(s) URLs in the text."""
        return len(URL_PATTERN.findall(text))

    @classmethod
    def find_banned_words(cls, text: str) -> List[str]:
        """
        Find banned words in text.

        Args:
            text: The text content to check

        Returns:
            Banned words found, in order of appearance
        """
        words = re.findall(r"\b\w+\b", text.lower())
        return [word for word in words if word in cls.BANNED_WORDS]

    @classmethod
    def clean_comment_text(cls, text: str, limits: ContentLimits) -> str:
        """
        Sanitize and validate comment text.

        HTML is stripped first so the limits apply to what is stored.

        Args:
            text: Raw comment text
            limits: Validation thresholds

        Returns:
            Sanitized text

        Raises:
            ContentValidationException: Empty, too long, too many links
                or banned words
        """
        cleaned = (sanitize_plain_text(text) or "").strip()

        if not cleaned:
            raise ContentValidationException("Comment cannot be empty")
        if len(cleaned) > limits.max_comment_length:
            raise ContentValidationException(
                f"Comment is too long (maximum {limits.max_comment_length} characters)"
            )
        if cls.count_links(cleaned) > limits.max_comment_links:
            raise ContentValidationException(
                f"Too many links in comment (maximum {limits.max_comment_links})"
            )

        banned = cls.find_banned_words(cleaned)
        if banned:
            raise ContentValidationException("Comment contains inappropriate language")

        return cleaned
