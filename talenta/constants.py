"""Project-wide constant values."""
from __future__ import annotations

from datetime import timedelta

MB = 1024 * 1024

SKILL_CATEGORIES: tuple[str, ...] = (
    "Cooking",
    "Photography",
    "Music",
    "Art & Design",
    "Fitness",
    "Technology",
    "Language",
    "Business",
    "Crafts",
    "Gaming",
    "Beauty",
    "Gardening",
)

PRIVACY_SETTINGS: tuple[str, ...] = ("public", "followers", "private")

FEED_DEFAULT_LIMIT = 20
FEED_MAX_LIMIT = 50
TRENDING_WINDOW = timedelta(days=7)

NOTIFICATION_LIST_LIMIT = 50
SEARCH_RESULT_LIMIT = 20
SUGGESTED_SKILLS_LIMIT = 10
TRENDING_SKILLS_LIMIT = 5
MAX_SKILL_TAGS = 10

POST_MEDIA_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/png", "image/gif", "video/mp4", "video/webm"})
POST_MEDIA_MAX_BYTES = 50 * MB
AVATAR_MAX_BYTES = 5 * MB
REFERENCE_FILE_MAX_BYTES = 10 * MB
REFERENCE_FILE_EXTENSIONS: frozenset[str] = frozenset({".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png"})

PASSWORD_RESET_TTL = timedelta(minutes=30)
PASSWORD_RESET_RESEND_COOLDOWN = timedelta(minutes=2)
PASSWORD_RESET_MAX_ATTEMPTS = 5

HIRE_MESSAGE_PREFIX = "Hi! I'm interested in hiring you for your services."

__all__ = [
    "MB",
    "SKILL_CATEGORIES",
    "PRIVACY_SETTINGS",
    "FEED_DEFAULT_LIMIT",
    "FEED_MAX_LIMIT",
    "TRENDING_WINDOW",
    "NOTIFICATION_LIST_LIMIT",
    "SEARCH_RESULT_LIMIT",
    "SUGGESTED_SKILLS_LIMIT",
    "TRENDING_SKILLS_LIMIT",
    "MAX_SKILL_TAGS",
    "POST_MEDIA_TYPES",
    "POST_MEDIA_MAX_BYTES",
    "AVATAR_MAX_BYTES",
    "REFERENCE_FILE_MAX_BYTES",
    "REFERENCE_FILE_EXTENSIONS",
    "PASSWORD_RESET_TTL",
    "PASSWORD_RESET_RESEND_COOLDOWN",
    "PASSWORD_RESET_MAX_ATTEMPTS",
    "HIRE_MESSAGE_PREFIX",
]
