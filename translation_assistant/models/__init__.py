"""
Translation Assistant - Data Models
"""
from translation_assistant.models.user import User, UserPreferences
from translation_assistant.models.translation import (
    Translation,
    TranslationHistoryEntry
)
from translation_assistant.models.schemas import (
    Pagination,
    ApiResponse
)

__all__ = [
    "User",
    "UserPreferences",
    "Translation",
    "TranslationHistoryEntry",
    "Pagination",
    "ApiResponse",
]
