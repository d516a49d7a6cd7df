"""
Translation Assistant - Utility Functions
"""
from translation_assistant.utils.language_detection import detect_language
from translation_assistant.utils.validators import (
    validate_registration,
    validate_login,
    validate_translation,
    validate_user_update,
    validate_password_change,
    validate_search,
    validate_pagination,
    normalize_email,
)
from translation_assistant.utils.logging import (
    AppLogger,
    get_logger,
)

__all__ = [
    "detect_language",
    "validate_registration",
    "validate_login",
    "validate_translation",
    "validate_user_update",
    "validate_password_change",
    "validate_search",
    "validate_pagination",
    "normalize_email",
    "AppLogger",
    "get_logger",
]
