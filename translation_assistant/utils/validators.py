"""
Validation Utilities
====================
Functions for validating request payloads.

Body validators return a list of error dicts (``field``, ``message``,
``value``); an empty list means the payload is valid.
"""
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from translation_assistant.config import config
from translation_assistant.config.constants import (
    VALID_TONES,
    USERNAME_PATTERN,
    EMAIL_PATTERN,
    PASSWORD_PATTERN,
)

USERNAME_MESSAGE = (
    "Username must be 3-30 characters long and contain only letters, "
    "numbers, hyphens, and underscores"
)
PASSWORD_MESSAGE = (
    "Password must be at least 8 characters long and contain at least one "
    "lowercase letter, one uppercase letter, one number, and one special character"
)
TONE_MESSAGE = "Tone must be one of: " + ", ".join(VALID_TONES)

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20
MAX_BATCH_DELETE = 100

# Largest OFFSET SQLite accepts
MAX_OFFSET = 2 ** 63 - 1


def field_error(field: str, message: str, value: Any = None) -> Dict[str, Any]:
    return {'field': field, 'message': message, 'value': value}


def normalize_email(email: Any) -> str:
    """Lower-case and trim an email address."""
    if not isinstance(email, str):
        return ""
    return email.strip().lower()


def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email.strip()))


def is_valid_username(username: Any) -> bool:
    return (
        isinstance(username, str)
        and 3 <= len(username) <= 30
        and bool(USERNAME_PATTERN.match(username))
    )


def is_strong_password(password: Any) -> bool:
    return (
        isinstance(password, str)
        and 8 <= len(password) <= 128
        and bool(PASSWORD_PATTERN.match(password))
    )


def parse_iso_date(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime string, or return None."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None


def validate_registration(data: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Validate a registration payload."""
    errors = []

    email = data.get('email')
    if not is_valid_email(email):
        errors.append(field_error('email', "Please provide a valid email address", email))

    username = data.get('username')
    if not is_valid_username(username):
        errors.append(field_error('username', USERNAME_MESSAGE, username))

    password = data.get('password')
    if not is_strong_password(password):
        errors.append(field_error('password', PASSWORD_MESSAGE))

    if data.get('confirmPassword') != password:
        errors.append(field_error('confirmPassword', "Password confirmation does not match password"))

    return errors


def validate_login(data: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Validate a login payload."""
    errors = []

    email = data.get('email')
    if not is_valid_email(email):
        errors.append(field_error('email', "Please provide a valid email address", email))

    if not data.get('password'):
        errors.append(field_error('password', "Password is required"))

    return errors


def validate_tags(tags: Any, field: str = 'tags') -> List[Dict[str, Any]]:
    """Validate a list of tags against the configured limits."""
    if not isinstance(tags, list):
        return [field_error(field, "Tags must be an array", tags)]

    errors = []
    max_tags = config.translation.max_tags
    max_length = config.translation.max_tag_length

    if len(tags) > max_tags:
        errors.append(field_error(field, f"Maximum {max_tags} tags allowed", len(tags)))

    for index, tag in enumerate(tags):
        if not isinstance(tag, str) or not 1 <= len(tag) <= max_length:
            errors.append(field_error(
                f"{field}[{index}]",
                f"Each tag must be 1-{max_length} characters long",
                tag
            ))

    return errors


def validate_translation(data: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Validate a translate request payload."""
    errors = []
    max_length = config.translation.max_text_length

    text = data.get('text')
    if not isinstance(text, str) or not text.strip() or len(text) > max_length:
        errors.append(field_error(
            'text',
            f"Text must be between 1 and {max_length} characters",
            len(text) if isinstance(text, str) else text
        ))

    tone = data.get('tone')
    if tone not in VALID_TONES:
        errors.append(field_error('tone', TONE_MESSAGE, tone))

    original_language = data.get('originalLanguage')
    if original_language is not None:
        if not isinstance(original_language, str) or not 2 <= len(original_language) <= 10:
            errors.append(field_error(
                'originalLanguage',
                "Original language code must be 2-10 characters",
                original_language
            ))

    if data.get('tags') is not None:
        errors.extend(validate_tags(data['tags']))

    return errors


def validate_user_update(data: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Validate a profile update payload."""
    errors = []

    username = data.get('username')
    if username is not None and not is_valid_username(username):
        errors.append(field_error('username', USERNAME_MESSAGE, username))

    email = data.get('email')
    if email is not None and not is_valid_email(email):
        errors.append(field_error('email', "Please provide a valid email address", email))

    preferences = data.get('preferences')
    if isinstance(preferences, dict):
        tone = preferences.get('defaultTone')
        if tone is not None and tone not in VALID_TONES:
            errors.append(field_error('preferences.defaultTone', "Default " + TONE_MESSAGE.lower(), tone))

        language = preferences.get('language')
        if language is not None and (not isinstance(language, str) or not 2 <= len(language) <= 10):
            errors.append(field_error(
                'preferences.language',
                "Language code must be 2-10 characters",
                language
            ))

    return errors


def validate_password_change(data: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Validate a password change payload."""
    errors = []

    if not data.get('currentPassword'):
        errors.append(field_error('currentPassword', "Current password is required"))

    new_password = data.get('newPassword')
    if not is_strong_password(new_password):
        errors.append(field_error('newPassword', "New " + PASSWORD_MESSAGE[0].lower() + PASSWORD_MESSAGE[1:]))

    if data.get('confirmNewPassword') != new_password:
        errors.append(field_error(
            'confirmNewPassword',
            "New password confirmation does not match new password"
        ))

    return errors


def validate_search(args: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Validate search filters."""
    errors = []

    query = args.get('query')
    if query is not None and not 1 <= len(query) <= 500:
        errors.append(field_error('query', "Search query must be 1-500 characters", query))

    tone = args.get('tone')
    if tone is not None and tone not in VALID_TONES:
        errors.append(field_error('tone', "Tone filter must be one of: " + ", ".join(VALID_TONES), tone))

    for field in ('dateFrom', 'dateTo'):
        value = args.get(field)
        if value is not None and parse_iso_date(value) is None:
            label = "Date from" if field == 'dateFrom' else "Date to"
            errors.append(field_error(field, f"{label} must be a valid ISO 8601 date", value))

    sort_order = args.get('sortOrder')
    if sort_order is not None and sort_order not in ('asc', 'desc'):
        errors.append(field_error('sortOrder', "Sort order must be asc or desc", sort_order))

    return errors


def validate_pagination(args: Mapping[str, Any]) -> Tuple[bool, Optional[str], int, int]:
    """
    Validate page/limit query parameters.

    Args:
        args: Query arguments

    Returns:
        Tuple of (is_valid, error_message, page, limit)
    """
    page_raw = args.get('page')
    limit_raw = args.get('limit')

    try:
        page = int(page_raw) if page_raw not in (None, '') else 1
    except (TypeError, ValueError):
        page = 0
    if page < 1:
        return False, "Page must be a positive number", 1, DEFAULT_PAGE_SIZE

    try:
        limit = int(limit_raw) if limit_raw not in (None, '') else DEFAULT_PAGE_SIZE
    except (TypeError, ValueError):
        limit = 0
    if limit < 1 or limit > MAX_PAGE_SIZE:
        return False, f"Limit must be a number between 1 and {MAX_PAGE_SIZE}", page, DEFAULT_PAGE_SIZE

    if (page - 1) * limit > MAX_OFFSET:
        return False, "Page is out of range", 1, limit

    return True, None, page, limit
