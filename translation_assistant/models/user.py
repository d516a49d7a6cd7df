"""
User Data Models
================
Account records and their preferences.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from translation_assistant.config.constants import DEFAULT_PREFERENCES


def utcnow() -> str:
    """Current UTC time in the fixed-width format stored in the database."""
    return datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S.%f')


def to_iso(timestamp: Optional[str]) -> Optional[str]:
    """Convert a stored timestamp to ISO-8601 for JSON output."""
    if not timestamp:
        return None
    return timestamp.replace(' ', 'T') + 'Z'


@dataclass
class UserPreferences:
    """Per-user dashboard settings."""
    default_tone: str = DEFAULT_PREFERENCES['defaultTone']
    language: str = DEFAULT_PREFERENCES['language']
    theme: str = DEFAULT_PREFERENCES['theme']

    @classmethod
    def from_json(cls, raw: Optional[str]) -> 'UserPreferences':
        data = json.loads(raw) if raw else {}
        return cls(
            default_tone=data.get('defaultTone', DEFAULT_PREFERENCES['defaultTone']),
            language=data.get('language', DEFAULT_PREFERENCES['language']),
            theme=data.get('theme', DEFAULT_PREFERENCES['theme']),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            'defaultTone': self.default_tone,
            'language': self.language,
            'theme': self.theme,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class User:
    """A registered account."""
    id: Optional[int] = None
    email: str = ""
    username: str = ""
    password_hash: str = field(default="", repr=False)
    preferences: UserPreferences = field(default_factory=UserPreferences)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    last_login_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> 'User':
        return cls(
            id=row['id'],
            email=row['email'],
            username=row['username'],
            password_hash=row['password_hash'],
            preferences=UserPreferences.from_json(row['preferences']),
            created_at=row['created_at'],
            updated_at=row['updated_at'],
            last_login_at=row['last_login_at'],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Public representation; never includes the password hash."""
        return {
            'id': self.id,
            'email': self.email,
            'username': self.username,
            'preferences': self.preferences.to_dict(),
            'createdAt': to_iso(self.created_at),
            'lastLoginAt': to_iso(self.last_login_at),
        }
