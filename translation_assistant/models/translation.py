"""
Translation Data Models
=======================
Core data structures for translations and their access history.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from translation_assistant.config.constants import DEFAULT_TONE
from translation_assistant.models.user import to_iso


@dataclass
class Translation:
    """A stored translation owned by a user."""
    id: Optional[int] = None
    user_id: Optional[int] = None
    original_text: str = ""
    original_language: str = "auto"
    translated_text: str = ""
    tone: str = DEFAULT_TONE
    tags: List[str] = field(default_factory=list)
    is_favorite: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> 'Translation':
        return cls(
            id=row['id'],
            user_id=row['user_id'],
            original_text=row['original_text'],
            original_language=row['original_language'],
            translated_text=row['translated_text'],
            tone=row['tone'],
            tags=json.loads(row['tags']) if row['tags'] else [],
            is_favorite=bool(row['is_favorite']),
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )

    @property
    def original_text_length(self) -> int:
        return len(self.original_text)

    @property
    def translated_text_length(self) -> int:
        return len(self.translated_text)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'originalText': self.original_text,
            'originalLanguage': self.original_language,
            'translatedText': self.translated_text,
            'tone': self.tone,
            'tags': list(self.tags),
            'isFavorite': self.is_favorite,
            'originalTextLength': self.original_text_length,
            'translatedTextLength': self.translated_text_length,
            'createdAt': to_iso(self.created_at),
            'updatedAt': to_iso(self.updated_at),
        }

    def to_summary(self) -> Dict[str, Any]:
        """Short form used in dashboards and activity lists."""
        return {
            'id': self.id,
            'originalText': self.original_text,
            'translatedText': self.translated_text,
            'tone': self.tone,
            'isFavorite': self.is_favorite,
            'createdAt': to_iso(self.created_at),
        }


@dataclass
class TranslationHistoryEntry:
    """Last time a user accessed one of their translations."""
    id: Optional[int] = None
    user_id: Optional[int] = None
    translation_id: Optional[int] = None
    accessed_at: Optional[str] = None
    translation: Optional[Translation] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'id': self.id,
            'translationId': self.translation_id,
            'accessedAt': to_iso(self.accessed_at),
        }
        if self.translation is not None:
            result['translation'] = self.translation.to_summary()
        return result
