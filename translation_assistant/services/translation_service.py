"""
Translation Service
===================
Ties the translation client to persistence: translate-and-store, history,
favorites, tags and per-user statistics.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from translation_assistant.config import config
from translation_assistant.config.constants import EXPORT_VERSION
from translation_assistant.database.repositories import (
    TranslationFilter,
    TranslationRepository,
    TranslationHistoryRepository,
)
from translation_assistant.models.schemas import Pagination
from translation_assistant.models.translation import Translation, TranslationHistoryEntry
from translation_assistant.models.user import User
from translation_assistant.services.openai_client import OpenAIClient, get_openai_client
from translation_assistant.utils.language_detection import detect_language
from translation_assistant.utils.logging import get_logger


class TagLimitError(ValueError):
    """Adding tags would exceed the per-translation limit."""


class OwnershipError(ValueError):
    """Some records do not exist or belong to another user."""


class TranslationService:
    """Per-user translation operations."""

    def __init__(
        self,
        client: OpenAIClient = None,
        translations: TranslationRepository = None,
        history: TranslationHistoryRepository = None
    ):
        self.client = client or get_openai_client()
        self.translations = translations or TranslationRepository()
        self.history = history or TranslationHistoryRepository()
        self.logger = get_logger().translation_logger

    def translate(
        self,
        user_id: int,
        text: str,
        tone: str,
        tags: List[str] = None,
        original_language: str = None
    ) -> Translation:
        """Translate text, store the result and record the access."""
        original_language = original_language or detect_language(text)
        translated_text = self.client.translate(text, tone)

        translation = self.translations.create(
            user_id=user_id,
            original_text=text.strip(),
            translated_text=translated_text,
            tone=tone,
            original_language=original_language,
            tags=_clean_tags(tags or [])
        )
        self.history.record_access(user_id, translation.id)

        self.logger.info(
            f"Translation successful - User: {user_id}, Tone: {tone}, "
            f"Original length: {len(text)}"
        )
        return translation

    def get(self, user_id: int, translation_id: int) -> Optional[Translation]:
        """Fetch one translation and refresh its access time."""
        translation = self.translations.get_for_user(translation_id, user_id)
        if translation:
            self.history.record_access(user_id, translation_id)
        return translation

    def list(
        self,
        user_id: int,
        filters: TranslationFilter = None,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Translation], Pagination]:
        pagination = Pagination(page=page, limit=limit, total=0)
        items, pagination.total = self.translations.list_for_user(
            user_id, filters, limit=limit, offset=pagination.offset
        )
        return items, pagination

    def toggle_favorite(self, user_id: int, translation_id: int) -> Optional[Translation]:
        translation = self.translations.toggle_favorite(translation_id, user_id)
        if translation:
            action = "favorited" if translation.is_favorite else "unfavorited"
            self.logger.info(f"User {user_id} {action} translation record {translation_id}")
        return translation

    def add_tags(self, user_id: int, translation_id: int, new_tags: List[str]) -> Optional[Translation]:
        """
        Add tags that are not present yet.

        Tags are trimmed and blanks dropped. Raises TagLimitError if the
        result would exceed the configured maximum.
        """
        translation = self.translations.get_for_user(translation_id, user_id)
        if not translation:
            return None

        additions = [tag for tag in _clean_tags(new_tags) if tag not in translation.tags]
        if not additions:
            return translation

        max_tags = config.translation.max_tags
        if len(translation.tags) + len(additions) > max_tags:
            raise TagLimitError(f"Maximum {max_tags} tags allowed")

        self.logger.info(f"Tags added to translation {translation_id}: {additions}")
        return self.translations.set_tags(translation_id, user_id, translation.tags + additions)

    def remove_tag(self, user_id: int, translation_id: int, tag: str) -> Optional[Translation]:
        translation = self.translations.get_for_user(translation_id, user_id)
        if not translation:
            return None
        if tag not in translation.tags:
            return translation
        remaining = [t for t in translation.tags if t != tag]
        return self.translations.set_tags(translation_id, user_id, remaining)

    def delete(self, user_id: int, translation_id: int) -> bool:
        return self.translations.delete(translation_id, user_id)

    def delete_many(self, user_id: int, translation_ids: List[int]) -> int:
        """Delete several translations; all of them must belong to the user."""
        deleted = self.translations.delete_many(_unique(translation_ids), user_id)
        if deleted is None:
            raise OwnershipError(
                "Some records do not exist or you don't have permission to delete them"
            )
        return deleted

    def history_page(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[TranslationHistoryEntry], Pagination]:
        pagination = Pagination(page=page, limit=limit, total=0)
        entries, pagination.total = self.history.list_for_user(
            user_id, limit=limit, offset=pagination.offset
        )
        return entries, pagination

    def statistics(self, user_id: int, now: datetime = None) -> Dict[str, Any]:
        """Totals, tone usage and the daily trend of the last 30 days."""
        now = now or datetime.now(timezone.utc)
        return {
            'totalTranslations': self.translations.count(user_id),
            'favoriteCount': self.translations.count(user_id, is_favorite=True),
            'toneStats': self.translations.tone_counts(user_id),
            'dailyStats': self.translations.daily_counts(user_id, now - timedelta(days=30)),
        }

    def user_stats(self, user_id: int, now: datetime = None) -> Dict[str, Any]:
        """Headline numbers shown with the profile."""
        now = now or datetime.now(timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        tone_counts = self.translations.tone_counts(user_id)

        return {
            'totalTranslations': self.translations.count(user_id),
            'favoriteCount': self.translations.count(user_id, is_favorite=True),
            'thisMonthCount': self.translations.count(user_id, since=month_start),
            'thisWeekCount': self.translations.count(user_id, since=now - timedelta(days=7)),
            'mostUsedTone': tone_counts[0]['tone'] if tone_counts else None,
        }

    def dashboard(self, user_id: int, now: datetime = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        stats = self.user_stats(user_id, now=now)
        total = stats['totalTranslations']

        tone_distribution = [
            {
                'tone': item['tone'],
                'count': item['count'],
                'percentage': round(item['count'] / total * 100) if total else 0,
            }
            for item in self.translations.tone_counts(user_id)
        ]

        return {
            'stats': stats,
            'recentTranslations': [t.to_summary() for t in self.translations.recent(user_id, limit=5)],
            'toneDistribution': tone_distribution,
            'weeklyTrend': self.translations.daily_counts(user_id, now - timedelta(days=7)),
        }

    def export(self, user: User) -> Dict[str, Any]:
        """Everything stored about a user, ready to serialise."""
        return {
            'user': user.to_dict(),
            'translations': [t.to_dict() for t in self.translations.all_for_user(user.id)],
            'history': [h.to_dict() for h in self.history.all_for_user(user.id)],
            'exportedAt': datetime.now(timezone.utc).isoformat(),
            'version': EXPORT_VERSION,
        }


def _unique(items: list) -> list:
    return list(dict.fromkeys(items))


def _clean_tags(tags: List[str]) -> List[str]:
    """Trim tags, dropping blanks and duplicates."""
    return _unique([tag.strip() for tag in tags if isinstance(tag, str) and tag.strip()])
