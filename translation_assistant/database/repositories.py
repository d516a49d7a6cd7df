"""
Database Repositories
=====================
Data access patterns for users, translations and access history.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple

from translation_assistant.database.connection import Database, get_database
from translation_assistant.models.user import User, UserPreferences, utcnow
from translation_assistant.models.translation import Translation, TranslationHistoryEntry
from translation_assistant.utils.logging import get_logger


def to_db_timestamp(value: datetime) -> str:
    """Format a datetime the way timestamps are stored (naive values are UTC)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime('%Y-%m-%d %H:%M:%S.%f')


def _escape_like(value: str) -> str:
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


class UserRepository:
    """Repository for user accounts."""

    def __init__(self, database: Database = None):
        self.db = database or get_database()
        self.logger = get_logger().db_logger

    def create(
        self,
        email: str,
        username: str,
        password_hash: str,
        preferences: UserPreferences = None
    ) -> User:
        """Create a new user; raises sqlite3.IntegrityError on duplicates."""
        now = utcnow()
        preferences = preferences or UserPreferences()
        with self.db.transaction() as conn:
            cursor = conn.execute("""
                INSERT INTO users (
                    email, username, password_hash, preferences,
                    created_at, updated_at, last_login_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (email, username, password_hash, preferences.to_json(), now, now, now))
            user_id = cursor.lastrowid

        self.logger.info(f"Created user {user_id}")
        return self.get_by_id(user_id)

    def get_by_id(self, user_id: int) -> Optional[User]:
        row = self.db.fetchone("SELECT * FROM users WHERE id = ?", (user_id,))
        return User.from_row(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        row = self.db.fetchone("SELECT * FROM users WHERE email = ?", (email,))
        return User.from_row(row) if row else None

    def find_conflict(
        self,
        email: str = None,
        username: str = None,
        exclude_id: int = None
    ) -> Optional[User]:
        """Find another user holding the given email or username."""
        clauses = []
        params: List[Any] = []
        if email:
            clauses.append("email = ?")
            params.append(email)
        if username:
            clauses.append("username = ?")
            params.append(username)
        if not clauses:
            return None

        query = f"SELECT * FROM users WHERE ({' OR '.join(clauses)})"
        if exclude_id is not None:
            query += " AND id != ?"
            params.append(exclude_id)

        row = self.db.fetchone(query + " LIMIT 1", tuple(params))
        return User.from_row(row) if row else None

    def touch_last_login(self, user_id: int) -> None:
        with self.db.transaction() as conn:
            conn.execute(
                "UPDATE users SET last_login_at = ? WHERE id = ?",
                (utcnow(), user_id)
            )

    def update_profile(self, user_id: int, username: str = None, email: str = None) -> Optional[User]:
        """Update username and/or email."""
        updates = []
        params: List[Any] = []
        if username:
            updates.append("username = ?")
            params.append(username)
        if email:
            updates.append("email = ?")
            params.append(email)
        if updates:
            updates.append("updated_at = ?")
            params.extend([utcnow(), user_id])
            with self.db.transaction() as conn:
                conn.execute(f"UPDATE users SET {', '.join(updates)} WHERE id = ?", tuple(params))
        return self.get_by_id(user_id)

    def update_preferences(self, user_id: int, preferences: UserPreferences) -> None:
        with self.db.transaction() as conn:
            conn.execute(
                "UPDATE users SET preferences = ?, updated_at = ? WHERE id = ?",
                (preferences.to_json(), utcnow(), user_id)
            )

    def update_password(self, user_id: int, password_hash: str) -> None:
        with self.db.transaction() as conn:
            conn.execute(
                "UPDATE users SET password_hash = ?, updated_at = ? WHERE id = ?",
                (password_hash, utcnow(), user_id)
            )
        self.logger.info(f"Password changed for user {user_id}")

    def delete(self, user_id: int) -> bool:
        """Delete a user; translations and history cascade."""
        with self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            self.logger.info(f"User {user_id} deleted")
        return deleted


@dataclass
class TranslationFilter:
    """Filters for listing a user's translations."""
    tone: Optional[str] = None
    query: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    is_favorite: Optional[bool] = None
    sort_by: str = 'created_at'
    sort_order: str = 'desc'


class TranslationRepository:
    """
    Repository for translation records.

    Every read and write is scoped to the owning user.
    """

    SORTABLE_COLUMNS = ('created_at', 'updated_at', 'tone')

    def __init__(self, database: Database = None):
        self.db = database or get_database()
        self.logger = get_logger().db_logger

    def create(
        self,
        user_id: int,
        original_text: str,
        translated_text: str,
        tone: str,
        original_language: str = 'auto',
        tags: List[str] = None
    ) -> Translation:
        """Create a new translation record."""
        now = utcnow()
        with self.db.transaction() as conn:
            cursor = conn.execute("""
                INSERT INTO translations (
                    user_id, original_text, original_language, translated_text,
                    tone, tags, is_favorite, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, 0, ?, ?)
            """, (
                user_id, original_text, original_language, translated_text,
                tone, json.dumps(tags or []), now, now
            ))
            translation_id = cursor.lastrowid

        self.logger.info(f"Created translation {translation_id} for user {user_id}")
        return self.get_for_user(translation_id, user_id)

    def get_for_user(self, translation_id: int, user_id: int) -> Optional[Translation]:
        row = self.db.fetchone(
            "SELECT * FROM translations WHERE id = ? AND user_id = ?",
            (translation_id, user_id)
        )
        return Translation.from_row(row) if row else None

    def _where(self, user_id: int, filters: TranslationFilter) -> Tuple[str, List[Any]]:
        clauses = ["user_id = ?"]
        params: List[Any] = [user_id]

        if filters.tone:
            clauses.append("tone = ?")
            params.append(filters.tone)

        if filters.query:
            # casefold() is registered per connection; LIKE alone only folds ASCII
            pattern = f"%{_escape_like(filters.query.casefold())}%"
            clauses.append(
                "(casefold(original_text) LIKE ? ESCAPE '\\'"
                " OR casefold(translated_text) LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern])

        if filters.tags:
            placeholders = ', '.join('?' for _ in filters.tags)
            clauses.append(
                f"EXISTS (SELECT 1 FROM json_each(translations.tags) WHERE value IN ({placeholders}))"
            )
            params.extend(filters.tags)

        if filters.date_from:
            clauses.append("created_at >= ?")
            params.append(to_db_timestamp(filters.date_from))

        if filters.date_to:
            clauses.append("created_at <= ?")
            params.append(to_db_timestamp(filters.date_to))

        if filters.is_favorite is not None:
            clauses.append("is_favorite = ?")
            params.append(1 if filters.is_favorite else 0)

        return " AND ".join(clauses), params

    def list_for_user(
        self,
        user_id: int,
        filters: TranslationFilter = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Translation], int]:
        """Get one page of a user's translations and the total match count."""
        filters = filters or TranslationFilter()
        where, params = self._where(user_id, filters)

        sort_by = filters.sort_by if filters.sort_by in self.SORTABLE_COLUMNS else 'created_at'
        direction = 'ASC' if filters.sort_order == 'asc' else 'DESC'

        rows = self.db.fetchall(f"""
            SELECT * FROM translations
            WHERE {where}
            ORDER BY {sort_by} {direction}, id {direction}
            LIMIT ? OFFSET ?
        """, tuple(params + [limit, offset]))

        row = self.db.fetchone(
            f"SELECT COUNT(*) AS total FROM translations WHERE {where}",
            tuple(params)
        )
        total = row['total'] if row else 0

        return [Translation.from_row(r) for r in rows], total

    def all_for_user(self, user_id: int) -> List[Translation]:
        rows = self.db.fetchall(
            "SELECT * FROM translations WHERE user_id = ? ORDER BY created_at DESC, id DESC",
            (user_id,)
        )
        return [Translation.from_row(r) for r in rows]

    def recent(self, user_id: int, limit: int = 5) -> List[Translation]:
        translations, _ = self.list_for_user(user_id, limit=limit)
        return translations

    def toggle_favorite(self, translation_id: int, user_id: int) -> Optional[Translation]:
        """Flip the favorite flag; returns None if the record is not the user's."""
        with self.db.transaction() as conn:
            cursor = conn.execute("""
                UPDATE translations
                SET is_favorite = 1 - is_favorite, updated_at = ?
                WHERE id = ? AND user_id = ?
            """, (utcnow(), translation_id, user_id))
            if cursor.rowcount == 0:
                return None
        return self.get_for_user(translation_id, user_id)

    def set_tags(self, translation_id: int, user_id: int, tags: List[str]) -> Optional[Translation]:
        with self.db.transaction() as conn:
            cursor = conn.execute("""
                UPDATE translations SET tags = ?, updated_at = ?
                WHERE id = ? AND user_id = ?
            """, (json.dumps(tags), utcnow(), translation_id, user_id))
            if cursor.rowcount == 0:
                return None
        return self.get_for_user(translation_id, user_id)

    def delete(self, translation_id: int, user_id: int) -> bool:
        """Delete a translation; its history rows cascade."""
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM translations WHERE id = ? AND user_id = ?",
                (translation_id, user_id)
            )
            deleted = cursor.rowcount > 0

        if deleted:
            self.logger.info(f"Translation {translation_id} deleted by user {user_id}")
        return deleted

    def delete_many(self, translation_ids: List[int], user_id: int) -> Optional[int]:
        """
        Delete several translations in one transaction.

        Returns None without deleting anything when some ids are missing
        or belong to another user.
        """
        placeholders = ', '.join('?' for _ in translation_ids)
        params = tuple([user_id] + list(translation_ids))
        with self.db.transaction() as conn:
            row = conn.execute(
                f"SELECT COUNT(*) AS total FROM translations WHERE user_id = ? AND id IN ({placeholders})",
                params
            ).fetchone()
            if row['total'] != len(translation_ids):
                return None

            cursor = conn.execute(
                f"DELETE FROM translations WHERE user_id = ? AND id IN ({placeholders})",
                params
            )
            deleted = cursor.rowcount

        self.logger.info(f"User {user_id} batch deleted {deleted} translations")
        return deleted

    def count(
        self,
        user_id: int,
        is_favorite: bool = None,
        since: datetime = None
    ) -> int:
        query = "SELECT COUNT(*) AS total FROM translations WHERE user_id = ?"
        params: List[Any] = [user_id]
        if is_favorite is not None:
            query += " AND is_favorite = ?"
            params.append(1 if is_favorite else 0)
        if since is not None:
            query += " AND created_at >= ?"
            params.append(to_db_timestamp(since))
        row = self.db.fetchone(query, tuple(params))
        return row['total'] if row else 0

    def tone_counts(self, user_id: int) -> List[Dict[str, Any]]:
        """Translation count per tone, most used first."""
        rows = self.db.fetchall("""
            SELECT tone, COUNT(*) AS count
            FROM translations
            WHERE user_id = ?
            GROUP BY tone
            ORDER BY count DESC, tone ASC
        """, (user_id,))
        return [{'tone': row['tone'], 'count': row['count']} for row in rows]

    def daily_counts(self, user_id: int, since: datetime) -> List[Dict[str, Any]]:
        """Translation count per UTC day since a point in time, oldest first."""
        rows = self.db.fetchall("""
            SELECT substr(created_at, 1, 10) AS day, COUNT(*) AS count
            FROM translations
            WHERE user_id = ? AND created_at >= ?
            GROUP BY day
            ORDER BY day ASC
        """, (user_id, to_db_timestamp(since)))
        return [{'date': row['day'], 'count': row['count']} for row in rows]


class TranslationHistoryRepository:
    """Repository for the per-user translation access log."""

    def __init__(self, database: Database = None):
        self.db = database or get_database()

    def record_access(self, user_id: int, translation_id: int) -> None:
        """Insert or refresh the access time for a (user, translation) pair."""
        with self.db.transaction() as conn:
            conn.execute("""
                INSERT INTO translation_history (user_id, translation_id, accessed_at)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id, translation_id)
                DO UPDATE SET accessed_at = excluded.accessed_at
            """, (user_id, translation_id, utcnow()))

    def list_for_user(
        self,
        user_id: int,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[TranslationHistoryEntry], int]:
        """Most recently accessed first, joined with the translation."""
        rows = self.db.fetchall("""
            SELECT h.id AS history_id, h.accessed_at, t.*
            FROM translation_history h
            JOIN translations t ON t.id = h.translation_id
            WHERE h.user_id = ?
            ORDER BY h.accessed_at DESC, h.id DESC
            LIMIT ? OFFSET ?
        """, (user_id, limit, offset))

        row = self.db.fetchone(
            "SELECT COUNT(*) AS total FROM translation_history WHERE user_id = ?",
            (user_id,)
        )
        total = row['total'] if row else 0

        entries = [
            TranslationHistoryEntry(
                id=r['history_id'],
                user_id=user_id,
                translation_id=r['id'],
                accessed_at=r['accessed_at'],
                translation=Translation.from_row(r),
            )
            for r in rows
        ]
        return entries, total

    def all_for_user(self, user_id: int) -> List[TranslationHistoryEntry]:
        rows = self.db.fetchall("""
            SELECT * FROM translation_history
            WHERE user_id = ?
            ORDER BY accessed_at DESC
        """, (user_id,))
        return [
            TranslationHistoryEntry(
                id=r['id'],
                user_id=r['user_id'],
                translation_id=r['translation_id'],
                accessed_at=r['accessed_at'],
            )
            for r in rows
        ]
