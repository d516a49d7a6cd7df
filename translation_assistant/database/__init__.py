"""
Database Module
===============
Database connection and repository implementations.
"""
from translation_assistant.database.connection import (
    Database,
    get_database,
    init_database,
    reset_database
)
from translation_assistant.database.repositories import (
    UserRepository,
    TranslationRepository,
    TranslationHistoryRepository,
    TranslationFilter
)

__all__ = [
    'Database',
    'get_database',
    'init_database',
    'reset_database',
    'UserRepository',
    'TranslationRepository',
    'TranslationHistoryRepository',
    'TranslationFilter'
]
