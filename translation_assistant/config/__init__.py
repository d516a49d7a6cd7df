"""
Translation Assistant - Configuration Module
"""
from translation_assistant.config.settings import Config, config
from translation_assistant.config.constants import (
    Tone,
    Theme,
    VALID_TONES,
    VALID_THEMES,
    INTERFACE_LANGUAGES,
    DEFAULT_PREFERENCES,
)

__all__ = [
    "Config",
    "config",
    "Tone",
    "Theme",
    "VALID_TONES",
    "VALID_THEMES",
    "INTERFACE_LANGUAGES",
    "DEFAULT_PREFERENCES",
]
