"""
Constants and Enums for Translation Assistant
"""
import re
from enum import Enum


class Tone(str, Enum):
    """Stylistic tone applied to a translation."""
    NATURAL = "natural"
    GENTLE = "gentle"
    CUTE = "cute"
    DEPRESSED = "depressed"
    ANGRY = "angry"


VALID_TONES = [tone.value for tone in Tone]

DEFAULT_TONE = Tone.NATURAL.value


class Theme(str, Enum):
    """Dashboard colour theme."""
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


VALID_THEMES = [theme.value for theme in Theme]

# Interface languages a user can pick in preferences
INTERFACE_LANGUAGES = {
    'zh-CN': 'Simplified Chinese',
    'en-US': 'English',
    'ja': 'Japanese',
    'ko': 'Korean',
}

DEFAULT_PREFERENCES = {
    'defaultTone': DEFAULT_TONE,
    'language': 'zh-CN',
    'theme': Theme.LIGHT.value,
}

# Prompt header used for each tone; the target language is always English
TONE_PROMPTS = {
    Tone.NATURAL.value: "Translate the following text to English naturally and accurately:",
    Tone.GENTLE.value: "Translate the following text to English with a gentle, soft tone:",
    Tone.CUTE.value: "Translate the following text to English with a cute, playful tone:",
    Tone.DEPRESSED.value: "Translate the following text to English with a melancholic, sad tone:",
    Tone.ANGRY.value: "Translate the following text to English with an angry, intense tone:",
}

TRANSLATION_REQUIREMENTS = """Requirements:
- Keep the meaning accurate
- Adapt the tone appropriately
- Make it sound natural in English
- Preserve any formatting or special characters
- Return only the translation without explanations"""

# Unicode ranges for script based language detection, checked in order
SCRIPT_LANGUAGES = [
    ('zh-CN', re.compile(r'[\u4e00-\u9fff]')),
    ('ja', re.compile(r'[\u3040-\u309f\u30a0-\u30ff]')),
    ('ko', re.compile(r'[\uac00-\ud7af]')),
    ('ru', re.compile(r'[\u0400-\u04ff]')),
    ('ar', re.compile(r'[\u0600-\u06ff]')),
]

UNKNOWN_LANGUAGE = "auto"

USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PASSWORD_PATTERN = re.compile(
    r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$'
)

# Sort fields accepted by the search endpoint, mapped to columns
SORT_FIELDS = {
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
    'tone': 'tone',
}

ACCOUNT_DELETE_CONFIRMATION = "DELETE"
EXPORT_VERSION = "1.0"
