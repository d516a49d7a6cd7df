"""
Language Detection Utilities
============================
Script based detection of the source language of a text.
"""
from translation_assistant.config.constants import SCRIPT_LANGUAGES, UNKNOWN_LANGUAGE


def detect_language(text: str) -> str:
    """
    Guess the language of a text from the scripts it contains.

    Scripts are checked in a fixed order, so a Japanese text containing
    kanji is reported as Chinese. Latin-script text is reported as "auto".

    Args:
        text: Text to inspect

    Returns:
        Language code such as "zh-CN", "ja", "ko", "ru", "ar" or "auto"
    """
    if not text:
        return UNKNOWN_LANGUAGE

    for lang_code, pattern in SCRIPT_LANGUAGES:
        if pattern.search(text):
            return lang_code

    return UNKNOWN_LANGUAGE

