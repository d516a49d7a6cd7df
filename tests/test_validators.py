"""
Unit Tests for Validation and Text Helpers
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from translation_assistant.utils.validators import (
    validate_registration,
    validate_login,
    validate_translation,
    validate_tags,
    validate_user_update,
    validate_password_change,
    validate_search,
    validate_pagination,
    normalize_email,
    is_strong_password,
    is_valid_username,
    parse_iso_date,
)
from translation_assistant.utils.language_detection import detect_language
from translation_assistant.services.openai_client import build_prompt, estimate_tokens


def fields(errors):
    return {error['field'] for error in errors}


class TestRegistrationValidation:
    """Test registration payload rules."""

    def test_valid_payload(self):
        errors = validate_registration({
            'email': 'alice@example.com',
            'username': 'alice_01',
            'password': 'Secret1!pass',
            'confirmPassword': 'Secret1!pass',
        })
        assert errors == []

    def test_all_fields_invalid(self):
        errors = validate_registration({
            'email': 'not-an-email',
            'username': 'a',
            'password': 'weak',
            'confirmPassword': 'other',
        })
        assert fields(errors) == {'email', 'username', 'password', 'confirmPassword'}

    def test_password_value_not_echoed(self):
        errors = validate_registration({'password': 'weak'})
        password_error = next(e for e in errors if e['field'] == 'password')
        assert password_error['value'] is None

    def test_username_rules(self):
        assert is_valid_username('abc')
        assert is_valid_username('a' * 30)
        assert is_valid_username('user-name_9')
        assert not is_valid_username('ab')
        assert not is_valid_username('a' * 31)
        assert not is_valid_username('has space')

    def test_password_strength(self):
        assert is_strong_password('Secret1!pass')
        assert not is_strong_password('secret1!pass')
        assert not is_strong_password('SECRET1!PASS')
        assert not is_strong_password('Secretpass!')
        assert not is_strong_password('Secret1pass')
        assert not is_strong_password('Sec1!')
        assert not is_strong_password('Secret1!pass#')
        assert not is_strong_password('Aa1!' * 33)


class TestLoginValidation:

    def test_missing_password(self):
        assert fields(validate_login({'email': 'a@b.co'})) == {'password'}

    def test_normalize_email(self):
        assert normalize_email('  Alice@Example.COM ') == 'alice@example.com'
        assert normalize_email(None) == ''


class TestTranslationValidation:
    """Test translate payload rules."""

    def test_valid_payload(self):
        assert validate_translation({'text': 'Hello', 'tone': 'cute', 'tags': ['a']}) == []

    def test_blank_text(self):
        assert fields(validate_translation({'text': '   ', 'tone': 'natural'})) == {'text'}

    def test_text_too_long(self):
        errors = validate_translation({'text': 'x' * 5001, 'tone': 'natural'})
        assert fields(errors) == {'text'}
        assert errors[0]['value'] == 5001

    def test_invalid_tone(self):
        assert fields(validate_translation({'text': 'Hi', 'tone': 'sarcastic'})) == {'tone'}

    def test_original_language_length(self):
        errors = validate_translation({'text': 'Hi', 'tone': 'natural', 'originalLanguage': 'x'})
        assert fields(errors) == {'originalLanguage'}

    def test_tags_limits(self):
        assert validate_tags(['t'] * 10) == []
        assert fields(validate_tags(['t'] * 11)) == {'tags'}
        assert fields(validate_tags(['ok', ''])) == {'tags[1]'}
        assert fields(validate_tags(['x' * 51])) == {'tags[0]'}
        assert fields(validate_tags('not-a-list')) == {'tags'}


class TestAccountValidation:

    def test_user_update_optional_fields(self):
        assert validate_user_update({}) == []
        errors = validate_user_update({
            'username': '!!',
            'email': 'bad',
            'preferences': {'defaultTone': 'loud', 'language': 'x'},
        })
        assert fields(errors) == {
            'username', 'email', 'preferences.defaultTone', 'preferences.language'
        }

    def test_password_change(self):
        errors = validate_password_change({
            'newPassword': 'Secret1!pass',
            'confirmNewPassword': 'Different1!',
        })
        assert fields(errors) == {'currentPassword', 'confirmNewPassword'}


class TestSearchAndPagination:

    def test_search_filters(self):
        assert validate_search({'query': 'hello', 'tone': 'angry', 'dateFrom': '2024-01-01'}) == []
        errors = validate_search({
            'query': 'q' * 501,
            'tone': 'nope',
            'dateTo': 'yesterday',
            'sortOrder': 'up',
        })
        assert fields(errors) == {'query', 'tone', 'dateTo', 'sortOrder'}

    def test_parse_iso_date(self):
        parsed = parse_iso_date('2024-03-01T10:00:00Z')
        assert parsed.year == 2024 and parsed.tzinfo is not None
        assert parse_iso_date('03/01/2024') is None

    def test_pagination_defaults(self):
        assert validate_pagination({}) == (True, None, 1, 20)

    def test_pagination_bounds(self):
        assert validate_pagination({'page': '2', 'limit': '100'}) == (True, None, 2, 100)
        assert validate_pagination({'page': '0'})[0] is False
        assert validate_pagination({'limit': '101'})[0] is False
        assert validate_pagination({'limit': 'abc'})[0] is False

    def test_pagination_offset_must_fit_storage(self):
        valid, error, _, _ = validate_pagination({'page': str(10 ** 17), 'limit': '100'})
        assert valid is False
        assert error == "Page is out of range"
        assert validate_pagination({'page': str(10 ** 16), 'limit': '100'})[0] is True


class TestLanguageDetection:
    """Test script based language detection."""

    def test_scripts(self):
        assert detect_language('你好世界') == 'zh-CN'
        assert detect_language('こんにちは') == 'ja'
        assert detect_language('안녕하세요') == 'ko'
        assert detect_language('привет') == 'ru'
        assert detect_language('مرحبا') == 'ar'

    def test_fallback(self):
        assert detect_language('Bonjour tout le monde') == 'auto'
        assert detect_language('') == 'auto'

    def test_chinese_checked_before_japanese(self):
        # Kanji with kana still contains CJK ideographs
        assert detect_language('日本語です') == 'zh-CN'


class TestPrompt:

    def test_tone_prompt(self):
        prompt = build_prompt('Hola', 'gentle')
        assert prompt.startswith("Translate the following text to English with a gentle, soft tone:")
        assert 'Text: Hola' in prompt
        assert 'Return only the translation without explanations' in prompt

    def test_unknown_tone_uses_natural(self):
        assert build_prompt('Hola', 'mystery').startswith(
            "Translate the following text to English naturally and accurately:"
        )

    def test_estimate_tokens(self):
        assert estimate_tokens('') == 0
        assert estimate_tokens('abcd') == 1
        assert estimate_tokens('abcde') == 2
