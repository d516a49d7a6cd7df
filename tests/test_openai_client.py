"""
Unit Tests for the chat completions client
==========================================
The HTTP session is replaced with a scripted fake; sleeps are recorded.
"""
import os
import sys

import pytest
import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from translation_assistant.services.openai_client import (
    OpenAIClient,
    TranslationServiceError,
    UpstreamRateLimitError,
    QuotaExceededError,
    ServiceConfigurationError,
    ModelUnavailableError,
)


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def completion(text, tokens=42):
    return FakeResponse(200, {
        'choices': [{'message': {'role': 'assistant', 'content': text}}],
        'usage': {'total_tokens': tokens},
    })


def api_error(status_code, code, message="upstream error"):
    return FakeResponse(status_code, {'error': {'message': message, 'code': code}})


class ScriptedSession:
    """Returns (or raises) the scripted outcomes in order."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({'url': url, 'json': json, 'headers': headers, 'timeout': timeout})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []
    monkeypatch.setattr(
        'translation_assistant.services.openai_client.time.sleep',
        lambda seconds: recorded.append(seconds)
    )
    return recorded


def make_client(*outcomes):
    client = OpenAIClient(api_key='sk-test', base_url='https://llm.example/v1', model='test-model')
    client.max_retries = 3
    client.retry_delay = 1.0
    client.session = ScriptedSession(outcomes)
    return client


class TestComplete:
    """Test a single completion call."""

    def test_request_shape(self, sleeps):
        client = make_client(completion("  Hello!  "))
        result = client.complete("prompt text")

        assert result.success is True
        assert result.text == "Hello!"
        assert result.total_tokens == 42

        sent = client.session.requests[0]
        assert sent['url'] == 'https://llm.example/v1/chat/completions'
        assert sent['headers']['Authorization'] == 'Bearer sk-test'
        assert sent['json']['model'] == 'test-model'
        assert sent['json']['messages'] == [{'role': 'user', 'content': 'prompt text'}]
        assert sent['json']['frequency_penalty'] == pytest.approx(0.1)

    def test_error_classification(self, sleeps):
        client = make_client(api_error(429, 'insufficient_quota', 'quota gone'))
        result = client.complete("prompt")
        assert result.success is False
        assert result.error_code == 'insufficient_quota'
        assert result.status_code == 429
        assert result.error == 'quota gone'

    def test_empty_completion(self, sleeps):
        result = make_client(completion("   ")).complete("prompt")
        assert result.success is False
        assert result.error == "No translation received from OpenAI"

    def test_invalid_json(self, sleeps):
        result = make_client(FakeResponse(502, ValueError("no json"))).complete("prompt")
        assert result.success is False
        assert result.status_code == 502

    def test_timeout(self, sleeps):
        result = make_client(requests.Timeout("slow")).complete("prompt")
        assert result.success is False
        assert result.error == "Request timed out"

    def test_body_that_is_not_an_object(self, sleeps):
        result = make_client(FakeResponse(200, ["not", "an", "object"])).complete("prompt")
        assert result.success is False
        assert result.status_code == 200
        assert result.error == "Unexpected response body: list"


class TestTranslateGuards:
    """Input checks happen before any request."""

    def test_empty_text(self, sleeps):
        client = make_client()
        with pytest.raises(ValueError):
            client.translate("   ", "natural")
        assert client.session.requests == []

    def test_text_too_long(self, sleeps):
        client = make_client()
        with pytest.raises(ValueError):
            client.translate("x" * 5001, "natural")
        assert client.session.requests == []

    def test_missing_api_key(self, sleeps):
        client = make_client()
        client.api_key = ''
        with pytest.raises(ServiceConfigurationError):
            client.translate("Hola", "natural")
        assert client.session.requests == []


class TestTranslateRetries:
    """Retry and backoff behaviour."""

    def test_success_first_try(self, sleeps):
        client = make_client(completion("Hi there"))
        assert client.translate("Hola", "cute") == "Hi there"
        assert sleeps == []
        prompt = client.session.requests[0]['json']['messages'][0]['content']
        assert "cute, playful tone" in prompt

    def test_rate_limit_then_success(self, sleeps):
        client = make_client(api_error(429, 'rate_limit_exceeded'), completion("Hi"))
        assert client.translate("Hola") == "Hi"
        assert sleeps == [1.0]

    def test_rate_limit_exhausted(self, sleeps):
        client = make_client(*[api_error(429, 'rate_limit_exceeded')] * 3)
        with pytest.raises(UpstreamRateLimitError):
            client.translate("Hola")
        assert sleeps == [1.0, 2.0]
        assert len(client.session.requests) == 3

    def test_status_429_without_code_is_rate_limit(self, sleeps):
        client = make_client(*[FakeResponse(429, {})] * 3)
        with pytest.raises(UpstreamRateLimitError):
            client.translate("Hola")
        assert sleeps == [1.0, 2.0]

    def test_quota_is_not_retried(self, sleeps):
        client = make_client(api_error(429, 'insufficient_quota'))
        with pytest.raises(QuotaExceededError):
            client.translate("Hola")
        assert sleeps == []
        assert len(client.session.requests) == 1

    def test_invalid_key_is_not_retried(self, sleeps):
        client = make_client(api_error(401, 'invalid_api_key'))
        with pytest.raises(ServiceConfigurationError):
            client.translate("Hola")
        assert len(client.session.requests) == 1

    def test_unknown_model_is_not_retried(self, sleeps):
        client = make_client(api_error(404, 'model_not_found'))
        with pytest.raises(ModelUnavailableError):
            client.translate("Hola")
        assert len(client.session.requests) == 1

    def test_other_errors_use_linear_backoff(self, sleeps):
        client = make_client(*[api_error(500, 'server_error', 'boom')] * 3)
        with pytest.raises(TranslationServiceError) as excinfo:
            client.translate("Hola")
        assert str(excinfo.value) == "Translation failed after 3 attempts: boom"
        assert not isinstance(excinfo.value, UpstreamRateLimitError)
        assert sleeps == [1.0, 2.0]

    def test_transient_failure_recovers(self, sleeps):
        client = make_client(requests.ConnectionError("reset"), completion("Hi"))
        assert client.translate("Hola") == "Hi"
        assert sleeps == [1.0]

    def test_non_object_body_is_retried(self, sleeps):
        client = make_client(FakeResponse(200, "oops"), completion("Hi"))
        assert client.translate("Hola") == "Hi"
        assert sleeps == [1.0]
