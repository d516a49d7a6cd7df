"""
OpenAI API Client
=================
Client for the chat completions API, with tone prompts and retry/backoff.
"""
import json
import math
import time
import requests
from typing import Optional
from dataclasses import dataclass
from translation_assistant.config import config
from translation_assistant.config.constants import (
    TONE_PROMPTS,
    DEFAULT_TONE,
    TRANSLATION_REQUIREMENTS,
)
from translation_assistant.utils.logging import get_logger


class TranslationServiceError(Exception):
    """Translation could not be produced."""


class UpstreamRateLimitError(TranslationServiceError):
    """The upstream API kept rejecting requests with a rate limit."""


class QuotaExceededError(TranslationServiceError):
    """The upstream account has no quota left."""


class ServiceConfigurationError(TranslationServiceError):
    """Missing or rejected API key."""


class ModelUnavailableError(TranslationServiceError):
    """The configured model does not exist or cannot be used."""


@dataclass
class CompletionResponse:
    """Response from the chat completions API."""
    success: bool
    text: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    status_code: Optional[int] = None
    model: Optional[str] = None
    total_tokens: Optional[int] = None


def build_prompt(text: str, tone: str) -> str:
    """Build the translation prompt for a tone; unknown tones use the natural prompt."""
    header = TONE_PROMPTS.get(tone, TONE_PROMPTS[DEFAULT_TONE])
    return f"{header}\n\nText: {text}\n\n{TRANSLATION_REQUIREMENTS}"


def estimate_tokens(text: str) -> int:
    """Rough token estimate: about four characters per token."""
    return math.ceil(len(text) / 4)


class OpenAIClient:
    """Client for chat completions API interactions."""

    def __init__(self, api_key: str = None, base_url: str = None, model: str = None):
        self.api_key = api_key if api_key is not None else config.openai.api_key
        self.base_url = base_url or config.openai.base_url
        self.model = model or config.openai.model
        self.max_retries = config.translation.max_retries
        self.retry_delay = config.translation.retry_delay
        self.logger = get_logger().translation_logger

        # Retries are handled in translate(), not by the adapter
        self.session = requests.Session()
        adapter = requests.adapters.HTTPAdapter(
            pool_connections=10,
            pool_maxsize=10
        )
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

    @property
    def chat_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    def complete(self, prompt: str, model: str = None) -> CompletionResponse:
        """
        Send a single chat completion request.

        Args:
            prompt: The user message
            model: Model to use (defaults to configured model)

        Returns:
            CompletionResponse with the result or the classified error
        """
        model = model or self.model

        payload = {
            'model': model,
            'messages': [{'role': 'user', 'content': prompt}],
            'temperature': config.openai.temperature,
            'max_tokens': config.openai.max_tokens,
            'presence_penalty': config.openai.presence_penalty,
            'frequency_penalty': config.openai.frequency_penalty,
        }
        headers = {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
        }

        try:
            response = self.session.post(
                self.chat_url,
                json=payload,
                headers=headers,
                timeout=(config.openai.connect_timeout, config.openai.read_timeout)
            )
        except requests.Timeout:
            return CompletionResponse(success=False, error="Request timed out")
        except requests.RequestException as e:
            return CompletionResponse(success=False, error=str(e))

        try:
            result = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            return CompletionResponse(
                success=False,
                error=f"Invalid JSON response: {e}",
                status_code=response.status_code
            )

        if not isinstance(result, dict):
            return CompletionResponse(
                success=False,
                error=f"Unexpected response body: {type(result).__name__}",
                status_code=response.status_code,
                model=model
            )

        if response.status_code >= 400:
            error = result.get('error') or {}
            if not isinstance(error, dict):
                error = {'message': str(error)}
            return CompletionResponse(
                success=False,
                error=error.get('message') or f"HTTP {response.status_code}",
                error_code=error.get('code') or error.get('type'),
                status_code=response.status_code,
                model=model
            )

        choices = result.get('choices') or []
        message = choices[0].get('message', {}) if choices else {}
        text = (message.get('content') or '').strip()

        if not text:
            return CompletionResponse(
                success=False,
                error="No translation received from OpenAI",
                status_code=response.status_code,
                model=model
            )

        return CompletionResponse(
            success=True,
            text=text,
            status_code=response.status_code,
            model=model,
            total_tokens=(result.get('usage') or {}).get('total_tokens')
        )

    def translate(self, text: str, tone: str = DEFAULT_TONE) -> str:
        """
        Translate text into English with the given tone.

        Upstream rate limits are retried with exponential backoff, other
        transient failures with linear backoff. Quota, key and model
        problems are raised immediately.

        Raises:
            ValueError: if the text is empty or too long
            TranslationServiceError: if no translation could be produced
        """
        if not text or not text.strip():
            raise ValueError("Text to translate cannot be empty")

        max_length = config.translation.max_text_length
        if len(text) > max_length:
            raise ValueError(f"Text is too long. Maximum length is {max_length} characters.")

        if not self.api_key:
            raise ServiceConfigurationError("OpenAI API key is not configured")

        prompt = build_prompt(text, tone)
        last_error = "unknown error"

        for attempt in range(1, self.max_retries + 1):
            self.logger.info(
                f"Translation attempt {attempt}/{self.max_retries} "
                f"(length={len(text)}, tone={tone}, ~{estimate_tokens(prompt)} prompt tokens)"
            )

            result = self.complete(prompt)

            if result.success:
                self.logger.info(
                    f"Translation successful (original={len(text)}, "
                    f"translated={len(result.text)}, tone={tone}, "
                    f"tokens={result.total_tokens or 0})"
                )
                return result.text

            last_error = result.error
            self.logger.error(f"Translation attempt {attempt} failed: {last_error}")

            code = result.error_code or ''

            if code == 'rate_limit_exceeded' or (result.status_code == 429 and code != 'insufficient_quota'):
                if attempt == self.max_retries:
                    break
                delay = self.retry_delay * (2 ** (attempt - 1))
                self.logger.warning(f"Rate limit exceeded, waiting {delay:.1f}s before retry")
                time.sleep(delay)
                continue

            if code == 'insufficient_quota':
                raise QuotaExceededError("OpenAI API quota exceeded. Please try again later.")

            if code == 'invalid_api_key' or result.status_code == 401:
                raise ServiceConfigurationError("Invalid OpenAI API key configuration.")

            if code == 'model_not_found':
                raise ModelUnavailableError("Translation model is currently unavailable.")

            if attempt == self.max_retries:
                raise TranslationServiceError(
                    f"Translation failed after {self.max_retries} attempts: {last_error}"
                )

            time.sleep(self.retry_delay * attempt)

        raise UpstreamRateLimitError(
            f"Upstream rate limit exceeded after {self.max_retries} attempts: {last_error}"
        )


# Global client instance
_client_instance: Optional[OpenAIClient] = None


def get_openai_client() -> OpenAIClient:
    """Get or create the global OpenAI client instance."""
    global _client_instance
    if _client_instance is None:
        _client_instance = OpenAIClient()
    return _client_instance
