"""
Translation Assistant - Services
"""
from translation_assistant.services.openai_client import (
    OpenAIClient,
    CompletionResponse,
    TranslationServiceError,
    UpstreamRateLimitError,
    QuotaExceededError,
    ServiceConfigurationError,
    ModelUnavailableError,
    get_openai_client,
)
from translation_assistant.services.auth_service import (
    AuthService,
    AccountError,
    DuplicateAccountError,
    InvalidCredentialsError,
    UserNotFoundError,
    issue_token,
    decode_token,
)
from translation_assistant.services.translation_service import (
    TranslationService,
    TagLimitError,
    OwnershipError,
)

__all__ = [
    "OpenAIClient",
    "CompletionResponse",
    "TranslationServiceError",
    "UpstreamRateLimitError",
    "QuotaExceededError",
    "ServiceConfigurationError",
    "ModelUnavailableError",
    "get_openai_client",
    "AuthService",
    "AccountError",
    "DuplicateAccountError",
    "InvalidCredentialsError",
    "UserNotFoundError",
    "issue_token",
    "decode_token",
    "TranslationService",
    "TagLimitError",
    "OwnershipError",
]
