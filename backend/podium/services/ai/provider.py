"""
Feedback provider interface and the HTTP implementation.

The orchestrator only knows ``FeedbackProvider.analyze(payload) -> text``.
Anything that goes wrong while talking to the remote model surfaces as
``AIProviderError`` so callers have a single exception to collapse on.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import requests

from podium.errors import AIProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptPayload:
    """One request to the feedback model."""
    prompt: str
    system: Optional[str] = None
    max_tokens: int = 400
    temperature: float = 0.3


class FeedbackProvider(ABC):

    @abstractmethod
    def analyze(self, payload: PromptPayload) -> str:
        """Return the model's raw text, or raise AIProviderError."""


class UnavailableProvider(FeedbackProvider):
    """Stand-in used when no provider is configured; every call fails."""

    def __init__(self, reason: str = 'feedback provider not configured'):
        self.reason = reason

    def analyze(self, payload: PromptPayload) -> str:
        raise AIProviderError(self.reason)


class OpenAIChatProvider(FeedbackProvider):
    """Client for an OpenAI-compatible ``/chat/completions`` endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = 'gpt-4',
        base_url: str = 'https://api.openai.com/v1',
        timeout: float = 30,
        max_tokens: Optional[int] = None,
        http: Optional[requests.Session] = None,
    ):
        """
        Args:
            api_key: Bearer token for the endpoint
            model: Model name sent with every request
            base_url: API root, without trailing slash
            timeout: Per-request timeout in seconds
            max_tokens: Upper bound applied on top of each payload's own limit
            http: Optional pre-configured requests session
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.http = http or requests.Session()
        logger.info(f"Feedback provider initialized: {self.base_url}, model={self.model}")

    def analyze(self, payload: PromptPayload) -> str:
        messages = []
        if payload.system:
            messages.append({'role': 'system', 'content': payload.system})
        messages.append({'role': 'user', 'content': payload.prompt})
        max_tokens = payload.max_tokens
        if self.max_tokens:
            max_tokens = min(max_tokens, self.max_tokens)

        try:
            response = self.http.post(
                f"{self.base_url}/chat/completions",
                headers={'Authorization': f"Bearer {self.api_key}"},
                json={
                    'model': self.model,
                    'messages': messages,
                    'max_tokens': max_tokens,
                    'temperature': payload.temperature,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            raise AIProviderError(f"feedback provider request failed: {exc}") from exc
        except ValueError as exc:
            raise AIProviderError('feedback provider returned a non-JSON body') from exc

        try:
            content = body['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError) as exc:
            raise AIProviderError('feedback provider response had no message content') from exc
        if not isinstance(content, str):
            raise AIProviderError('feedback provider message content was not text')
        return content


def provider_from_config(config) -> FeedbackProvider:
    api_key = config.get('OPENAI_API_KEY')
    if not api_key:
        logger.warning('OPENAI_API_KEY not set; AI analysis will use default results')
        return UnavailableProvider()
    return OpenAIChatProvider(
        api_key=api_key,
        model=config.get('OPENAI_MODEL', 'gpt-4'),
        base_url=config.get('OPENAI_BASE_URL', 'https://api.openai.com/v1'),
        timeout=float(config.get('AI_REQUEST_TIMEOUT_SEC', 30)),
        max_tokens=int(config.get('OPENAI_MAX_TOKENS', 1000)),
    )
