"""
Text generation using an OpenAI-compatible chat-completions API.

Provides:
- Transcript to chat-message conversion
- Synchronous completion requests via httpx
- Error reporting through TextGenerationError
"""

from typing import List, Optional, Sequence, Tuple
import httpx
from loguru import logger
from pydantic import ValidationError

from app.models.schemas import ChatCompletionRequest, ChatCompletionResponse, ChatMessage
from app.utils.config import get_settings

USER_SPEAKER = "User"


class TextGenerationError(Exception):
    """Raised when the remote text generation request fails."""


class TextGenerationClient:
    """Client for generating chat replies."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize text generation client."""
        settings = get_settings()
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.openai_model
        self.base_url = (base_url or settings.openai_url).rstrip("/")
        self.temperature = settings.openai_temperature if temperature is None else temperature
        self.timeout = timeout or settings.request_timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def to_chat_messages(messages: Sequence[Tuple[str, str]]) -> List[ChatMessage]:
        """Map ``(speaker, text)`` pairs to chat roles: the user speaker is ``user``, everyone else ``assistant``."""
        return [
            ChatMessage(role="user" if speaker == USER_SPEAKER else "assistant", content=text)
            for speaker, text in messages
        ]

    def generate(self, messages: Sequence[Tuple[str, str]]) -> str:
        """
        Generate a reply for a transcript.

        Args:
            messages: Ordered ``(speaker, text)`` pairs

        Returns:
            Generated reply text

        Raises:
            TextGenerationError: If the client is not configured, the request
                fails or the response carries no content
        """
        if not self.api_key:
            raise TextGenerationError("OPENAI_API_KEY is not configured")

        request = ChatCompletionRequest(
            model=self.model,
            messages=self.to_chat_messages(messages),
            temperature=self.temperature,
        )

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    f"{self.base_url}/chat/completions",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=request.model_dump(),
                )
        except httpx.HTTPError as e:
            raise TextGenerationError(f"Request failed: {e}") from e

        try:
            data = ChatCompletionResponse.model_validate_json(response.text)
        except ValidationError as e:
            raise TextGenerationError(
                f"Failed to parse response: {e} - Response: {response.text[:200]}"
            ) from e

        if data.error is not None:
            raise TextGenerationError(f"OpenAI API error: {data.error.message}")

        content = data.first_content()
        if content is None:
            raise TextGenerationError(f"No response content. Status: {response.status_code}")

        logger.debug(f"Generated reply with {len(content)} characters using {self.model}")
        return content


# Global client instance
_text_generation_client: Optional[TextGenerationClient] = None


def get_text_generation_client() -> TextGenerationClient:
    """Get global text generation client instance."""
    global _text_generation_client
    if _text_generation_client is None:
        _text_generation_client = TextGenerationClient()
    return _text_generation_client
