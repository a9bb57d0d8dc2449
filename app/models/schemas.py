"""
Pydantic models for mara-sync.

Wire models for the OpenAI-compatible chat-completions API used by the
chat processor.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


# =====================================================
# Request Models
# =====================================================

class ChatMessage(BaseModel):
    """Single message sent to the chat-completions API."""
    role: str  # user, assistant
    content: str


class ChatCompletionRequest(BaseModel):
    """Chat-completions request body."""
    model: str
    messages: List[ChatMessage]
    temperature: float = 1.0


# =====================================================
# Response Models
# =====================================================

class ChoiceMessage(BaseModel):
    """Message returned inside a completion choice."""
    role: Optional[str] = None
    content: Optional[str] = None


class CompletionChoice(BaseModel):
    """One completion choice (chat or legacy text format)."""
    message: Optional[ChoiceMessage] = None
    text: Optional[str] = None


class ApiError(BaseModel):
    """Error payload returned by the API."""
    message: str
    type: Optional[str] = None


class ChatCompletionResponse(BaseModel):
    """Chat-completions response body."""
    choices: List[CompletionChoice] = Field(default_factory=list)
    error: Optional[ApiError] = None

    def first_content(self) -> Optional[str]:
        """Content of the first choice, preferring the chat message over legacy text."""
        if not self.choices:
            return None
        choice = self.choices[0]
        if choice.message is not None and choice.message.content is not None:
            return choice.message.content
        return choice.text
