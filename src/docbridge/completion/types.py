"""Shared types for outbound completion requests.

Pydantic models validate what the request-assembly layer receives; the
CompletionResult dataclass is what callers get back.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field


class SourceSettings(BaseModel):
    """Which knowledge sources the assistant may draw on."""

    use_documents: bool = True
    use_knowledge_base: bool = True
    use_external_search: bool = False


class FunctionSpec(BaseModel):
    """A callable tool exposed to the model."""

    name: str
    description: str = ""
    parameters: dict[str, Any] | None = None


class CompletionRequest(BaseModel):
    """Parameters for one chat completion.

    Unset sampling fields fall back to the request builder's defaults
    (``gpt-4o-mini``, temperature 0.7, top_p 1, 2048 max tokens).
    """

    prompt: str
    model: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    instructions: str | None = None
    functions: list[FunctionSpec] = Field(default_factory=list)
    document_ids: list[str] = Field(default_factory=list)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    request_template: dict[str, Any] | None = None


@dataclass
class CompletionResult:
    """Result of a completion call.

    Attributes:
        success: Whether the provider returned a 2xx response.
        text: Assistant text, or the fallback apology when none was found.
        provider: Provider name used to parse the response.
        request_body: Body that was sent (for debugging).
        raw_response: Parsed JSON response body, if any.
        error: Error description if the call failed.
    """

    success: bool
    text: str = ""
    provider: str = ""
    request_body: dict | None = None
    raw_response: dict | None = None
    error: str | None = None


class ProviderAPIError(RuntimeError):
    """A provider returned a non-2xx response."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"API error ({status_code}): {message}")
        self.status_code = status_code
        self.message = message
