"""Provider request templates and response-shape parsing.

Each supported provider has a built-in request template (placeholders
``{model}``, ``{prompt}``, ``{instructions}``) and a known response shape.
Response parsing is table-driven: every ``ProviderResponseShape`` maps to an
ordered tuple of key paths, and the first path that resolves to a non-empty
string wins.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE_TEXT = "I'm sorry, I couldn't process your request at this time."


@dataclass(frozen=True)
class RequestTemplate:
    """A named, provider-specific request body template."""

    provider: str
    name: str
    description: str
    template: dict[str, Any]


def _chat_messages_template() -> dict[str, Any]:
    return {
        "model": "{model}",
        "messages": [
            {"role": "system", "content": "{instructions}"},
            {"role": "user", "content": "{prompt}"},
        ],
        "temperature": 0.7,
        "max_tokens": 2048,
    }


DEFAULT_REQUEST_TEMPLATES: tuple[RequestTemplate, ...] = (
    RequestTemplate(
        provider="OpenAI",
        name="OpenAI Chat Completion",
        description="Standard format for OpenAI chat models (GPT-3.5, GPT-4)",
        template=_chat_messages_template(),
    ),
    RequestTemplate(
        provider="Anthropic",
        name="Anthropic Claude",
        description="Format for Anthropic Claude models",
        template=_chat_messages_template(),
    ),
    RequestTemplate(
        provider="Google",
        name="Google Gemini",
        description="Format for Google Gemini models",
        template={
            "model": "{model}",
            "contents": [{"role": "user", "parts": [{"text": "{prompt}"}]}],
            "generationConfig": {
                "temperature": 0.7,
                "maxOutputTokens": 2048,
                "topP": 0.95,
            },
            "systemInstruction": {"parts": [{"text": "{instructions}"}]},
        },
    ),
    RequestTemplate(
        provider="Cohere",
        name="Cohere Chat",
        description="Format for Cohere chat models",
        template={
            "model": "{model}",
            "message": "{prompt}",
            "preamble": "{instructions}",
            "temperature": 0.7,
            "max_tokens": 2048,
        },
    ),
)


def templates_for_provider(provider: str) -> list[RequestTemplate]:
    """Return the built-in templates offered for *provider*.

    ``Custom`` endpoints may start from any of them.

    Each returned template owns a deep copy of its body, so callers may
    edit it without touching the built-in defaults.
    """
    return [
        replace(t, template=copy.deepcopy(t.template))
        for t in DEFAULT_REQUEST_TEMPLATES
        if provider == "Custom" or t.provider == provider
    ]


class ProviderResponseShape(Enum):
    """Known response body layouts."""

    OPENAI = "OpenAI"
    ANTHROPIC = "Anthropic"
    GOOGLE = "Google"
    COHERE = "Cohere"
    CUSTOM = "Custom"
    GENERIC = "generic"


# A key path is a sequence of dict keys / list indexes
KeyPath = tuple[str | int, ...]

_OPENAI_PATH: KeyPath = ("choices", 0, "message", "content")
_ANTHROPIC_PATH: KeyPath = ("content", 0, "text")
_GOOGLE_PATH: KeyPath = ("candidates", 0, "content", "parts", 0, "text")
_TEXT_PATH: KeyPath = ("text",)

RESPONSE_PATHS: dict[ProviderResponseShape, tuple[KeyPath, ...]] = {
    ProviderResponseShape.OPENAI: (_OPENAI_PATH,),
    ProviderResponseShape.ANTHROPIC: (_ANTHROPIC_PATH,),
    ProviderResponseShape.GOOGLE: (_GOOGLE_PATH,),
    ProviderResponseShape.COHERE: (_TEXT_PATH,),
    ProviderResponseShape.CUSTOM: (
        _OPENAI_PATH,
        _ANTHROPIC_PATH,
        _TEXT_PATH,
        ("response",),
        ("output",),
        ("result",),
        ("answer",),
    ),
    ProviderResponseShape.GENERIC: (
        _OPENAI_PATH,
        _ANTHROPIC_PATH,
        _TEXT_PATH,
        ("response",),
    ),
}


def shape_for_provider(provider: str | None) -> ProviderResponseShape:
    """Map a provider name to its response shape; unknown names are GENERIC."""
    try:
        return ProviderResponseShape(provider)
    except ValueError:
        return ProviderResponseShape.GENERIC


def _resolve(payload: Any, path: KeyPath) -> Any:
    node = payload
    for key in path:
        if isinstance(key, int):
            if not isinstance(node, list) or len(node) <= key:
                return None
        elif not isinstance(node, dict):
            return None
        node = node[key] if isinstance(key, int) else node.get(key)
        if node is None:
            return None
    return node


def extract_response_text(provider: str | None, payload: Any) -> str | None:
    """Pull the assistant text out of a provider response body.

    Args:
        provider: Provider name (``OpenAI``, ``Anthropic``, ``Google``,
            ``Cohere``, ``Custom``; anything else is parsed generically).
        payload: Decoded JSON response body.

    Returns:
        The first non-empty string found along the shape's key paths, or
        None if none matched.
    """
    shape = shape_for_provider(provider)
    for path in RESPONSE_PATHS[shape]:
        value = _resolve(payload, path)
        if isinstance(value, str) and value:
            return value
    logger.warning("No response text found for provider %s (shape %s)", provider, shape.name)
    return None


def response_text_or_fallback(provider: str | None, payload: Any) -> str:
    return extract_response_text(provider, payload) or FALLBACK_RESPONSE_TEXT
