"""Request body assembly for chat completions.

Two paths produce the JSON body sent to the provider:

- **Custom template**: the configured template is filled with
  :func:`build_template_values` via ``format_template``.
- **Default**: an OpenAI-style chat body with a system message, an optional
  system message carrying document context, the user prompt, sampling
  parameters and function tools.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from docbridge.completion.template import format_template
from docbridge.completion.types import CompletionRequest, SourceSettings

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 1
DEFAULT_MAX_TOKENS = 2048
DEFAULT_INSTRUCTIONS = "You are a helpful assistant."

DOCUMENTS_ONLY_POLICY = (
    " Only use information found in the provided documents to answer questions."
    " If the information is not in the documents, say you don't have that"
    " information rather than using your general knowledge."
)
DOCUMENTS_FIRST_POLICY = (
    " Prioritize information from the provided documents when answering, but you"
    " can also use your built-in knowledge when necessary."
)
ALL_SOURCES_POLICY = (
    " Use information from provided documents, your knowledge base, and"
    " information from external searches to provide comprehensive answers."
)


class DocumentLike(Protocol):
    """Anything with a name and (possibly missing) extracted content."""

    name: str
    content: str | None


def build_system_instructions(instructions: str | None, sources: SourceSettings) -> str:
    """Compose the system message from user instructions and source policy."""
    content = instructions or DEFAULT_INSTRUCTIONS

    if sources.use_documents and not sources.use_knowledge_base and not sources.use_external_search:
        content += DOCUMENTS_ONLY_POLICY
    elif sources.use_documents and sources.use_knowledge_base and not sources.use_external_search:
        content += DOCUMENTS_FIRST_POLICY
    elif sources.use_documents and sources.use_knowledge_base and sources.use_external_search:
        content += ALL_SOURCES_POLICY

    return content


def build_document_context(documents: Iterable[DocumentLike]) -> str:
    """Concatenate document contents with name headers.

    Documents without content are left out. Returns an empty string when no
    document contributes.
    """
    blocks = [
        f"--- Document: {doc.name} ---\n{doc.content}\n\n"
        for doc in documents
        if doc.content is not None
    ]
    return "\n".join(blocks)


def build_template_values(request: CompletionRequest, system_content: str) -> dict[str, Any]:
    """Placeholder values available to custom request templates."""
    return {
        "model": request.model or DEFAULT_MODEL,
        "prompt": request.prompt,
        "instructions": system_content,
        "temperature": request.temperature if request.temperature is not None else DEFAULT_TEMPERATURE,
        "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
    }


def build_default_request_body(
    request: CompletionRequest,
    system_content: str,
    document_context: str = "",
) -> dict[str, Any]:
    """Build an OpenAI chat-completions body."""
    messages: list[dict[str, str]] = [{"role": "system", "content": system_content}]
    if document_context:
        messages.append(
            {
                "role": "system",
                "content": (
                    "Here are the relevant documents to use for answering the "
                    f"user's question:\n\n{document_context}"
                ),
            }
        )
    messages.append({"role": "user", "content": request.prompt})

    body: dict[str, Any] = {
        "model": request.model or DEFAULT_MODEL,
        "messages": messages,
        "temperature": request.temperature if request.temperature is not None else DEFAULT_TEMPERATURE,
        "top_p": request.top_p if request.top_p is not None else DEFAULT_TOP_P,
        "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
    }

    if request.functions:
        body["tools"] = [
            {
                "type": "function",
                "function": {
                    "name": func.name,
                    "description": func.description,
                    "parameters": func.parameters or {"type": "object", "properties": {}},
                },
            }
            for func in request.functions
        ]

    return body


def build_request_body(
    request: CompletionRequest,
    documents: Iterable[DocumentLike] = (),
) -> dict[str, Any]:
    """Build the outbound body, using the request's template when it has one.

    Document context is only attached on the default path; custom templates
    decide for themselves what to include through their placeholders.
    """
    system_content = build_system_instructions(request.instructions, request.sources)

    if request.request_template:
        logger.info("Using custom request template")
        values = build_template_values(request, system_content)
        return format_template(request.request_template, values)

    document_context = ""
    if request.sources.use_documents:
        document_context = build_document_context(documents)
    return build_default_request_body(request, system_content, document_context)
