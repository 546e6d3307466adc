"""Chat completion orchestration against a configurable provider.

Builds the request body (custom template or default chat format), sends it
with the retrying httpx client, and parses the provider-specific response.
Provider and network failures are returned as a failed CompletionResult,
never raised.

Public API:
    create_completion(request, settings, documents=None, client=None,
                      session=None) -> CompletionResult
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import httpx
from sqlalchemy.orm import Session
from tenacity.wait import wait_base

from docbridge.completion.client import send_completion_request
from docbridge.completion.providers import (
    DEFAULT_REQUEST_TEMPLATES,
    FALLBACK_RESPONSE_TEXT,
    ProviderResponseShape,
    extract_response_text,
    response_text_or_fallback,
    templates_for_provider,
)
from docbridge.completion.request import DocumentLike, build_request_body
from docbridge.completion.template import format_template
from docbridge.completion.types import (
    CompletionRequest,
    CompletionResult,
    FunctionSpec,
    ProviderAPIError,
    SourceSettings,
)
from docbridge.config.settings import ProviderSettings
from docbridge.db.state import get_documents_by_ids

logger = logging.getLogger(__name__)

__all__ = [
    "CompletionRequest",
    "CompletionResult",
    "DEFAULT_REQUEST_TEMPLATES",
    "FunctionSpec",
    "ProviderAPIError",
    "ProviderResponseShape",
    "SourceSettings",
    "build_request_body",
    "create_completion",
    "extract_response_text",
    "format_template",
    "templates_for_provider",
]


def _load_request_documents(
    request: CompletionRequest, session: Session | None
) -> list[DocumentLike]:
    """Fetch the request's documents when document sources are enabled."""
    if not request.sources.use_documents or not request.document_ids:
        return []
    if session is None:
        logger.warning(
            "Request names %d documents but no document store is available",
            len(request.document_ids),
        )
        return []
    documents = get_documents_by_ids(session, request.document_ids)
    logger.info(
        "Using %d of %d requested documents as context",
        len(documents),
        len(request.document_ids),
    )
    return documents


def create_completion(
    request: CompletionRequest,
    settings: ProviderSettings,
    documents: Iterable[DocumentLike] | None = None,
    client: httpx.Client | None = None,
    wait: wait_base | None = None,
    session: Session | None = None,
) -> CompletionResult:
    """Run one chat completion.

    Request fields take precedence over settings: ``request.model`` over
    ``settings.model`` and ``request.request_template`` over
    ``settings.request_template``.

    Args:
        request: Prompt and sampling parameters.
        settings: Provider endpoint, key, template and client behaviour.
        documents: Documents whose content is offered as context. When
            omitted, ``request.document_ids`` are looked up through *session*.
        client: Optional httpx client; one is created (and closed) per call
            when omitted.
        wait: tenacity wait strategy override for retries.
        session: Document store session used to resolve
            ``request.document_ids``.

    Returns:
        CompletionResult with the assistant text on success, or with
        success=False and an error description on failure.
    """
    provider = settings.provider

    if not settings.api_key:
        logger.error("No API key configured for provider %s", provider)
        return CompletionResult(
            success=False,
            text=FALLBACK_RESPONSE_TEXT,
            provider=provider,
            error="API key is not set",
        )

    effective = request.model_copy(
        update={
            "model": request.model or settings.model,
            "request_template": request.request_template or settings.request_template,
        }
    )
    if documents is None:
        documents = _load_request_documents(effective, session)
    body = build_request_body(effective, documents)
    logger.info(
        "Completion request: provider=%s, model=%s, custom_template=%s",
        provider,
        effective.model,
        effective.request_template is not None,
    )

    try:
        if client is None:
            with httpx.Client(timeout=settings.timeout_seconds) as owned_client:
                payload = send_completion_request(
                    owned_client, settings.api_endpoint, settings.api_key, body,
                    max_retries=settings.max_retries, wait=wait,
                )
        else:
            payload = send_completion_request(
                client, settings.api_endpoint, settings.api_key, body,
                max_retries=settings.max_retries, wait=wait,
            )
    except ProviderAPIError as e:
        logger.warning("Provider %s returned an error: %s", provider, e)
        return CompletionResult(
            success=False,
            text=FALLBACK_RESPONSE_TEXT,
            provider=provider,
            request_body=body,
            error=str(e),
        )
    except httpx.HTTPError as e:
        logger.warning("Request to provider %s failed: %s", provider, e)
        return CompletionResult(
            success=False,
            text=FALLBACK_RESPONSE_TEXT,
            provider=provider,
            request_body=body,
            error=f"request failed: {e}",
        )

    return CompletionResult(
        success=True,
        text=response_text_or_fallback(provider, payload),
        provider=provider,
        request_body=body,
        raw_response=payload,
    )
