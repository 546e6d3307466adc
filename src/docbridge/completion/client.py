"""httpx-based client for provider chat-completion endpoints.

Transient failures (timeouts, connection errors, 429 and 5xx responses) are
retried with random exponential backoff via tenacity. Any other non-2xx
response raises :class:`ProviderAPIError` immediately, carrying the
provider's own error message when the body has one.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)
from tenacity.wait import wait_base

from docbridge.completion.types import ProviderAPIError

logger = logging.getLogger(__name__)


class RetryableStatusError(ProviderAPIError):
    """A 429 or 5xx response worth retrying."""


_RETRYABLE = (RetryableStatusError, httpx.TimeoutException, httpx.ConnectError)


def _error_message(response: httpx.Response, data: Any) -> str:
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return response.reason_phrase or f"HTTP {response.status_code}"


def _post_once(
    client: httpx.Client,
    endpoint: str,
    headers: dict[str, str],
    body: Any,
) -> dict[str, Any]:
    response = client.post(endpoint, headers=headers, json=body)

    try:
        data = response.json()
    except ValueError:
        data = None

    if response.status_code == 429 or response.status_code >= 500:
        raise RetryableStatusError(response.status_code, _error_message(response, data))
    if not response.is_success:
        raise ProviderAPIError(response.status_code, _error_message(response, data))
    if not isinstance(data, dict):
        raise ProviderAPIError(response.status_code, "response body is not a JSON object")

    logger.debug("Provider responded %d (%d bytes)", response.status_code, len(response.content))
    return data


def send_completion_request(
    client: httpx.Client,
    endpoint: str,
    api_key: str,
    body: Any,
    max_retries: int = 3,
    wait: wait_base | None = None,
) -> dict[str, Any]:
    """POST *body* to *endpoint* and return the decoded JSON response.

    Args:
        client: Open httpx client (timeouts are configured on it).
        endpoint: Full provider URL.
        api_key: Sent as a bearer token; never logged.
        body: JSON-serializable request body.
        max_retries: Total attempts for transient failures.
        wait: tenacity wait strategy; random exponential backoff by default.

    Raises:
        ProviderAPIError: Non-2xx response (after retries for 429/5xx).
        httpx.TimeoutException, httpx.ConnectError: After retries.
    """
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }
    retrying = Retrying(
        stop=stop_after_attempt(max_retries),
        wait=wait or wait_random_exponential(multiplier=1, min=2, max=30),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        retry=retry_if_exception_type(_RETRYABLE),
        reraise=True,
    )
    logger.info("Sending completion request to %s", endpoint)
    return retrying(_post_once, client, endpoint, headers, body)
