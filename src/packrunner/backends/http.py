"""Backend posting prompts to the document QA HTTP service."""
from __future__ import annotations

import logging
import time
from typing import Any, Optional

import httpx

from .base import QueryBackend, QueryError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class HttpQueryBackend(QueryBackend):
    """Sends ``{itb_id, method, query}`` to the QA endpoint and returns its text answer."""

    name = "http"

    def __init__(
        self,
        endpoint: str,
        *,
        method: str = "basic",
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = 0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._endpoint = endpoint
        self._method = method
        self._retries = max(0, retries)
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def preflight(self) -> None:
        try:
            url = httpx.URL(self._endpoint)
        except (httpx.InvalidURL, TypeError) as exc:
            raise QueryError(f"invalid QA endpoint {self._endpoint!r}: {exc}") from exc
        if url.scheme not in {"http", "https"} or not url.host:
            raise QueryError(f"QA endpoint must be an http(s) URL, got {self._endpoint!r}")

    def query(self, project_id: str, prompt: str) -> str:
        payload = {"itb_id": project_id, "method": self._method, "query": prompt}
        response = self._post(payload)
        if response.status_code >= 400:
            raise QueryError(f"QA service error: {response.status_code} {response.reason_phrase}")
        try:
            data = response.json()
        except ValueError as exc:
            raise QueryError("QA service returned a non-JSON body") from exc
        return _answer_text(data)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _post(self, payload: dict) -> httpx.Response:
        attempts = self._retries + 1
        last_error: Optional[Exception] = None
        for attempt in range(attempts):
            try:
                return self._client.post(self._endpoint, json=payload)
            except httpx.TimeoutException as exc:
                logger.warning("QA request timed out (attempt %s/%s)", attempt + 1, attempts)
                last_error = exc
            except httpx.TransportError as exc:
                logger.warning("QA request failed (attempt %s/%s): %s", attempt + 1, attempts, exc)
                last_error = exc
            if attempt + 1 < attempts:
                time.sleep(0.5)
        raise QueryError(f"QA service unreachable: {last_error}") from last_error


def _answer_text(data: Any) -> str:
    if not isinstance(data, dict):
        raise QueryError("QA service returned an unexpected payload")
    text = data.get("response") or data.get("answer") or ""
    if not isinstance(text, str):
        raise QueryError("QA service answer is not text")
    if not text.strip():
        raise QueryError("QA service returned an empty answer")
    return text
