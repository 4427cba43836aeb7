"""
Single-request execution against a catalog service.
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from gallery_v2.core.dependencies import get_http_client
from gallery_v2.domain.models import QueryResult

logger = logging.getLogger(__name__)

TRANSPORT_ERROR_PREFIX = "Error occurred while trying to retrieve response: "


class RequestExecutor:
    """
    Performs exactly one GET per call and reports transport failures as a
    failed ``QueryResult`` instead of raising.

    Any response that completes the transport is a success, whatever its
    status code. There are no retries and no response caching.
    """

    def __init__(self, client: Optional[httpx.Client] = None):
        # None means the process-wide shared client
        self._client = client

    @property
    def client(self) -> httpx.Client:
        return self._client if self._client is not None else get_http_client()

    def execute(self, url: str) -> QueryResult:
        logger.debug(f"GET {url}")
        try:
            response = self.client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            reason = str(e) or e.__class__.__name__
            logger.error(f"Request to {url} failed: {reason}")
            return QueryResult.failure(TRANSPORT_ERROR_PREFIX + reason)

        body = response.text
        logger.debug(f"Received {len(body)} characters (HTTP {response.status_code}) from {url}")
        return QueryResult.success(body)
