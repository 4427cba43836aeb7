from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

import httpx

from gallery_v2.core.config import load_client_settings
from gallery_v2.domain.models import ClientSettings

logger = logging.getLogger(__name__)

_client_settings: Optional[ClientSettings] = None
_http_client: Optional[httpx.Client] = None
_lock = threading.Lock()


def create_http_client(settings: Optional[ClientSettings] = None) -> httpx.Client:
    """
    Build a pooled HTTP client from the given settings.

    The caller owns the returned client and must close it.
    """
    settings = settings or ClientSettings()
    return httpx.Client(
        timeout=settings.timeout,
        follow_redirects=settings.follow_redirects,
        headers={"User-Agent": settings.user_agent},
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
        ),
    )


def get_client_settings(path: Optional[Path] = None) -> ClientSettings:
    """
    Return the process-wide settings, loading them on first use.

    ``path`` names a JSON settings file read by that first call; later calls
    return the loaded settings until ``set_client_settings`` replaces them.
    """
    global _client_settings
    if _client_settings is None:
        _client_settings = load_client_settings(path)
    return _client_settings


def set_client_settings(settings: ClientSettings) -> None:
    """
    Replace the process-wide settings. Takes effect for the next shared client.
    """
    global _client_settings
    _client_settings = settings


def get_http_client() -> httpx.Client:
    """
    Return the process-wide shared client, creating it on first use.
    """
    global _http_client
    with _lock:
        if _http_client is None or _http_client.is_closed:
            _http_client = create_http_client(get_client_settings())
            logger.debug("Created shared HTTP client")
        return _http_client


def close_http_client() -> None:
    global _http_client
    with _lock:
        if _http_client is not None:
            _http_client.close()
            logger.debug("Closed shared HTTP client")
        _http_client = None
