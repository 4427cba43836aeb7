"""
Loading of client transport settings.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from gallery_v2.domain.models import ClientSettings

logger = logging.getLogger(__name__)


def load_client_settings(path: Optional[Path] = None) -> ClientSettings:
    """
    Load client settings from a JSON file, merging with defaults for any
    missing fields.

    A missing path or file yields the defaults. A file that cannot be parsed
    is logged and ignored.
    """
    if path is None:
        return ClientSettings()

    path = Path(path).expanduser()
    if not path.exists():
        logger.debug(f"Settings file not found, using defaults: {path}")
        return ClientSettings()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        settings = ClientSettings(**raw)
    except Exception as e:
        logger.warning(f"Failed to load settings from {path}, using defaults: {e}")
        settings = ClientSettings()

    return settings
