from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from config import BACKEND_URL

logger = logging.getLogger(__name__)

_session = requests.Session()


def is_configured(base_url: Optional[str] = None) -> bool:
    return bool(base_url or BACKEND_URL)


def push_namespace(key: str, value: Any, base_url: Optional[str] = None) -> bool:
    """
    Mirror one store namespace to the sync backend.

    Returns False (and logs) on any network or HTTP failure.
    """
    url = base_url or BACKEND_URL
    if not url:
        return False

    try:
        resp = _session.put(f"{url}/state/{key}", json={"data": value}, timeout=10)
        resp.raise_for_status()
        return True
    except requests.RequestException as exc:
        logger.warning("Could not mirror '%s' to backend: %s", key, exc)
        return False


def fetch_state(base_url: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Fetch every namespace from the backend if configured; otherwise return None."""
    url = base_url or BACKEND_URL
    if not url:
        return None

    try:
        resp = _session.get(f"{url}/state", timeout=10)
        resp.raise_for_status()
        payload = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Could not fetch state from backend: %s", exc)
        return None
    namespaces = payload.get("namespaces") if isinstance(payload, dict) else None
    return namespaces if isinstance(namespaces, dict) else None
