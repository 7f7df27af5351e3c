"""
Utility helpers shared across routers/services.
"""

from typing import Mapping, Optional
from urllib.parse import urlencode

from .config import get_settings


def absolute_url(path: str, params: Optional[Mapping[str, str]] = None, base: Optional[str] = None) -> str:
    """
    Build an absolute frontend URL from PUBLIC_BASE_URL, appending query params.
    """
    settings = get_settings()
    base_url = (base or settings.public_base_url).rstrip("/")
    if not path:
        url = base_url + "/"
    elif path.startswith("http://") or path.startswith("https://"):
        url = path
    else:
        url = base_url + (path if path.startswith("/") else "/" + path)
    query = {k: v for k, v in (params or {}).items() if v}
    if query:
        url = f"{url}?{urlencode(query)}"
    return url


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()
