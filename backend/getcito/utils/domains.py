"""
Domain helpers shared by descriptors and citation extraction
"""

from typing import Optional
from urllib.parse import urlparse


def domain_from_url(url: Optional[str]) -> Optional[str]:
    """
    Extract the host of an http(s) URL, lowercased, without "www." or port.

    Returns None when the URL cannot be parsed into a host.
    """
    if not url or not isinstance(url, str):
        return None

    try:
        parsed = urlparse(url.strip())
        host = parsed.hostname
    except ValueError:
        return None

    if parsed.scheme not in ("http", "https") or not host:
        return None

    if host.startswith("www."):
        host = host[4:]

    return host or None


def normalize_domain(value: Optional[str]) -> Optional[str]:
    """Normalize a user-entered domain or website ("https://www.Acme.com/") to "acme.com" """
    if not value:
        return None

    value = value.strip().lower()
    if not value:
        return None
    if "://" not in value:
        value = f"https://{value}"

    return domain_from_url(value)
