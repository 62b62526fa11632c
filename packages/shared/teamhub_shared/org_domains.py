"""Organization subdomain helpers."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit


def subdomain_suffix(webapp_url: str) -> str:
    return urlsplit(webapp_url).hostname or ""


def get_org_full_origin(slug: Optional[str], website_url: str, *, protocol: bool = True) -> str:
    """Origin an organization is served from, e.g. ``https://acme.app.example.com``."""
    parts = urlsplit(website_url)
    if not slug:
        return website_url if protocol else f"{parts.netloc}{parts.path}".rstrip("/")
    prefix = f"{parts.scheme}://" if protocol else ""
    return f"{prefix}{slug}.{subdomain_suffix(website_url)}"


def get_org_slug(hostname: Optional[str], webapp_url: str) -> Optional[str]:
    """Extract the org slug from a request hostname, or None for the bare app host."""
    if not hostname:
        return None
    suffix = subdomain_suffix(webapp_url)
    if not suffix or not hostname.endswith(f".{suffix}"):
        return None
    slug = hostname[: -len(suffix) - 1]
    return slug or None
