from typing import Optional
from urllib.parse import urlsplit, urlunsplit


def redact_url(url: Optional[str]) -> str:
    """Hide credentials embedded in a URL before it reaches the logs."""
    if not url:
        return "<empty>"
    parts = urlsplit(url)
    if not parts.password and not parts.username:
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, f"****@{host}", parts.path, parts.query, parts.fragment))
