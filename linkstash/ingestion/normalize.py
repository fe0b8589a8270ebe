"""URL normalization used as the deduplication key."""

from urllib.parse import SplitResult, urlsplit

DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
    "ftp": 21,
}


def _strict_split(value: str) -> SplitResult:
    """Parse a URL, raising ValueError unless it has a scheme and a host."""
    parts = urlsplit(value)
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"Not an absolute URL: {value!r}")
    # Accessing .port validates it
    parts.port
    return parts


def _origin(parts: SplitResult) -> str:
    scheme = parts.scheme.lower()
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"
    return f"{scheme}://{host}"


def normalize_url(value: str) -> str:
    """
    Canonicalize a URL for equality comparison.

    Keeps origin, path without trailing slashes, and the query string.
    The fragment and credentials are dropped. Strings that do not parse
    as absolute URLs only lose their trailing slashes. Never raises.
    """
    try:
        parts = _strict_split(value)
    except ValueError:
        return value.rstrip("/")

    path = parts.path.rstrip("/") or "/"
    search = f"?{parts.query}" if parts.query else ""
    return _origin(parts) + path + search


def parse_domain(url: str) -> str:
    """Hostname of url; raises ValueError when there is none."""
    hostname = urlsplit(url).hostname
    if not hostname:
        raise ValueError(f"Cannot parse hostname from {url!r}")
    return hostname


def is_valid_submission_url(url: str) -> bool:
    """Whether url is absolute enough to forward to the scraper."""
    try:
        _strict_split(url.strip())
    except ValueError:
        return False
    return True
