"""URL normalization and content hashes shared by record adapters."""

from __future__ import annotations


def normalize_url(url: str) -> str:
    """Normalize *url* so the same link from different sources compares equal.

    Browsers follow redirects and may store a trailing slash the source
    never had, so the trailing slash is dropped.  Backslashes and slashes
    are escaped so the result is safe to use as a path-like key.
    """
    normalized = url.strip()
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    normalized = normalized.replace("\\", "\\\\")
    return normalized.replace("/", "\\/")


def content_hash(is_folder: bool, name: str, url: str | None, nonce: str) -> str:
    """Folders hash their name, bookmarks their normalized URL.

    *nonce* is returned when there is nothing to hash; it must be unique
    per record.
    """
    if is_folder:
        content = name
    else:
        content = normalize_url(url or "")
    return content or nonce
