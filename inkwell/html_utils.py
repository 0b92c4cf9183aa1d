"""HTML and URL helpers for Inkwell.

Functions:
    escape_html: Escape special HTML characters in a string.
    join_root_url: Join a base URL with a path.
    url_to_output_path: Map a site URL to the file that serves it.
"""

from __future__ import annotations

from pathlib import PurePosixPath


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Examples:
        >>> escape_html('<script>alert("XSS")</script>')
        '&lt;script&gt;alert(&quot;XSS&quot;)&lt;/script&gt;'

        >>> escape_html('Tom & Jerry')
        'Tom &amp; Jerry'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Examples:
        >>> join_root_url('https://example.com', '/about/')
        'https://example.com/about/'

        >>> join_root_url('https://example.com/', 'about/')
        'https://example.com/about/'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def url_to_output_path(url: str) -> str:
    """Map a directory-style site URL to its ``index.html`` file.

    Examples:
        >>> url_to_output_path("/")
        'index.html'

        >>> url_to_output_path("/posts/mro/")
        'posts/mro/index.html'
    """
    stripped = url.strip("/")
    if not stripped:
        return "index.html"
    return str(PurePosixPath(stripped) / "index.html")
