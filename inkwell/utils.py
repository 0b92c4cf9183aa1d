"""Utility functions for Inkwell.

String and path helpers shared by the loader, the renderer and the build.

Key functions:
    slugify: Convert names and tags to URL slugs.
    strip_date_prefix: Drop a leading YYYY-MM-DD- from a filename stem.
    is_markdown: Check if a path is a Markdown file.
    is_hidden: Check if a path has a component starting with _ or .
    replace_dir: Swap a freshly built directory into place.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path

_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}-")


def strip_date_prefix(name: str) -> str:
    """Remove a leading ``YYYY-MM-DD-`` prefix from a filename stem.

    Examples:
        >>> strip_date_prefix("2024-09-21-gunicorn-timeouts")
        'gunicorn-timeouts'

        >>> strip_date_prefix("metaclasses")
        'metaclasses'
    """
    return _DATE_PREFIX_RE.sub("", name, count=1)


def slugify(name: str) -> str:
    """Convert a name to a lowercase URL slug.

    Non-alphanumeric runs collapse to a single hyphen.

    Args:
        name: Filename stem, tag or explicit slug.

    Returns:
        URL-friendly slug, or an empty string if nothing usable remains.

    Examples:
        >>> slugify("Method Resolution Order")
        'method-resolution-order'

        >>> slugify("asyncio/internals")
        'asyncio-internals'
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", name)
    return cleaned.strip("-").lower()


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() == ".md"


def is_hidden(path: Path) -> bool:
    """Check if any path component starts with ``_`` or ``.``.

    Args:
        path: Path relative to the source directory.

    Returns:
        True if the path should be skipped during discovery.
    """
    return any(part.startswith(("_", ".")) for part in path.parts)


def replace_dir(staging: Path, target: Path) -> None:
    """Replace ``target`` with the contents of ``staging``.

    The old target is moved aside first and removed only once the new one is
    in place, so a failure leaves either the old or the new tree.

    Args:
        staging: Fully written directory to publish.
        target: Destination directory.
    """
    backup = target.with_name(f".{target.name}.old")
    if backup.exists():
        shutil.rmtree(backup)
    if target.exists():
        target.rename(backup)
    staging.rename(target)
    if backup.exists():
        shutil.rmtree(backup)
