"""Frontmatter parsing for Inkwell.

Every source document starts with a metadata header followed by a free-form
body. Two header syntaxes are recognised:

- TOML between ``+++`` fences (parsed with tomllib).
- YAML between ``---`` fences (parsed with PyYAML's safe loader).

The parsed header is validated into a DocumentMetadata record with explicit
required and optional fields. Anything that does not fit raises
MalformedDocumentError naming the file and the field.
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from .errors import MalformedDocumentError
from .utils import slugify

TOML_FRONTMATTER_RE = re.compile(
    r"\A\+\+\+[ \t]*\r?\n(.*?)^\+\+\+[ \t]*$\r?\n?", re.DOTALL | re.MULTILINE
)
YAML_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*$\r?\n?", re.DOTALL | re.MULTILINE
)

REQUIRED_FIELDS = ("title", "date")
OPTIONAL_FIELDS = ("tags", "slug", "description", "draft")
KNOWN_FIELDS = frozenset(REQUIRED_FIELDS + OPTIONAL_FIELDS)
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class DocumentMetadata:
    """Validated metadata header of one document.

    Attributes:
        title: Non-empty article title.
        date: Publication date.
        tags: Set of tag labels, possibly empty.
        slug: Explicit identifier, or None to derive one from the filename.
        description: Short summary used in listings and feeds.
        draft: Whether the document is excluded from normal builds.
    """

    title: str
    date: date
    tags: frozenset[str] = frozenset()
    slug: str | None = None
    description: str = ""
    draft: bool = False


def split_frontmatter(text: str, path: Path) -> tuple[dict[str, Any], str, str]:
    """Split a source document into its parsed header and its body.

    Args:
        text: Raw file content.
        path: Path to the source file, used in error messages.

    Returns:
        Tuple of (header mapping, body text, header format name).

    Raises:
        MalformedDocumentError: If there is no header or it cannot be parsed.
    """
    text = text.lstrip("\ufeff")
    match = TOML_FRONTMATTER_RE.match(text)
    if match:
        try:
            data: Any = tomllib.loads(match.group(1))
        except tomllib.TOMLDecodeError as exc:
            raise MalformedDocumentError(path, f"invalid TOML header: {exc}") from exc
        return data, text[match.end() :], "toml"

    match = YAML_FRONTMATTER_RE.match(text)
    if match:
        try:
            data = yaml.safe_load(match.group(1))
        except (yaml.YAMLError, ValueError) as exc:
            # PyYAML raises a bare ValueError for impossible timestamps.
            raise MalformedDocumentError(path, f"invalid YAML header: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise MalformedDocumentError(path, "metadata header must be a mapping")
        return data, text[match.end() :], "yaml"

    raise MalformedDocumentError(path, "missing metadata header")


def parse_metadata(
    raw: dict[str, Any], path: Path, allow_unknown_fields: bool = False
) -> DocumentMetadata:
    """Validate a raw header mapping into a DocumentMetadata record.

    Args:
        raw: Mapping produced by split_frontmatter.
        path: Path to the source file, used in error messages.
        allow_unknown_fields: Accept and ignore fields outside KNOWN_FIELDS.

    Returns:
        Validated metadata.

    Raises:
        MalformedDocumentError: On a missing, mistyped or unknown field.
    """
    unknown = sorted(str(key) for key in raw if key not in KNOWN_FIELDS)
    if unknown and not allow_unknown_fields:
        raise MalformedDocumentError(
            path, f"unknown metadata field(s): {', '.join(unknown)}"
        )
    for name in REQUIRED_FIELDS:
        if raw.get(name) is None:
            raise MalformedDocumentError(path, f"missing required field '{name}'")

    title = raw["title"]
    if not isinstance(title, str) or not title.strip():
        raise MalformedDocumentError(path, "'title' must be a non-empty string")

    slug = raw.get("slug")
    if slug is not None and (not isinstance(slug, str) or not slug.strip()):
        raise MalformedDocumentError(path, "'slug' must be a non-empty string")

    description = raw.get("description") or ""
    if not isinstance(description, str):
        raise MalformedDocumentError(path, "'description' must be a string")

    draft = raw.get("draft", False)
    if not isinstance(draft, bool):
        raise MalformedDocumentError(path, "'draft' must be true or false")

    return DocumentMetadata(
        title=title,
        date=parse_date(raw["date"], path),
        tags=parse_tags(raw.get("tags"), path),
        slug=slug.strip() if slug is not None else None,
        description=description.strip(),
        draft=draft,
    )


def parse_date(value: Any, path: Path) -> date:
    """Coerce a header value into a calendar date.

    Accepts native TOML/YAML dates, datetimes (truncated to their date) and
    ISO ``YYYY-MM-DD`` strings.

    Raises:
        MalformedDocumentError: If the value is not a valid calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and ISO_DATE_RE.match(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise MalformedDocumentError(
                path, f"unparseable date {value!r}"
            ) from exc
    raise MalformedDocumentError(path, f"unparseable date {value!r}")


def parse_tags(value: Any, path: Path) -> frozenset[str]:
    """Coerce a header value into a set of tags.

    A missing value means no tags. Tags are kept exactly as written and
    duplicates collapse. A tag needs at least one URL-safe character.

    Raises:
        MalformedDocumentError: If the value is not a list of strings.
    """
    if value is None:
        return frozenset()
    if not isinstance(value, (list, tuple)):
        raise MalformedDocumentError(path, "'tags' must be a list of strings")
    tags = set()
    for tag in value:
        if not isinstance(tag, str):
            raise MalformedDocumentError(path, "'tags' must be a list of strings")
        if not slugify(tag):
            raise MalformedDocumentError(path, f"tag {tag!r} has no usable characters")
        tags.add(tag)
    return frozenset(tags)
