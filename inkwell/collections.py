from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from types import MappingProxyType

from .content import Document
from .errors import DuplicateIdentifierError, EmptyCollectionError
from .utils import slugify


def assign_tag_slugs(tags: Iterable[str]) -> dict[str, str]:
    """Give each tag a unique slug, in iteration order.

    Tags whose slugs collide (``c`` and ``c++``) keep the plain slug for the
    first one and get ``-2``, ``-3`` and so on for the rest.
    """
    slugs: dict[str, str] = {}
    used: set[str] = set()
    for tag in tags:
        base = slugify(tag)
        slug, n = base, 2
        while slug in used:
            slug = f"{base}-{n}"
            n += 1
        used.add(slug)
        slugs[tag] = slug
    return slugs


def chronological_key(document: Document) -> tuple[int, str]:
    """Sort key giving newest first, then identifier ascending."""
    return (-document.date.toordinal(), document.identifier)


class ContentIndex(Sequence[Document]):
    """Read-only chronological and per-tag view over a set of Documents.

    Iterating an index yields documents newest first. ``by_tag`` maps each
    tag to its documents in the same order. Build one with build_index; a
    changed document set gets a new index instead of a patched one.
    """

    __slots__ = ("_documents", "_by_tag", "_tag_slugs")

    def __init__(
        self,
        documents: tuple[Document, ...],
        by_tag: Mapping[str, tuple[Document, ...]],
    ):
        self._documents = documents
        self._by_tag = MappingProxyType(dict(by_tag))
        self._tag_slugs = MappingProxyType(assign_tag_slugs(self._by_tag))

    @property
    def documents(self) -> tuple[Document, ...]:
        return self._documents

    @property
    def by_tag(self) -> Mapping[str, tuple[Document, ...]]:
        return self._by_tag

    @property
    def tag_slugs(self) -> Mapping[str, str]:
        """URL slug of every tag, unique across the index."""
        return self._tag_slugs

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __getitem__(self, item):
        return self._documents[item]

    def tags(self) -> list[str]:
        return list(self._by_tag)

    def with_tag(self, tag: str) -> tuple[Document, ...]:
        return self._by_tag.get(tag, ())

    def latest(self, count: int = 5) -> tuple[Document, ...]:
        return self._documents[:count]

    def get(self, identifier: str) -> Document | None:
        for document in self._documents:
            if document.identifier == identifier:
                return document
        return None

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"ContentIndex({len(self._documents)} documents, {len(self._by_tag)} tags)"


def build_index(
    documents: Iterable[Document], require_documents: bool = False
) -> ContentIndex:
    """Build a ContentIndex from a collection of documents.

    Documents are ordered by date descending, ties broken by identifier
    ascending. Tags are keyed in case-insensitive alphabetical order and each
    keeps the global document order.

    Args:
        documents: Documents to index.
        require_documents: Raise instead of returning an empty index.

    Returns:
        A fresh, immutable ContentIndex.

    Raises:
        EmptyCollectionError: If require_documents is set and there are none.
        DuplicateIdentifierError: If two documents share an identifier.
    """
    ordered = sorted(documents, key=chronological_key)
    if require_documents and not ordered:
        raise EmptyCollectionError("No documents found")

    seen: set[str] = set()
    grouped: dict[str, list[Document]] = {}
    for document in ordered:
        if document.identifier in seen:
            raise DuplicateIdentifierError(document.identifier)
        seen.add(document.identifier)
        for tag in document.tags:
            grouped.setdefault(tag, []).append(document)

    by_tag = {
        tag: tuple(grouped[tag]) for tag in sorted(grouped, key=lambda t: (t.lower(), t))
    }
    return ContentIndex(tuple(ordered), by_tag)
