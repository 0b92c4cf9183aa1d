"""Document loading for Inkwell.

This module discovers source documents and parses each one into an immutable
Document record. Parsing of the header lives in frontmatter; this module
deals with files, identifiers and the per-batch failure policy.

Key classes:
- Document: Frozen dataclass representing one parsed article.
- LoadWarning: A document skipped in lenient mode, with the reason.
- LoadResult: Documents and warnings produced by one batch.
- FileSourceLoader: Discovers Markdown sources in a directory.
- DocumentLoader: Parses one or many sources into Documents.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from .errors import MalformedDocumentError
from .frontmatter import parse_metadata, split_frontmatter
from .utils import is_hidden, is_markdown, slugify, strip_date_prefix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """One parsed article.

    Attributes:
        identifier: Unique, URL-safe identifier of the document.
        title: Human-readable title.
        date: Publication date.
        tags: Set of tags, possibly empty.
        body: Body text exactly as found after the header.
        path: Path to the source file.
        description: Optional short summary.
        draft: Whether the document is a draft.
    """

    identifier: str
    title: str
    date: date
    tags: frozenset[str]
    body: str
    path: Path
    description: str = ""
    draft: bool = False

    @property
    def sorted_tags(self) -> list[str]:
        """Tags in a stable, case-insensitive order for display."""
        return sorted(self.tags, key=lambda t: (t.lower(), t))


@dataclass(frozen=True)
class LoadWarning:
    """A document that failed to load and was skipped.

    Attributes:
        path: Path to the source file.
        reason: Why the document was rejected.
    """

    path: Path
    reason: str

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


@dataclass(frozen=True)
class LoadResult:
    """Outcome of loading a batch of sources.

    Attributes:
        documents: Successfully loaded documents, in input order.
        warnings: One entry per skipped document, in input order.
    """

    documents: tuple[Document, ...]
    warnings: tuple[LoadWarning, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.warnings


class FileSourceLoader:
    """Discovers source documents in a directory.

    Markdown files are collected recursively. Files and directories whose
    name starts with ``_`` or ``.`` are skipped.

    Attributes:
        source_dir: Directory containing the articles.
    """

    def __init__(self, source_dir: Path):
        self.source_dir = source_dir

    def iter_files(self) -> list[Path]:
        """Return all source files, sorted by relative path.

        Raises:
            FileNotFoundError: If the source directory does not exist.
        """
        if not self.source_dir.is_dir():
            raise FileNotFoundError(f"Expected source directory at {self.source_dir}")
        files: list[Path] = []
        for path in self.source_dir.rglob("*"):
            if path.is_dir():
                continue
            rel = path.relative_to(self.source_dir)
            if is_hidden(rel):
                continue
            if is_markdown(path):
                files.append(path)
        return sorted(files, key=lambda p: p.relative_to(self.source_dir).as_posix())


def derive_identifier(path: Path, slug: str | None = None) -> str:
    """Derive a document identifier from an explicit slug or the filename.

    Args:
        path: Path to the source file.
        slug: Explicit slug from the header, if any.

    Returns:
        URL-safe identifier.
    """
    if slug is not None:
        return slugify(slug)
    return slugify(strip_date_prefix(path.stem))


class DocumentLoader:
    """Parses source files into Document records.

    Attributes:
        strict: Default batch policy; fail the whole batch on the first
            malformed document instead of skipping it.
        allow_unknown_fields: Accept header fields outside the known set.
        workers: Number of threads used to read independent sources.
    """

    def __init__(
        self,
        strict: bool = False,
        allow_unknown_fields: bool = False,
        workers: int = 4,
    ):
        self.strict = strict
        self.allow_unknown_fields = allow_unknown_fields
        self.workers = max(1, workers)

    def load(self, path: Path) -> Document:
        """Load one source file.

        Args:
            path: Path to a source document.

        Returns:
            The parsed Document, body kept verbatim.

        Raises:
            MalformedDocumentError: If the header is missing or invalid.
            OSError: If the file cannot be read.
        """
        text = path.read_text(encoding="utf-8")
        raw, body, _ = split_frontmatter(text, path)
        meta = parse_metadata(raw, path, allow_unknown_fields=self.allow_unknown_fields)
        identifier = derive_identifier(path, meta.slug)
        if not identifier:
            raise MalformedDocumentError(path, "cannot derive an identifier")
        logger.debug("Loaded %s as %s", path, identifier)
        return Document(
            identifier=identifier,
            title=meta.title,
            date=meta.date,
            tags=meta.tags,
            body=body,
            path=path,
            description=meta.description,
            draft=meta.draft,
        )

    def load_all(self, paths: Iterable[Path], strict: bool | None = None) -> LoadResult:
        """Load a batch of sources.

        In strict mode the first failure (in input order) is raised and
        nothing is returned. In lenient mode failing documents are skipped and
        reported as warnings. A document whose identifier was already taken by
        an earlier one is treated as malformed.

        Args:
            paths: Source files to load.
            strict: Override the loader's default policy for this batch.

        Returns:
            LoadResult with documents and warnings in input order.

        Raises:
            MalformedDocumentError: In strict mode, on the first bad document.
        """
        strict = self.strict if strict is None else strict
        paths = list(paths)
        outcomes = self._load_parallel(paths)

        documents: list[Document] = []
        warnings: list[LoadWarning] = []
        seen: dict[str, Path] = {}
        for path, outcome in zip(paths, outcomes):
            if isinstance(outcome, Document) and outcome.identifier in seen:
                outcome = MalformedDocumentError(
                    path,
                    f"identifier '{outcome.identifier}' already used by "
                    f"{seen[outcome.identifier]}",
                )
            if isinstance(outcome, MalformedDocumentError):
                if strict:
                    raise outcome
                logger.warning("Skipping %s: %s", path, outcome.reason)
                warnings.append(LoadWarning(path=path, reason=outcome.reason))
                continue
            seen[outcome.identifier] = path
            documents.append(outcome)
        return LoadResult(documents=tuple(documents), warnings=tuple(warnings))

    def _load_parallel(
        self, paths: Sequence[Path]
    ) -> list[Document | MalformedDocumentError]:
        if self.workers == 1 or len(paths) < 2:
            return [self._load_or_error(path) for path in paths]
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            return list(pool.map(self._load_or_error, paths))

    def _load_or_error(self, path: Path) -> Document | MalformedDocumentError:
        try:
            return self.load(path)
        except MalformedDocumentError as exc:
            return exc
        except UnicodeDecodeError as exc:
            return MalformedDocumentError(path, f"not valid UTF-8: {exc.reason}")
        except OSError as exc:
            return MalformedDocumentError(
                path, f"cannot read file: {exc.strerror or exc}"
            )
