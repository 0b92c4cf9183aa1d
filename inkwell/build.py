"""Site building functionality for Inkwell.

This module wires the pipeline together: it loads configuration, discovers
and loads documents, builds the content index, renders every page and
publishes the result.

Publishing is all-or-nothing. Pages are written into a staging directory
next to the output directory and swapped into place only after every stage
succeeded; on any error the staging directory is discarded and the previous
output is left untouched.

Key functions:
- build_site: Build the whole site.
- load_site: Run the load and index stages without rendering.
- load_config: Load project configuration from inkwell.yaml.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .collections import ContentIndex, build_index
from .content import Document, DocumentLoader, FileSourceLoader, LoadWarning
from .errors import BuildError, ConfigError, MalformedDocumentError, TemplateError
from .feeds import create_default_feed_registry
from .templates import RenderedPage, TemplateEngine
from .utils import replace_dir

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "inkwell.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "source_dir": "content",
    "output_dir": "output",
    "layouts_dir": "layouts",
    "title": "Inkwell",
    "url": "",
    "strict": False,
    "require_documents": False,
    "allow_unknown_fields": False,
    "include_drafts": False,
    "workers": 4,
}


@dataclass(frozen=True)
class LoadedSite:
    """Output of the load and index stages.

    Attributes:
        index: Content index over the published documents.
        warnings: Documents skipped while loading.
        config: Effective configuration.
    """

    index: ContentIndex
    warnings: tuple[LoadWarning, ...]
    config: dict[str, Any]


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        index: Content index the site was rendered from.
        pages: Every page written, feeds included.
        output_dir: Directory where the site was published.
        warnings: Documents skipped in lenient mode.
    """

    index: ContentIndex
    pages: list[RenderedPage]
    output_dir: Path
    warnings: tuple[LoadWarning, ...] = ()

    @property
    def ok(self) -> bool:
        """True when no document was skipped."""
        return not self.warnings

    @property
    def documents(self) -> tuple[Document, ...]:
        return self.index.documents

    @property
    def feeds(self) -> list[str]:
        return [p.output_path for p in self.pages if p.output_path.endswith(".xml")]


def load_config(project_root: Path) -> dict[str, Any]:
    """Load project configuration from inkwell.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    config_path = project_root / CONFIG_FILENAME
    config = DEFAULT_CONFIG.copy()
    if not config_path.exists():
        return config
    try:
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{config_path}: invalid YAML: {exc}") from exc
    if loaded is None:
        return config
    if not isinstance(loaded, dict):
        raise ConfigError(f"{config_path}: expected a mapping at the top level")
    config.update({k: v for k, v in loaded.items() if k in DEFAULT_CONFIG})
    try:
        config["workers"] = int(config["workers"])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{config_path}: 'workers' must be an integer") from exc
    return config


def load_site(
    project_root: Path,
    strict: bool | None = None,
    include_drafts: bool | None = None,
    require_documents: bool | None = None,
    config: dict[str, Any] | None = None,
) -> LoadedSite:
    """Discover, load and index the project's documents.

    Arguments left as None fall back to the configuration file.

    Raises:
        BuildError: In strict mode, for the first malformed document.
        EmptyCollectionError: If documents are required and none were found.
        DuplicateIdentifierError: If two documents share an identifier.
    """
    config = dict(config or load_config(project_root))
    for key, value in (
        ("strict", strict),
        ("include_drafts", include_drafts),
        ("require_documents", require_documents),
    ):
        if value is not None:
            config[key] = value

    source_dir = project_root / config["source_dir"]
    try:
        paths = FileSourceLoader(source_dir).iter_files()
    except FileNotFoundError as exc:
        raise BuildError(source_dir, "source directory not found", exc) from exc
    logger.debug("Discovered %d source files in %s", len(paths), source_dir)

    loader = DocumentLoader(
        strict=bool(config["strict"]),
        allow_unknown_fields=bool(config["allow_unknown_fields"]),
        workers=config["workers"],
    )
    try:
        result = loader.load_all(paths)
    except MalformedDocumentError as exc:
        raise BuildError(exc.path, exc.reason, exc) from exc

    documents = [
        doc for doc in result.documents if config["include_drafts"] or not doc.draft
    ]
    skipped_drafts = len(result.documents) - len(documents)
    if skipped_drafts:
        logger.info("Leaving out %d draft(s)", skipped_drafts)

    index = build_index(documents, require_documents=bool(config["require_documents"]))
    logger.info(
        "Indexed %d documents and %d tags (%d skipped)",
        len(index),
        len(index.by_tag),
        len(result.warnings),
    )
    return LoadedSite(index=index, warnings=result.warnings, config=config)


def build_site(
    project_root: Path,
    strict: bool | None = None,
    include_drafts: bool | None = None,
    require_documents: bool | None = None,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        strict: Fail on the first malformed document instead of skipping it.
        include_drafts: Publish documents marked as drafts.
        require_documents: Fail when no documents are found.
        output_dir_override: Write here instead of the configured output_dir.

    Returns:
        BuildResult describing the published site.
    """
    site = load_site(
        project_root,
        strict=strict,
        include_drafts=include_drafts,
        require_documents=require_documents,
    )
    config = site.config
    output_dir = output_dir_override or (project_root / config["output_dir"])

    data = {"title": config["title"], "url": config["url"]}
    engine = TemplateEngine(
        data,
        layouts_dir=project_root / config["layouts_dir"],
        tag_slugs=site.index.tag_slugs,
    )
    pages = render_site(engine, site.index, workers=config["workers"])
    pages.extend(create_default_feed_registry().render_all(site.index, data))

    publish(pages, output_dir)
    logger.info("Wrote %d pages to %s", len(pages), output_dir)
    return BuildResult(
        index=site.index, pages=pages, output_dir=output_dir, warnings=site.warnings
    )


def render_site(
    engine: TemplateEngine, index: ContentIndex, workers: int = 4
) -> list[RenderedPage]:
    """Render document pages, then the listings that depend on the index.

    Raises:
        BuildError: If any page fails to render.
    """

    def render(document: Document) -> RenderedPage:
        try:
            return engine.render_document(document)
        except TemplateError as exc:
            raise BuildError(document.path, str(exc), exc) from exc

    if workers > 1 and len(index) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            pages = list(pool.map(render, index))
    else:
        pages = [render(document) for document in index]

    try:
        pages.append(engine.render_index_page(index))
        pages.append(engine.render_tags_overview(index))
        pages.extend(engine.render_tag_page(tag, index) for tag in index.by_tag)
    except TemplateError as exc:
        raise BuildError(Path("<listing>"), str(exc), exc) from exc
    return pages


def publish(pages: Sequence[RenderedPage], output_dir: Path) -> None:
    """Write pages to a staging directory, then swap it into output_dir.

    Nothing under output_dir changes unless every page was written.
    """
    output_dir = output_dir.resolve()
    output_dir.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(
        tempfile.mkdtemp(prefix=f".{output_dir.name}-", dir=output_dir.parent)
    )
    try:
        staging.chmod(0o755)
        for page in pages:
            target = staging / page.output_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(page.content, encoding="utf-8")
        replace_dir(staging, output_dir)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise

