"""Template rendering engine for Inkwell.

This module uses Jinja2 to turn Documents and a ContentIndex into
RenderedPage objects. Built-in layouts ship in the package's ``layouts``
directory; a project can override any of them by placing a template with the
same name in its own layouts directory, which is searched first.

Key classes:
- RenderedPage: Final output of one page (URL, output file, HTML).
- TemplateEngine: Renders documents, the index, tag pages and the tag overview.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from jinja2 import TemplateError as JinjaTemplateError
from markupsafe import Markup

from .collections import ContentIndex
from .content import Document
from .errors import TemplateError
from .html_utils import url_to_output_path
from .renderers import pygments_css, render_markdown
from .utils import slugify

BUILTIN_LAYOUTS_DIR = Path(__file__).parent / "layouts"

DOCUMENT_LAYOUT = "document.html.jinja"
INDEX_LAYOUT = "index.html.jinja"
TAG_LAYOUT = "tag.html.jinja"
TAGS_LAYOUT = "tags.html.jinja"


@dataclass(frozen=True)
class RenderedPage:
    """Final representation of one output page.

    Attributes:
        url: Site path of the page, e.g. ``/posts/mro/``.
        output_path: POSIX path of the file relative to the output directory.
        content: Rendered HTML.
        source_path: Source document, for pages rendered from one.
    """

    url: str
    output_path: str
    content: str
    source_path: Path | None = None


def document_url(document: Document) -> str:
    return f"/posts/{document.identifier}/"


def tag_url(tag: str, slugs: Mapping[str, str] | None = None) -> str:
    """Site path of a tag page, using the index's slug for the tag if known."""
    slug = slugs.get(tag) if slugs else None
    return f"/tags/{slug or slugify(tag)}/"


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        data: Site-wide values exposed to templates as ``site``.
        env: Jinja2 environment.
    """

    def __init__(
        self,
        data: dict[str, Any],
        layouts_dir: Path | None = None,
        tag_slugs: Mapping[str, str] | None = None,
    ):
        """Initialize the template engine.

        Args:
            data: Site-wide values such as ``title`` and ``url``.
            layouts_dir: Optional project directory with layout overrides.
            tag_slugs: Tag URL slugs used on document pages, usually
                ``ContentIndex.tag_slugs``.
        """
        self.data = data
        self.tag_slugs = dict(tag_slugs or {})
        search_path = [BUILTIN_LAYOUTS_DIR]
        if layouts_dir is not None and layouts_dir.is_dir():
            search_path.insert(0, layouts_dir)
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self._install_globals()

    def _install_globals(self) -> None:
        """Install global variables and functions in the Jinja environment."""
        self.env.globals["site"] = self.data
        self.env.globals["document_url"] = document_url
        self.env.globals["tag_url"] = partial(tag_url, slugs=self.tag_slugs)
        self.env.globals["pygments_css"] = self._pygments_css

    @staticmethod
    def _pygments_css() -> Markup:
        """Return Pygments CSS for the .highlight class, safe for a style block."""
        return Markup(pygments_css())

    def render_document(self, document: Document) -> RenderedPage:
        """Render one document as a full page.

        Raises:
            TemplateError: If the document lacks required fields or the layout
                fails.
        """
        self._check_document(document)
        url = document_url(document)
        html = self._render(
            DOCUMENT_LAYOUT,
            document=document,
            content=Markup(render_markdown(document.body)),
        )
        return RenderedPage(
            url=url,
            output_path=url_to_output_path(url),
            content=html,
            source_path=document.path,
        )

    def render_index_page(self, index: ContentIndex) -> RenderedPage:
        """Render the global listing in chronological order."""
        for document in index:
            self._check_document(document)
        html = self._render(
            INDEX_LAYOUT,
            documents=index.documents,
            index=index,
            tag_url=partial(tag_url, slugs=index.tag_slugs),
        )
        return RenderedPage(url="/", output_path=url_to_output_path("/"), content=html)

    def render_tag_page(self, tag: str, index: ContentIndex) -> RenderedPage:
        """Render the listing of documents carrying one tag.

        Raises:
            TemplateError: If the tag is not in the index.
        """
        if tag not in index.by_tag:
            raise TemplateError(f"Unknown tag: {tag}")
        documents = index.by_tag[tag]
        for document in documents:
            self._check_document(document)
        url = tag_url(tag, index.tag_slugs)
        html = self._render(
            TAG_LAYOUT,
            tag=tag,
            documents=documents,
            index=index,
            tag_url=partial(tag_url, slugs=index.tag_slugs),
        )
        return RenderedPage(url=url, output_path=url_to_output_path(url), content=html)

    def render_tags_overview(self, index: ContentIndex) -> RenderedPage:
        """Render the list of all tags with their document counts."""
        counts = [(tag, len(docs)) for tag, docs in index.by_tag.items()]
        html = self._render(
            TAGS_LAYOUT,
            tags=counts,
            index=index,
            tag_url=partial(tag_url, slugs=index.tag_slugs),
        )
        return RenderedPage(
            url="/tags/", output_path=url_to_output_path("/tags/"), content=html
        )

    def _render(self, name: str, **context: Any) -> str:
        try:
            return self.env.get_template(name).render(**context)
        except JinjaTemplateError as exc:
            raise TemplateError(f"Layout {name} failed: {exc}") from exc

    @staticmethod
    def _check_document(document: Document) -> None:
        missing = [
            name
            for name in ("identifier", "title", "date")
            if not getattr(document, name, None)
        ]
        if missing:
            raise TemplateError(
                f"Document {document.path} is missing required field(s): "
                f"{', '.join(missing)}"
            )
