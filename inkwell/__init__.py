"""Inkwell static blog builder.

This package turns a directory of Markdown articles with a TOML or YAML
frontmatter header into a set of static HTML pages: one per article, a
chronological index, one listing per tag and optional RSS/sitemap feeds.

The pipeline has three stages, each consuming an immutable snapshot of the
previous one:
- content: discovers and parses source documents into Document records.
- collections: derives the chronological ContentIndex and tag groupings.
- templates: renders documents and listings into RenderedPage objects.

The build module wires the stages together and publishes the output, and the
CLI module exposes it on the command line.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
