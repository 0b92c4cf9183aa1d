"""Exception hierarchy for Inkwell.

Loader errors are per document and may be collected instead of raised
(lenient mode). Index and rendering errors are structural and always abort
the build.
"""

from __future__ import annotations

from pathlib import Path


class InkwellError(Exception):
    """Base class for all Inkwell errors."""


class ConfigError(InkwellError):
    """The project configuration file could not be used."""


class MalformedDocumentError(InkwellError):
    """A source document has a missing or invalid metadata field.

    Attributes:
        path: Path to the offending source file.
        reason: Human-readable description of the problem.
    """

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class EmptyCollectionError(InkwellError):
    """No documents were found while at least one was required."""


class DuplicateIdentifierError(InkwellError):
    """Two documents in one collection share an identifier."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Duplicate document identifier: {identifier}")


class TemplateError(InkwellError):
    """A page could not be rendered.

    Raised when a document reaches the renderer without its required fields
    or when a layout template fails. Always fatal.
    """


class BuildError(InkwellError):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")
