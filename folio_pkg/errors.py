"""
Exception types raised by Folio.

Every failure in the collection pipeline is fatal for the build step that hit
it. The exceptions carry enough context (file path, page number, pattern) to
locate the cause.
"""


class FolioError(Exception):
    """Base class for all Folio errors."""


class ConfigError(FolioError):
    """Invalid collection configuration."""


class ParseError(FolioError):
    """Malformed front matter in a source file."""

    def __init__(self, path, message):
        self.path = path
        super().__init__(f"Invalid front matter in {path}: {message}")


class FormatError(FolioError):
    """A source path does not follow the naming convention a permalink formatter expects."""

    def __init__(self, path, pattern):
        self.path = path
        self.pattern = pattern
        super().__init__(
            f"incorrect title formatting for post: {path} "
            f"(expected {pattern})"
        )


class TransformError(FolioError):
    """A collection's transform function failed."""

    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super().__init__(f"Transform failed for {path}: {cause}")


class PermalinkError(FolioError):
    """A collection's permalink function failed."""

    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super().__init__(f"Permalink failed for {path}: {cause}")


class RenderError(FolioError):
    """A template failed to render."""

    def __init__(self, template, cause, page=None, path=None):
        self.template = template
        self.cause = cause
        self.page = page
        self.path = path
        if page is not None:
            where = f"page {page} ({path}) of template {template}"
        else:
            where = f"template {template}"
        super().__init__(f"Failed to render {where}: {cause}")
