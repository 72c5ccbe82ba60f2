"""Exception types shared by the generation, backup and publish pipelines"""


class FrontmatterError(ValueError):
    """A frontmatter block is present but cannot be parsed into the typed schema."""


class EmbedError(ValueError):
    """An embed block names an unknown provider or lacks a required field."""


class NotFoundError(LookupError):
    """A lookup by ID or natural key found nothing."""


class DuplicateError(ValueError):
    """The store rejected a record that already exists."""


class PublishNotConfiguredError(ValueError):
    """The site has no publish repository configured."""

    def __init__(self, message: str = "publish not configured"):
        super().__init__(message)


class PublishError(RuntimeError):
    """The git publish transport failed."""
