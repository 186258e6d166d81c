"""
Exceptions raised by the slides kernel family.

All of them are fatal for a compilation: nothing in the traversal catches
them, so a failure never produces partial or unbalanced markup.
"""


class SlidesError(Exception):
    """Base class for slides compilation errors."""


class DocumentFormatError(SlidesError):
    """The serialized document tree is malformed."""

    def __init__(self, msg: str, path: str = ""):
        self.path = path
        super().__init__(f"{msg} (at {path})" if path else msg)


class TemplateError(SlidesError):
    """The HTML template is missing or does not contain the placeholder exactly once."""


class ThemeFormatError(SlidesError):
    """The color theme JSON is missing required fields."""


class ConfigError(SlidesError, ValueError):
    """A slides.yaml file is not valid YAML or not shaped like a SlidesConfig."""
