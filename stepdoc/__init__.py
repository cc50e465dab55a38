"""Tutorial markdown to structured step document conversion."""

from stepdoc.config import Settings
from stepdoc.logging_config import configure_logging
from stepdoc.markdown.parser import MarkdownParser
from stepdoc.registry import Parser, ParserRegistry

__version__ = "0.1.0"


def create_registry(settings: Settings | None = None) -> ParserRegistry:
    """Create the parser registry with every built-in source format."""
    settings = settings or Settings()
    registry = ParserRegistry()
    registry.register("md", MarkdownParser(settings))
    return registry


__all__ = [
    "Parser",
    "ParserRegistry",
    "Settings",
    "configure_logging",
    "create_registry",
]
