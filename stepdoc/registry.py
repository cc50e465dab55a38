from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from loguru import logger

from stepdoc.config import Settings

if TYPE_CHECKING:
    from stepdoc.markdown.models import Document, Node


class Parser(ABC):
    """A source format parser producing the structured document model."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @abstractmethod
    def parse(self, text: str) -> "Document":
        """Parse a full document.

        Raises:
            ParseError: on a missing body or missing metadata id
        """

    @abstractmethod
    def parse_fragment(self, text: str) -> list["Node"]:
        """Parse a content fragment without title, metadata or steps.

        Raises:
            ParseError: when the fragment declares steps or imports
        """


class ParserRegistry:
    """Format name -> parser table, built once at startup and passed to callers."""

    def __init__(self) -> None:
        self._parsers: dict[str, Parser] = {}

    def register(self, name: str, parser: Parser) -> None:
        if name in self._parsers:
            raise ValueError(f"Parser {name!r} is already registered")
        self._parsers[name] = parser
        logger.debug(f"Registered parser {name!r}: {type(parser).__name__}")

    def get_parser(self, name: str) -> Parser | None:
        return self._parsers.get(name)

    @property
    def names(self) -> list[str]:
        return sorted(self._parsers)
