"""Markdown rendering using markdown-it-py, and markup tree building using BeautifulSoup.

Configures markdown-it with the extensions tutorial sources rely on:
- CommonMark base (fenced code, raw HTML, XHTML output)
- GFM tables and strikethrough
- Definition lists (infobox markers)
- Typographer (smart quotes and dashes)
"""

from bs4 import BeautifulSoup
from loguru import logger
from markdown_it import MarkdownIt
from mdit_py_plugins.deflist import deflist_plugin

from stepdoc.config import Settings
from stepdoc.markdown.models import Document, Node
from stepdoc.markdown.preprocess import convert_imports
from stepdoc.markdown.transformer import transform_to_document, transform_to_fragment
from stepdoc.registry import Parser

_DOCUMENT_TEMPLATE = "<html><head></head><body>\n{}</body></html>"


def create_parser() -> MarkdownIt:
    """Create configured markdown-it parser."""
    md = MarkdownIt("commonmark", {"typographer": True})
    md.enable(["table", "strikethrough", "replacements", "smartquotes"])
    deflist_plugin(md)
    return md


# Singleton parser instance
_parser: MarkdownIt | None = None


def get_parser() -> MarkdownIt:
    """Get or create the singleton parser instance."""
    global _parser
    if _parser is None:
        _parser = create_parser()
    return _parser


def render_html(text: str) -> str:
    """Preprocess import directives and render markdown text to XHTML markup."""
    return get_parser().render(convert_imports(text))


def build_tree(markup: str) -> BeautifulSoup:
    """Build a navigable tree from rendered markup.

    The markup is placed inside a document skeleton, so the tree always has a body.
    """
    return BeautifulSoup(_DOCUMENT_TEMPLATE.format(markup), "html.parser")


def parse_markdown(text: str) -> BeautifulSoup:
    """Render markdown text and return the root of its markup tree.

    Args:
        text: Markdown text to parse

    Returns:
        BeautifulSoup tree whose body holds the rendered content
    """
    return build_tree(render_html(text))


class MarkdownParser(Parser):
    """Parser for tutorial sources written in the extended markdown dialect."""

    def parse(self, text: str) -> Document:
        tree = parse_markdown(text)
        doc = transform_to_document(
            tree,
            pass_metadata=self._settings.pass_metadata,
            iframe_allowlist=self._settings.iframe_allowlist,
        )
        logger.info(f"Parsed {doc.id!r}: {len(doc.steps)} step(s), {doc.duration} min")
        return doc

    def parse_fragment(self, text: str) -> list[Node]:
        tree = parse_markdown(text)
        return transform_to_fragment(tree, iframe_allowlist=self._settings.iframe_allowlist)


def parse_document(text: str, *, settings: Settings | None = None) -> Document:
    """Parse a full tutorial document."""
    return MarkdownParser(settings or Settings()).parse(text)


def parse_fragment(text: str, *, settings: Settings | None = None) -> list[Node]:
    """Parse a content fragment into a flat node list."""
    return MarkdownParser(settings or Settings()).parse_fragment(text)
