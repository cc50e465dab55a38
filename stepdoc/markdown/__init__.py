"""Markdown parsing and transformation to the structured step document."""

from stepdoc.markdown.models import (
    ButtonNode,
    CodeNode,
    Document,
    GridCell,
    GridNode,
    HeaderNode,
    IframeNode,
    ImageNode,
    ImportNode,
    InfoboxNode,
    ItemsListNode,
    LinkNode,
    ListItem,
    Node,
    Step,
    SurveyGroup,
    SurveyNode,
    TextNode,
    YouTubeNode,
)
from stepdoc.markdown.parser import (
    MarkdownParser,
    build_tree,
    parse_document,
    parse_fragment,
    parse_markdown,
    render_html,
)
from stepdoc.markdown.transformer import (
    DocumentTransformer,
    transform_to_document,
    transform_to_fragment,
)

__all__ = [
    # Parser
    "MarkdownParser",
    "build_tree",
    "parse_document",
    "parse_fragment",
    "parse_markdown",
    "render_html",
    # Transformer
    "DocumentTransformer",
    "transform_to_document",
    "transform_to_fragment",
    # Models
    "Document",
    "Step",
    "Node",
    "TextNode",
    "LinkNode",
    "ImageNode",
    "YouTubeNode",
    "IframeNode",
    "ButtonNode",
    "HeaderNode",
    "ItemsListNode",
    "ListItem",
    "CodeNode",
    "InfoboxNode",
    "GridNode",
    "GridCell",
    "SurveyNode",
    "SurveyGroup",
    "ImportNode",
]
