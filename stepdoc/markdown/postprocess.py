"""Block marking and compaction of emitted node sequences.

Builders tag inline nodes with the identity of their enclosing block element
(paragraph, list item, cell, ...). A node starts a new block when its key
differs from its predecessor's; nodes without a key always stand alone.
Adjacent fragments of the same block are merged when they render the same way.
"""

from typing import assert_never

from stepdoc.markdown.models import (
    ButtonNode,
    CodeNode,
    GridNode,
    HeaderNode,
    IframeNode,
    ImageNode,
    ImportNode,
    InfoboxNode,
    ItemsListNode,
    LinkNode,
    Node,
    SurveyNode,
    TextNode,
    YouTubeNode,
)


def is_empty(node: Node) -> bool:
    match node:
        case TextNode():
            return node.value == ""
        case CodeNode():
            return node.value == ""
        case LinkNode() | ButtonNode() | HeaderNode() | InfoboxNode():
            return all(is_empty(n) for n in node.content)
        case ItemsListNode():
            return not node.items
        case GridNode():
            return not node.rows
        case SurveyNode():
            return not any(g.options for g in node.groups)
        case ImageNode():
            return node.src == ""
        case YouTubeNode():
            return node.video_id == ""
        case IframeNode() | ImportNode():
            return node.url == ""
        case _:
            assert_never(node)


def mark_blocks(nodes: list[Node]) -> None:
    """Set block_start on every node that opens a new block."""
    prev: int | None = None
    for n in nodes:
        key = n._block
        n.block_start = key is None or key != prev
        prev = key


def _mergeable(prev: Node, n: Node) -> bool:
    if n.block_start or prev._block != n._block or prev.env != n.env:
        return False
    match prev, n:
        case TextNode(), TextNode():
            return (prev.bold, prev.italic, prev.code) == (n.bold, n.italic, n.code)
        case CodeNode(), CodeNode():
            return (prev.term, prev.lang) == (n.term, n.lang)
    return False


def compact(nodes: list[Node]) -> list[Node]:
    """Merge adjacent text runs and code runs of the same block."""
    res: list[Node] = []
    for n in nodes:
        if res and _mergeable(res[-1], n):
            prev = res[-1]
            res[-1] = prev.model_copy(update={"value": prev.value + n.value})
            continue
        res.append(n)
    return res


def postprocess(nodes: list[Node]) -> list[Node]:
    """Drop empty nodes, mark block boundaries and merge compatible fragments.

    Idempotent: running it on its own output returns an equal sequence.
    """
    nodes = [n for n in nodes if not is_empty(n)]
    mark_blocks(nodes)
    return compact(nodes)
