"""Transform the rendered markup tree to a Document.

Walks the BeautifulSoup tree depth first. Every node is classified by an
ordered list of predicates: recognized constructs become typed content nodes,
meta instructions change the walk state, and anything else is a transparent
wrapper whose children are walked in its place.

Malformed constructs never abort the walk. A builder that cannot produce a
node returns None and the construct is left out of the output; only the
conditions in stepdoc.exceptions are fatal.
"""

import math
import re
from collections.abc import Callable, Collection, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import timedelta
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup, Tag
from bs4.element import PageElement
from loguru import logger

from stepdoc.config import DEFAULT_IFRAME_ALLOWLIST
from stepdoc.exceptions import ForbiddenFragmentImportsError, ForbiddenFragmentStepsError, MissingBodyError
from stepdoc.markdown.instructions import (
    META_DURATION,
    META_ENVIRONMENT,
    is_meta,
    parse_duration,
    parse_environment,
    round_duration,
    take_instructions,
)
from stepdoc.markdown.markup import (
    HEADER_TAGS,
    attr,
    code_language,
    count_direct,
    find_block_parent,
    find_body,
    first_child,
    infobox_kind,
    is_bold,
    is_button,
    is_code,
    is_console,
    is_header,
    is_image,
    is_import,
    is_infobox,
    is_inline_text,
    is_italic,
    is_link,
    is_list,
    is_survey,
    is_table,
    is_tag,
    is_text,
    is_youtube,
    next_tag_sibling,
    slugify,
    stringify,
)
from stepdoc.markdown.metadata import parse_metadata
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
from stepdoc.markdown.postprocess import postprocess
from stepdoc.markdown.preprocess import import_target

# Header texts (lowercased) with special meaning
CHECKLIST_HEADERS = {"what you'll learn", "what we've covered"}
FAQ_HEADERS = {"frequently asked questions"}

_YOUTUBE_WATCH = re.compile(r"youtube\.com/watch\?(\S+)")


def _to_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class DocState:
    """Walk state for a single parse. Never shared between parses."""

    doc: Document = field(default_factory=Document)
    total_duration: timedelta = field(default_factory=timedelta)
    survey: int = 0  # last used survey number
    step: Step | None = None
    last_node: Node | None = None
    env: list[str] = field(default_factory=list)
    cur: PageElement | None = None
    stack: list[PageElement | None] = field(default_factory=list)
    fragment: bool = False

    @contextmanager
    def descend(self, node: PageElement | None = None) -> Iterator[None]:
        """Save the cursor, optionally moving it to node. The cursor is restored on exit."""
        self.stack.append(self.cur)
        if node is not None:
            self.cur = node
        try:
            yield
        finally:
            self.cur = self.stack.pop()

    def tag(self, node: Node) -> None:
        """Apply the active environment to a node as it is emitted."""
        if self.env:
            node.add_env(self.env)

    def append(self, *nodes: Node) -> None:
        if self.step is None or not nodes:
            return
        self.step.content.extend(nodes)
        self.last_node = nodes[-1]


Builder = Callable[[DocState], Node | None]


class DocumentTransformer:
    """Transforms a markup tree to a Document, or to a flat node list for fragments."""

    def __init__(
        self,
        pass_metadata: Collection[str] = (),
        iframe_allowlist: Collection[str] = DEFAULT_IFRAME_ALLOWLIST,
    ):
        self.pass_metadata = set(pass_metadata)
        self.iframe_allowlist = tuple(iframe_allowlist)
        # Classifiers in priority order; the first match builds the node
        self._handlers: list[tuple[Callable[[PageElement], bool], Builder]] = [
            (is_inline_text, self._text),
            (is_link, self._link),
            (is_image, self._image),
            (is_button, self._button),
            (is_header, self._header),
            (is_list, self._list),
            (is_console, lambda ds: self._code(ds, term=True)),
            (is_code, lambda ds: self._code(ds, term=False)),
            (is_infobox, self._infobox),
            (is_survey, self._survey),
            (is_table, self._table),
            (is_youtube, self._youtube),
            (is_import, self._import),
        ]

    # === DOCUMENT LEVEL ===

    def transform(self, tree: BeautifulSoup | Tag) -> Document:
        """Transform a full document: title, metadata, then steps."""
        body = find_body(tree)
        if body is None:
            raise MissingBodyError()

        ds = DocState()
        ds.cur = first_child(body)
        while ds.cur is not None:
            cur = ds.cur
            if is_tag(cur, "h1") and not ds.doc.title:
                ds.doc.title = stringify(cur, trim=True)
            elif is_tag(cur, "p") and not ds.doc.id:
                parse_metadata(stringify(cur, keep_newlines=True), ds.doc, self.pass_metadata)
            elif is_tag(cur, "h2"):
                self._new_step(ds)
            elif ds.step is not None:
                # Content before the first step is ignored
                self._parse_top(ds)
            ds.cur = ds.cur.next_sibling

        self._finalize_step(ds.step)
        ds.doc.tags = sorted(set(ds.doc.tags))
        ds.doc.categories = sorted(set(ds.doc.categories))
        ds.doc.duration = ds.total_duration // timedelta(minutes=1)
        return ds.doc

    def transform_fragment(self, tree: BeautifulSoup | Tag) -> list[Node]:
        """Transform a bodiless content region. Steps and imports are forbidden."""
        body = find_body(tree)
        if body is None:
            raise MissingBodyError()

        ds = DocState(fragment=True)
        ds.step = ds.doc.new_step("fragment")
        ds.cur = first_child(body)
        while ds.cur is not None:
            if is_tag(ds.cur, "h1", "h2"):
                raise ForbiddenFragmentStepsError()
            self._parse_top(ds)
            ds.cur = ds.cur.next_sibling

        self._finalize_step(ds.step)
        return ds.step.content

    def _new_step(self, ds: DocState) -> None:
        title = stringify(ds.cur, trim=True)
        if not title:
            return
        self._finalize_step(ds.step)
        ds.step = ds.doc.new_step(title, slug=slugify(title))
        ds.env = []
        ds.last_node = None

    @staticmethod
    def _finalize_step(step: Step | None) -> None:
        if step is None:
            return
        step.tags = sorted(set(step.tags))
        step.content = postprocess(step.content)

    # === TRAVERSAL ===

    def _parse_top(self, ds: DocState) -> None:
        """Parse ds.cur and its subtree, appending the result to the current step."""
        node, accepted = self._parse_node(ds)
        if accepted:
            if node is not None:
                ds.tag(node)
                ds.append(node)
            return
        with ds.descend():
            nodes = self._parse_subtree(ds, tag_env=True)
        ds.append(*postprocess(nodes))

    def _parse_subtree(self, ds: DocState, tag_env: bool = False) -> list[Node]:
        """Parse the children of ds.cur recursively.

        With tag_env, each node is tagged with the environment active when it
        is emitted; builders collecting nested content leave tagging to their
        own node. Moves ds.cur, so callers wrap it in ds.descend().
        """
        nodes: list[Node] = []
        ds.cur = first_child(ds.cur)
        while ds.cur is not None:
            node, accepted = self._parse_node(ds)
            if accepted:
                if node is not None:
                    if tag_env:
                        ds.tag(node)
                    nodes.append(node)
            else:
                with ds.descend():
                    nodes.extend(self._parse_subtree(ds, tag_env))
            ds.cur = ds.cur.next_sibling
        return nodes

    def _parse_node(self, ds: DocState) -> tuple[Node | None, bool]:
        """Parse ds.cur if it is a recognized construct.

        Returns the built node (None when absorbed or empty) and whether the
        construct was accepted. Unaccepted nodes are walked as wrappers.
        """
        cur = ds.cur
        # Rendered markup has newline text between tags; skipping it keeps
        # last-node detection accurate.
        if is_text(cur) and not cur.strip():
            return None, True
        if is_meta(cur):
            return self._meta_step(ds), True
        for matches, build in self._handlers:
            if matches(cur):
                return build(ds), True
        return None, False

    # === INSTRUCTIONS ===

    def _meta_step(self, ds: DocState) -> TextNode | None:
        """Apply the instructions leading ds.cur and its meta siblings.

        Text following the instruction lines is returned as a regular text node.
        """
        while True:
            instructions, rest = take_instructions(stringify(ds.cur, keep_newlines=True))
            for key, value in instructions:
                if key == META_DURATION:
                    self._apply_duration(ds, value)
                elif key == META_ENVIRONMENT:
                    self._apply_environment(ds, value)
            if rest or not is_meta(ds.cur.next_sibling):
                break
            ds.cur = ds.cur.next_sibling

        if not rest:
            return None
        return self._text_node(ds.cur, rest.replace("\n", " "))

    @staticmethod
    def _apply_duration(ds: DocState, value: str) -> None:
        d = round_duration(parse_duration(value))
        if ds.step is not None:
            ds.step.duration = d // timedelta(minutes=1)
        ds.total_duration += d

    @staticmethod
    def _apply_environment(ds: DocState, value: str) -> None:
        ds.env = parse_environment(value)
        if ds.step is not None:
            ds.step.tags.extend(ds.env)
        ds.doc.tags.extend(ds.env)
        if isinstance(ds.last_node, HeaderNode):
            ds.last_node.env = sorted(ds.env)

    # === NODE BUILDERS ===

    def _header(self, ds: DocState) -> HeaderNode | None:
        """Build a header; a non-empty header always resets the environment."""
        with ds.descend():
            nodes = postprocess(self._parse_subtree(ds))
        if not nodes:
            return None
        n = HeaderNode(level=HEADER_TAGS[ds.cur.name], content=nodes)
        text = stringify(ds.cur, trim=True).lower()
        if text in CHECKLIST_HEADERS:
            n.type = "header_check"
        elif text in FAQ_HEADERS:
            n.type = "header_faq"
        ds.env = []
        return n

    def _list(self, ds: DocState) -> ItemsListNode | None:
        list_type = attr(ds.cur, "type")
        if ds.cur.name == "ol" and not list_type:
            list_type = "1"
        n = ItemsListNode(list_type=list_type, start=_to_int(attr(ds.cur, "start"), 0))
        for li in ds.cur.find_all("li", recursive=False):
            with ds.descend(li):
                nodes = postprocess(self._parse_subtree(ds))
            if nodes:
                n.items.append(ListItem(nodes=nodes))
        if not n.items:
            return None
        match ds.last_node:
            case HeaderNode(type="header_check"):
                n.type = "list_check"
            case HeaderNode(type="header_faq"):
                n.type = "list_faq"
        return n

    def _code(self, ds: DocState, term: bool) -> Node | None:
        """Build a code block, or an inline code text node outside <pre>."""
        pre = ds.cur.find_parent("pre")
        if pre is None:
            return self._text(ds)
        value = stringify(ds.cur, keep_newlines=True)
        parent = ds.cur.parent
        if value == "":
            # A lone empty fragment stands for an intentionally blank line
            if count_direct(parent) > 1:
                return None
            value = "\n"
        elif parent.contents[0] is ds.cur and parent.name != "span":
            value = "\n" + value
        n = CodeNode(value=value, term=term, lang=None if term else code_language(ds.cur))
        n._block = id(pre)
        return n

    def _infobox(self, ds: DocState) -> InfoboxNode | None:
        kind = infobox_kind(ds.cur)
        if is_tag(ds.cur, "dt"):
            # The term only marks the kind; content is in the following definition
            dd = next_tag_sibling(ds.cur)
            if not is_tag(dd, "dd"):
                return None
            ds.cur = dd
        with ds.descend():
            nodes = postprocess(self._parse_subtree(ds))
        if not nodes:
            return None
        return InfoboxNode(kind=kind, content=nodes)

    def _table(self, ds: DocState) -> GridNode | None:
        table = ds.cur
        rows: list[list[GridCell]] = []
        for tr in table.find_all("tr"):
            if tr.find_parent("table") is not table:
                continue  # row of a nested table
            with ds.descend(tr):
                row = self._table_row(ds)
            if row:
                rows.append(row)
        if not rows:
            return None
        return GridNode(rows=rows)

    def _table_row(self, ds: DocState) -> list[GridCell]:
        row: list[GridCell] = []
        for td in ds.cur.find_all(["td", "th"], recursive=False):
            with ds.descend(td):
                nodes = postprocess(self._parse_subtree(ds))
            if not nodes:
                continue
            row.append(
                GridCell(
                    colspan=max(_to_int(attr(td, "colspan"), 1), 1),
                    rowspan=max(_to_int(attr(td, "rowspan"), 1), 1),
                    content=nodes,
                )
            )
        return row

    def _survey(self, ds: DocState) -> SurveyNode | None:
        """Build a survey from <name> elements, each followed by <input value="..."> options."""
        groups: list[SurveyGroup] = []
        for el in ds.cur.find_all(["name", "input"]):
            if el.name == "name":
                groups.append(SurveyGroup(name=stringify(el, trim=True)))
            elif groups and el.has_attr("value"):
                groups[-1].options.append(attr(el, "value"))
        groups = [g for g in groups if g.options]
        if not groups:
            return None
        ds.survey += 1
        return SurveyNode(survey_id=f"{ds.doc.id}-{ds.survey}", groups=groups)

    def _image(self, ds: DocState) -> Node | None:
        """Build an image, or an embed when the alt text is an embeddable URL."""
        alt = attr(ds.cur, "alt")
        if m := _YOUTUBE_WATCH.search(alt):
            video_id = parse_qs(m.group(1)).get("v", [""])[0]
            return self._youtube(ds, video_id=video_id)
        if "https://" in alt:
            try:
                host = urlparse(alt).hostname or ""
            except ValueError:
                return None
            if any(host.endswith(domain) for domain in self.iframe_allowlist):
                return self._iframe(alt)

        src = attr(ds.cur, "src")
        if not src:
            return None
        n = ImageNode(src=src, alt=alt or None, title=attr(ds.cur, "title") or None)
        if width := attr(ds.cur, "width"):
            try:
                n.width = float(width)
            except ValueError:
                n.width = math.nan
            if not math.isfinite(n.width):
                logger.debug(f"Dropping image {src!r} with invalid width {width!r}")
                return None
        n._block = find_block_parent(ds.cur)
        return n

    @staticmethod
    def _youtube(ds: DocState, video_id: str = "") -> YouTubeNode | None:
        video_id = video_id or attr(ds.cur, "id")
        if not video_id:
            return None
        return YouTubeNode(video_id=video_id)

    @staticmethod
    def _iframe(url: str) -> IframeNode | None:
        try:
            u = urlparse(url)
        except ValueError:
            return None
        # Allow only https
        if u.scheme != "https":
            logger.debug(f"Dropping non-https frame {url!r}")
            return None
        return IframeNode(url=u.geturl())

    @staticmethod
    def _import(ds: DocState) -> ImportNode | None:
        if ds.fragment:
            raise ForbiddenFragmentImportsError()
        url = import_target(str(ds.cur))
        return ImportNode(url=url) if url else None

    def _button(self, ds: DocState) -> Node | None:
        """Build a link wrapping a button, or plain text when there is no link."""
        a = ds.cur.find("a")
        if a is None:
            return self._text(ds)
        href = attr(a, "href")
        if not href:
            return None
        with ds.descend(a):
            nodes = postprocess(self._parse_subtree(ds))
        if not nodes:
            return None
        download = stringify(a, trim=True).lower().startswith("download ")
        btn = ButtonNode(colored=True, raised=True, download=download, content=nodes)
        n = LinkNode(url=href, content=[btn])
        n._block = find_block_parent(ds.cur)
        return n

    def _link(self, ds: DocState) -> LinkNode | None:
        href = attr(ds.cur, "href")
        if not href:
            return None
        with ds.descend():
            nodes = self._parse_subtree(ds)

        # Apply styles of the enclosing element to the link text
        outside_bold = is_bold(ds.cur.parent)
        outside_italic = is_italic(ds.cur.parent)
        for child in nodes:
            if isinstance(child, TextNode):
                child.bold = child.bold or outside_bold
                child.italic = child.italic or outside_italic

        n = LinkNode(
            url=href,
            name=attr(ds.cur, "name") or None,
            target=attr(ds.cur, "target") or None,
            content=postprocess(nodes),
        )
        n._block = find_block_parent(ds.cur)
        return n

    def _text(self, ds: DocState) -> Node | None:
        cur = ds.cur
        if isinstance(cur, Tag) and (a := cur.find("a")) is not None:
            with ds.descend(a):
                link = self._link(ds)
            if link is not None:
                link._block = find_block_parent(cur)
                return link

        value = stringify(cur)
        if not value.strip() and not is_tag(cur, "br"):
            return None
        return self._text_node(cur, value)

    @staticmethod
    def _text_node(cur: PageElement, value: str) -> TextNode:
        n = TextNode(
            value=value,
            bold=is_bold(cur),
            italic=is_italic(cur),
            code=is_code(cur) or is_console(cur),
        )
        n._block = find_block_parent(cur)
        return n


def transform_to_document(
    tree: BeautifulSoup | Tag,
    pass_metadata: Collection[str] = (),
    iframe_allowlist: Collection[str] = DEFAULT_IFRAME_ALLOWLIST,
) -> Document:
    """Transform a markup tree to a Document."""
    return DocumentTransformer(pass_metadata=pass_metadata, iframe_allowlist=iframe_allowlist).transform(tree)


def transform_to_fragment(
    tree: BeautifulSoup | Tag,
    iframe_allowlist: Collection[str] = DEFAULT_IFRAME_ALLOWLIST,
) -> list[Node]:
    """Transform a markup tree holding a fragment to a flat node list."""
    return DocumentTransformer(iframe_allowlist=iframe_allowlist).transform_fragment(tree)
