"""Helpers over the BeautifulSoup markup tree: node predicates and stringification."""

import re

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, PageElement, PreformattedString

from stepdoc.markdown.preprocess import import_target

HEADER_TAGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}

# Elements that delimit a block of inline content
BLOCK_TAGS = {"p", "li", "pre", "td", "th", "dd", "dt", "blockquote", "div", "aside", *HEADER_TAGS}

CONSOLE_CLASSES = {"language-console"}
INFOBOX_KINDS = {"positive", "negative"}

_LANGUAGE_CLASS = re.compile(r"language-(.+)")

# Typographer output mapped back to plain ascii
_TEXT_CLEANER = str.maketrans(
    {
        "\u2018": "'",
        "\u2019": "'",
        "\u201c": '"',
        "\u201d": '"',
        "\u2026": "...",
        "\u00a0": " ",
        "\u0085": " ",
    }
)


def clean_text(text: str) -> str:
    return text.translate(_TEXT_CLEANER)


def slugify(text: str) -> str:
    """Lowercase text and collapse every run of non-alphanumerics into a single hyphen."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


# === TREE NAVIGATION ===


def find_body(root: BeautifulSoup | Tag) -> Tag | None:
    if isinstance(root, Tag) and root.name == "body":
        return root
    return root.find("body")


def first_child(node: PageElement) -> PageElement | None:
    if isinstance(node, Tag) and node.contents:
        return node.contents[0]
    return None


def find_block_parent(node: PageElement) -> int | None:
    """Return the identity of the nearest enclosing block element, if any."""
    parent = node.parent
    while parent is not None:
        if parent.name in BLOCK_TAGS:
            return id(parent)
        parent = parent.parent
    return None


def attr(node: PageElement, key: str) -> str:
    """Return attribute `key` of an element as a string ("" when missing)."""
    if not isinstance(node, Tag):
        return ""
    value = node.get(key)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value


def classes(node: PageElement) -> list[str]:
    if not isinstance(node, Tag):
        return []
    value = node.get("class") or []
    return value.split() if isinstance(value, str) else list(value)


def count_direct(node: PageElement | None) -> int:
    if not isinstance(node, Tag):
        return 0
    return len(node.contents)


# === STRINGIFY ===


def stringify(node: PageElement, trim: bool = False, keep_newlines: bool = False) -> str:
    """Concatenate the text content of node.

    Soft line breaks inside text become spaces unless keep_newlines is set;
    <br> always yields a newline. Comments contribute nothing.
    """
    if is_text(node):
        s = clean_text(str(node))
        if not keep_newlines:
            s = s.replace("\n", " ")
    elif isinstance(node, Tag):
        if node.name == "br":
            s = "\n"
        else:
            s = "".join(stringify(c, keep_newlines=keep_newlines) for c in node.contents)
    else:
        s = ""
    return s.strip() if trim else s


# === PREDICATES ===


def is_text(node: PageElement) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def is_tag(node: PageElement, *names: str) -> bool:
    return isinstance(node, Tag) and node.name in names


def _styled(node: PageElement, names: set[str]) -> bool:
    cur = node if isinstance(node, Tag) else node.parent
    while cur is not None and cur.name not in BLOCK_TAGS:
        if cur.name in names:
            return True
        cur = cur.parent
    return False


def is_bold(node: PageElement) -> bool:
    return _styled(node, {"strong", "b"})


def is_italic(node: PageElement) -> bool:
    return _styled(node, {"em", "i"})


def is_console(node: PageElement) -> bool:
    if is_text(node):
        node = node.parent
    return is_tag(node, "code") and any(c in CONSOLE_CLASSES for c in classes(node))


def is_code(node: PageElement) -> bool:
    if is_text(node):
        node = node.parent
    return is_tag(node, "code") and not is_console(node)


def code_language(node: PageElement) -> str | None:
    for c in classes(node):
        if m := _LANGUAGE_CLASS.fullmatch(c):
            return m.group(1)
    return None


def is_header(node: PageElement) -> bool:
    return is_tag(node, *HEADER_TAGS)


def is_list(node: PageElement) -> bool:
    return is_tag(node, "ul", "ol")


def is_button(node: PageElement) -> bool:
    return is_tag(node, "button")


def is_table(node: PageElement) -> bool:
    return is_tag(node, "table")


def is_youtube(node: PageElement) -> bool:
    return is_tag(node, "video")


def infobox_kind(node: PageElement) -> str | None:
    """Return "positive"/"negative" for an infobox marker element, else None.

    Two spellings are recognized: a definition term whose text is the kind
    (the definition that follows holds the content), and an <aside> carrying
    the kind as a class.
    """
    if is_tag(node, "dt"):
        kind = stringify(node, trim=True).lower()
        return kind if kind in INFOBOX_KINDS else None
    if is_tag(node, "aside"):
        return next((c for c in classes(node) if c in INFOBOX_KINDS), None)
    return None


def is_infobox(node: PageElement) -> bool:
    return infobox_kind(node) is not None


def is_survey(node: PageElement) -> bool:
    return is_tag(node, "form") and node.find("name") is not None and node.find("input") is not None


def is_inline_text(node: PageElement) -> bool:
    return is_text(node) or is_tag(node, "br")


def is_link(node: PageElement) -> bool:
    return is_tag(node, "a")


def is_image(node: PageElement) -> bool:
    return is_tag(node, "img")


def is_import(node: PageElement) -> bool:
    return isinstance(node, Comment) and import_target(str(node)) is not None


def next_tag_sibling(node: PageElement) -> Tag | None:
    """Return the next element sibling, skipping whitespace-only text."""
    for sib in node.next_siblings:
        if isinstance(sib, Tag):
            return sib
        if is_text(sib) and sib.strip():
            return None
    return None
