"""Data models for the structured tutorial document.

A Document is an ordered list of Steps, each holding an ordered list of Nodes.
Every node variant shares the same header: its `type`, whether it starts a
new block, and the environment tags it applies to. The private block key is
only meaningful while the document is being built (see postprocess.py).
"""

from typing import Literal

from pydantic import BaseModel, Field, PrivateAttr

# === NODE HEADER ===


class NodeBase(BaseModel):
    block_start: bool = False
    env: list[str] = Field(default_factory=list)

    # Identity of the enclosing block element; None for standalone nodes.
    _block: int | None = PrivateAttr(default=None)

    def add_env(self, tags: list[str]) -> None:
        self.env = sorted(set(self.env) | set(tags))


# === INLINE NODES ===


class TextNode(NodeBase):
    type: Literal["text"] = "text"
    value: str
    bold: bool = False
    italic: bool = False
    code: bool = False


class LinkNode(NodeBase):
    type: Literal["url"] = "url"
    url: str
    name: str | None = None
    target: str | None = None
    content: list["Node"] = Field(default_factory=list)


class ImageNode(NodeBase):
    type: Literal["image"] = "image"
    src: str
    alt: str | None = None
    title: str | None = None
    width: float | None = None


class ButtonNode(NodeBase):
    type: Literal["button"] = "button"
    colored: bool = False
    raised: bool = False
    download: bool = False
    content: list["Node"] = Field(default_factory=list)


class CodeNode(NodeBase):
    type: Literal["code"] = "code"
    value: str
    term: bool = False  # terminal / console session
    lang: str | None = None


# === EMBEDS ===


class YouTubeNode(NodeBase):
    type: Literal["youtube"] = "youtube"
    video_id: str


class IframeNode(NodeBase):
    type: Literal["iframe"] = "iframe"
    url: str


class ImportNode(NodeBase):
    """Reference to another source document. Never expanded."""

    type: Literal["import"] = "import"
    url: str


# === BLOCK NODES ===


class HeaderNode(NodeBase):
    type: Literal["header", "header_check", "header_faq"] = "header"
    level: int
    content: list["Node"] = Field(default_factory=list)


class ListItem(BaseModel):
    nodes: list["Node"] = Field(default_factory=list)


class ItemsListNode(NodeBase):
    type: Literal["list", "list_check", "list_faq"] = "list"
    list_type: str = ""  # "" for unordered, "1", "a", "i", ... for ordered
    start: int = 0
    items: list[ListItem] = Field(default_factory=list)


class InfoboxNode(NodeBase):
    type: Literal["infobox"] = "infobox"
    kind: Literal["positive", "negative"] = "positive"
    content: list["Node"] = Field(default_factory=list)


class GridCell(BaseModel):
    colspan: int = Field(default=1, ge=1)
    rowspan: int = Field(default=1, ge=1)
    content: list["Node"] = Field(default_factory=list)


class GridNode(NodeBase):
    type: Literal["grid"] = "grid"
    rows: list[list[GridCell]] = Field(default_factory=list)


class SurveyGroup(BaseModel):
    name: str
    options: list[str] = Field(default_factory=list)


class SurveyNode(NodeBase):
    type: Literal["survey"] = "survey"
    survey_id: str
    groups: list[SurveyGroup] = Field(default_factory=list)


Node = (
    TextNode
    | LinkNode
    | ImageNode
    | YouTubeNode
    | IframeNode
    | ButtonNode
    | HeaderNode
    | ItemsListNode
    | CodeNode
    | InfoboxNode
    | GridNode
    | SurveyNode
    | ImportNode
)

# Update forward references
LinkNode.model_rebuild()
ButtonNode.model_rebuild()
HeaderNode.model_rebuild()
ListItem.model_rebuild()
ItemsListNode.model_rebuild()
InfoboxNode.model_rebuild()
GridCell.model_rebuild()
GridNode.model_rebuild()


# === DOCUMENT ===


class Step(BaseModel):
    title: str
    slug: str = ""
    content: list[Node] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    duration: int = 0  # whole minutes


class Document(BaseModel):
    """The full structured representation of one tutorial source."""

    title: str = ""
    id: str = ""
    steps: list[Step] = Field(default_factory=list)
    duration: int = 0  # whole minutes, sum of step durations
    authors: str = ""
    badge_path: str = ""
    summary: str = ""
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    status: list[str] | None = None
    feedback: str = ""
    ga: str = ""
    extra: dict[str, str] = Field(default_factory=dict)

    def new_step(self, title: str, slug: str = "") -> Step:
        step = Step(title=title, slug=slug)
        self.steps.append(step)
        return step
