"""
Typed tree for rich-HTML content.

A rich document is a sequence of nodes: runs of ordinary markup kept
verbatim, and the two custom embeds. Parsing recognizes the embeds by their
exact tag vocabulary:

    <three-js-block height="300"></three-js-block>
    <html-snippet html="&lt;div&gt;...&lt;/div&gt;"></html-snippet>

Serializing a parsed document gives back markup with the same embeds, so the
stored format stays a plain HTML string.
"""

import html
import re
from dataclasses import dataclass
from typing import Optional, Union


THREE_JS_TAG = "three-js-block"
HTML_SNIPPET_TAG = "html-snippet"

DEFAULT_SCENE_HEIGHT = 300
MIN_SCENE_HEIGHT = 200
MAX_SCENE_HEIGHT = 600

# Opening tag (optionally self-closed) plus an optional matching close tag.
# The tag name must not continue with a word character or hyphen.
THREE_JS_PATTERN = re.compile(
    r"<\s*three-js-block(?![\w-])([^>]*)>(?:\s*<\s*/\s*three-js-block\s*>)?",
    re.IGNORECASE,
)
HTML_SNIPPET_PATTERN = re.compile(
    r"<\s*html-snippet(?![\w-])([^>]*)>(?:\s*<\s*/\s*html-snippet\s*>)?",
    re.IGNORECASE,
)
MARKER_PATTERN = re.compile(
    r"<\s*(three-js-block|html-snippet)(?![\w-])([^>]*)>(?:\s*<\s*/\s*\1\s*>)?",
    re.IGNORECASE,
)

_ATTR_PATTERN = re.compile(
    r"""([\w:-]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>/]+))""",
)
_LEADING_INT = re.compile(r"\s*(\d+)")


def parse_attributes(raw: str) -> dict[str, str]:
    """Parse tag attributes into a dict (names lowercased, values raw)."""
    attrs: dict[str, str] = {}
    for match in _ATTR_PATTERN.finditer(raw or ""):
        name = match.group(1).lower()
        value = next((g for g in match.groups()[1:] if g is not None), "")
        attrs.setdefault(name, value)
    return attrs


def parse_height(value: Optional[str], default: int = DEFAULT_SCENE_HEIGHT) -> int:
    """Read an integer height attribute; absent or non-numeric gives the default."""
    if value is None:
        return default
    match = _LEADING_INT.match(value)
    if not match:
        return default
    height = int(match.group(1))
    return height if height > 0 else default


def decode_entities(value: str) -> str:
    """
    Decode an entity-encoded attribute value.

    Handles &lt; &gt; &quot; &#39; &amp; and every other HTML entity.
    """
    return html.unescape(value)


def encode_attribute(value: str) -> str:
    """Entity-encode a value for use inside a double-quoted attribute."""
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


@dataclass
class MarkupNode:
    """Ordinary HTML kept verbatim."""
    html: str
    kind: str = "markup"


@dataclass
class ThreeJsSceneNode:
    """An embedded 3D scene of a given pixel height."""
    height: int = DEFAULT_SCENE_HEIGHT
    kind: str = "three_js"

    def clamp_height(self) -> None:
        """Keep the height within the range the editor allows when resizing."""
        self.height = max(MIN_SCENE_HEIGHT, min(MAX_SCENE_HEIGHT, int(self.height)))


@dataclass
class HtmlSnippetNode:
    """An embedded raw-HTML widget (decoded HTML)."""
    html: str = ""
    kind: str = "html_snippet"


ContentNode = Union[MarkupNode, ThreeJsSceneNode, HtmlSnippetNode]


def parse_rich_content(document: str) -> list[ContentNode]:
    """
    Split a rich-HTML document into typed nodes in document order.

    Args:
        document: Stored HTML string.

    Returns:
        List of nodes. Markup between embeds becomes MarkupNode runs;
        empty runs are dropped.
    """
    nodes: list[ContentNode] = []
    position = 0
    for match in MARKER_PATTERN.finditer(document or ""):
        if match.start() > position:
            nodes.append(MarkupNode(document[position:match.start()]))

        attrs = parse_attributes(match.group(2))
        if match.group(1).lower() == THREE_JS_TAG:
            nodes.append(ThreeJsSceneNode(height=parse_height(attrs.get("height"))))
        else:
            nodes.append(HtmlSnippetNode(html=decode_entities(attrs.get("html", ""))))
        position = match.end()

    if document and position < len(document):
        nodes.append(MarkupNode(document[position:]))
    return nodes


def serialize_node(node: ContentNode) -> str:
    """Serialize a single node back to markup."""
    if isinstance(node, ThreeJsSceneNode):
        return f'<{THREE_JS_TAG} height="{int(node.height)}"></{THREE_JS_TAG}>'
    if isinstance(node, HtmlSnippetNode):
        return f'<{HTML_SNIPPET_TAG} html="{encode_attribute(node.html)}"></{HTML_SNIPPET_TAG}>'
    return node.html


def serialize_rich_content(nodes: list[ContentNode]) -> str:
    """Serialize typed nodes to the stored HTML string."""
    return "".join(serialize_node(node) for node in nodes)


def has_custom_blocks(document: str) -> bool:
    """Cheap check for either embed name anywhere in the document."""
    return THREE_JS_TAG in document or HTML_SNIPPET_TAG in document
