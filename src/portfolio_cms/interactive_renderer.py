"""
Interactive content renderer for stored rich-HTML.

Turns a stored HTML string into the markup placed on a public page,
substituting the custom embeds with their live mount points:

- Fast path: no embed names present, the HTML is returned unchanged.
- 3D scene: only the scene mount is rendered, at the marker's height.
- HTML snippets: the decoded snippet bodies are concatenated in order.

The transformation is a pure function of its input (no randomness, no
environment lookups) so the server render and the browser hydration of the
same content always agree.

Known limitation: when a 3D scene or snippet marker is present, the markup
around it is not rendered.
"""

import logging
import re
from dataclasses import dataclass
from typing import Literal, Optional

from .content_tree import (
    HTML_SNIPPET_PATTERN,
    THREE_JS_PATTERN,
    decode_entities,
    has_custom_blocks,
    parse_attributes,
    parse_height,
)

logger = logging.getLogger(__name__)


RenderMode = Literal["fast", "three_js", "snippet"]

# Document wrapper tags. The html pattern refuses names continuing with a
# hyphen so <html-snippet> survives.
_DOCTYPE = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)
_HTML_TAG = re.compile(r"<\s*/?\s*html(?!-)(?:\s[^>]*)?>", re.IGNORECASE)
_HEAD_TAG = re.compile(r"<\s*/?\s*head(?:\s[^>]*)?>", re.IGNORECASE)
_BODY_TAG = re.compile(r"<\s*/?\s*body(?:\s[^>]*)?>", re.IGNORECASE)


@dataclass(frozen=True)
class RenderResult:
    """Markup produced for a stored document, and which path produced it."""
    mode: RenderMode
    html: str
    scene_height: Optional[int] = None


def strip_html_wrappers(content: str) -> str:
    """
    Remove <!DOCTYPE>, <html>, <head> and <body> tags, keeping their contents.

    Tolerates attributes and stray whitespace inside the tag (e.g.
    "<  html  >", "<  /  html  >"). Custom tags such as <html-snippet> are
    left alone.
    """
    content = _DOCTYPE.sub("", content)
    content = _HTML_TAG.sub("", content)
    content = _HEAD_TAG.sub("", content)
    return _BODY_TAG.sub("", content)


def render_three_js_scene(height: int) -> str:
    """Mount point picked up by the client-side 3D scene script."""
    return (
        f'<div class="three-js-scene" data-three-js-scene="" '
        f'data-height="{height}" style="height: {height}px;"></div>'
    )


def extract_snippets(content: str) -> list[str]:
    """Decoded, wrapper-stripped bodies of every snippet marker, in order."""
    fragments = []
    for match in HTML_SNIPPET_PATTERN.finditer(content):
        encoded = parse_attributes(match.group(1)).get("html")
        if not encoded:
            continue
        fragments.append(strip_html_wrappers(decode_entities(encoded)))
    return fragments


def render_interactive(content: Optional[str]) -> RenderResult:
    """
    Render stored rich-HTML for display.

    Args:
        content: Stored HTML string (None is treated as empty).

    Returns:
        RenderResult with the chosen path and the markup to emit.
    """
    content = content or ""

    if not has_custom_blocks(content):
        return RenderResult(mode="fast", html=content)

    cleaned = strip_html_wrappers(content)

    scene = THREE_JS_PATTERN.search(cleaned)
    if scene is not None:
        height = parse_height(parse_attributes(scene.group(1)).get("height"))
        return RenderResult(mode="three_js", html=render_three_js_scene(height), scene_height=height)

    fragments = extract_snippets(cleaned)
    if fragments:
        return RenderResult(mode="snippet", html="".join(fragments))

    logger.warning("Snippet marker without content; rendering document as plain HTML")
    return RenderResult(mode="fast", html=cleaned)


def render_interactive_html(content: Optional[str]) -> str:
    """Shortcut returning only the markup."""
    return render_interactive(content).html
