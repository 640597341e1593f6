"""
Block content renderer.

Maps an ordered block sequence to HTML markup. Rendering is pure: no
fetches, no state, same input always gives the same output. Unknown block
types render nothing so content written by other editor versions still
displays.
"""

import html
from typing import Iterable, Optional

from .models import Block


def _text(value: Optional[str]) -> str:
    return html.escape(value or "")


def _attr(value: Optional[str]) -> str:
    return html.escape(value or "", quote=True)


def render_list_items(block: Block) -> str:
    """Render a list container's children as <li> items."""
    return "".join(f"<li>{_text(child.text)}</li>" for child in block.children)


def render_image(block: Block) -> str:
    """Render an image block; an image without src renders nothing."""
    if not block.src:
        return ""
    parts = [
        '<figure class="block-image">',
        f'<img src="{_attr(block.src)}" alt="{_attr(block.alt or "Image")}" loading="lazy">',
    ]
    if block.caption:
        parts.append(f"<figcaption>{_text(block.caption)}</figcaption>")
    parts.append("</figure>")
    return "".join(parts)


def render_block(block: Block) -> str:
    """
    Render a single block.

    Args:
        block: Block to render.

    Returns:
        HTML for the block, or an empty string for unknown types.
    """
    block_type = block.type
    if block_type in ("h1", "h2", "h3"):
        return f"<{block_type}>{_text(block.text)}</{block_type}>"
    if block_type == "p":
        return f"<p>{_text(block.text)}</p>"
    if block_type == "ul":
        return f"<ul>{render_list_items(block)}</ul>"
    if block_type == "ol":
        return f"<ol>{render_list_items(block)}</ol>"
    if block_type == "image":
        return render_image(block)
    if block_type == "divider":
        return "<hr>"
    if block_type == "code":
        return f"<pre><code>{_text(block.text)}</code></pre>"
    return ""


def render_blocks(blocks: Optional[Iterable[Block]]) -> str:
    """
    Render a block sequence in document order.

    Args:
        blocks: Blocks to render. Anything that is not a list renders nothing.

    Returns:
        HTML wrapped in a single container element, or "" for no input.
    """
    if not isinstance(blocks, list):
        return ""
    body = "\n".join(filter(None, (render_block(block) for block in blocks)))
    return f'<div class="block-content">\n{body}\n</div>'
