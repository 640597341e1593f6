"""
Rich-text editor document model.

Holds an author's rich-HTML document as a typed node list (see
content_tree) with an insertion cursor, and exposes the editing operations
of the admin editor: structural inserts, inline marks and links, the two
custom embeds, image upload on toolbar/drop/paste, undo/redo and syncing
content pushed in by the host.

Every edit serializes the document and hands the HTML string to
`on_change`. Content pushed in through `set_content` does not.
"""

import copy
import html
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from bs4 import BeautifulSoup, NavigableString

from .content_tree import (
    DEFAULT_SCENE_HEIGHT,
    ContentNode,
    HtmlSnippetNode,
    MarkupNode,
    ThreeJsSceneNode,
    parse_rich_content,
    serialize_rich_content,
)
from .uploads import AssetUploadClient, UploadError, UploadFile, UploadedAsset

logger = logging.getLogger(__name__)


DEFAULT_PLACEHOLDER = "Type '/' for commands, or just start writing..."
HEADING_LEVELS = (1, 2, 3)
HISTORY_LIMIT = 100

# Inline marks and the tag each one wraps text in
MARK_TAGS = {
    "bold": "strong",
    "italic": "em",
    "strike": "s",
    "highlight": "mark",
}


@dataclass(frozen=True)
class EditorExtension:
    """One entry of the editor's extension set."""
    name: str
    options: dict = field(default_factory=dict)


def default_extensions(placeholder: str = DEFAULT_PLACEHOLDER) -> list[EditorExtension]:
    """The fixed extension set the admin editor is configured with."""
    return [
        EditorExtension("starter_kit", {"heading": {"levels": list(HEADING_LEVELS)}, "code_block": False}),
        EditorExtension("code_block_lowlight", {"languages": "all"}),
        EditorExtension("image", {"inline": True, "allow_base64": True}),
        EditorExtension("placeholder", {"placeholder": placeholder}),
        EditorExtension("highlight", {"multicolor": True}),
        EditorExtension("text_style"),
        EditorExtension("color"),
        EditorExtension("link", {"open_on_click": False}),
        EditorExtension("three_js_block", {"atom": True, "draggable": True, "height": DEFAULT_SCENE_HEIGHT}),
        EditorExtension("html_block", {"atom": True, "draggable": True, "html": ""}),
        EditorExtension("slash_command", {"char": "/"}),
    ]


class RichTextEditor:
    """
    Editable rich-HTML document.

    Args:
        content: Initial HTML.
        on_change: Called with the serialized HTML after every edit.
        uploader: Upload client for inline images. Without one, image
            uploads are abandoned.
        placeholder: Placeholder text shown for an empty document.
    """

    def __init__(
        self,
        content: str = "",
        on_change: Optional[Callable[[str], None]] = None,
        uploader: Optional[AssetUploadClient] = None,
        placeholder: str = DEFAULT_PLACEHOLDER,
    ):
        self._nodes: list[ContentNode] = parse_rich_content(content)
        self._cursor = len(self._nodes)
        self._on_change = on_change
        self.uploader = uploader
        self.extensions = default_extensions(placeholder)
        self._undo_stack: list[tuple[list[ContentNode], int]] = []
        self._redo_stack: list[tuple[list[ContentNode], int]] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def html(self) -> str:
        """Current document as a stored HTML string."""
        return serialize_rich_content(self._nodes)

    @property
    def nodes(self) -> list[ContentNode]:
        """Copy of the current node list."""
        return copy.deepcopy(self._nodes)

    @property
    def cursor(self) -> int:
        """Top-level node index where the next insert lands."""
        return self._cursor

    def set_cursor(self, index: int) -> None:
        """Move the insertion cursor (clamped to the document)."""
        self._cursor = max(0, min(len(self._nodes), index))

    @property
    def is_empty(self) -> bool:
        """Check if the document has no content."""
        return not self.html.strip()

    @property
    def plain_text(self) -> str:
        """Visible text of the ordinary markup, whitespace-collapsed."""
        markup = "".join(node.html for node in self._nodes if isinstance(node, MarkupNode))
        text = BeautifulSoup(markup, "html.parser").get_text(" ")
        return " ".join(text.split())

    def _snapshot(self) -> tuple[list[ContentNode], int]:
        return copy.deepcopy(self._nodes), self._cursor

    def _commit(self, nodes: list[ContentNode], cursor: Optional[int] = None) -> None:
        self._undo_stack.append(self._snapshot())
        if len(self._undo_stack) > HISTORY_LIMIT:
            self._undo_stack.pop(0)
        self._redo_stack.clear()
        self._nodes = nodes
        self.set_cursor(len(nodes) if cursor is None else cursor)
        self._emit()

    def _emit(self) -> None:
        if self._on_change is not None:
            self._on_change(self.html)

    # ------------------------------------------------------------------
    # Whole-document updates
    # ------------------------------------------------------------------

    def edit(self, content: str) -> None:
        """Replace the document with an author's edit."""
        self._commit(parse_rich_content(content))

    def set_content(self, content: str) -> bool:
        """
        Sync content pushed in by the host.

        The document is replaced only when `content`, once normalized, differs
        from the current serialized state, so in-progress edits are not clobbered
        and echoing our own change back does not loop.

        Returns:
            True if the document was replaced.
        """
        nodes = parse_rich_content(content or "")
        if serialize_rich_content(nodes) == self.html:
            return False
        self._nodes = nodes
        self._cursor = len(self._nodes)
        return True

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def undo(self) -> bool:
        """Restore the previous document state."""
        if not self._undo_stack:
            return False
        self._redo_stack.append(self._snapshot())
        self._nodes, self._cursor = self._undo_stack.pop()
        self._emit()
        return True

    def redo(self) -> bool:
        """Re-apply the last undone state."""
        if not self._redo_stack:
            return False
        self._undo_stack.append(self._snapshot())
        self._nodes, self._cursor = self._redo_stack.pop()
        self._emit()
        return True

    # ------------------------------------------------------------------
    # Structural inserts
    # ------------------------------------------------------------------

    def insert_node(self, node: ContentNode) -> None:
        """Insert a node at the cursor and move the cursor past it."""
        nodes = list(self._nodes)
        nodes.insert(self._cursor, node)
        self._commit(nodes, self._cursor + 1)

    def insert_markup(self, markup: str) -> None:
        self.insert_node(MarkupNode(markup))

    def insert_paragraph(self, text: str = "") -> None:
        self.insert_markup(f"<p>{html.escape(text)}</p>")

    def insert_heading(self, level: int, text: str = "") -> None:
        """Insert a heading; only levels 1-3 are enabled."""
        if level not in HEADING_LEVELS:
            raise ValueError(f"heading level must be one of {HEADING_LEVELS}, got {level}")
        self.insert_markup(f"<h{level}>{html.escape(text)}</h{level}>")

    def insert_bullet_list(self, items: Sequence[str] = ("",)) -> None:
        self.insert_markup("<ul>" + "".join(f"<li><p>{html.escape(i)}</p></li>" for i in items) + "</ul>")

    def insert_ordered_list(self, items: Sequence[str] = ("",)) -> None:
        self.insert_markup("<ol>" + "".join(f"<li><p>{html.escape(i)}</p></li>" for i in items) + "</ol>")

    def insert_blockquote(self, text: str = "") -> None:
        self.insert_markup(f"<blockquote><p>{html.escape(text)}</p></blockquote>")

    def insert_code_block(self, code: str = "", language: Optional[str] = None) -> None:
        """Insert a syntax-highlighted code block."""
        css = f' class="language-{html.escape(language, quote=True)}"' if language else ""
        self.insert_markup(f"<pre><code{css}>{html.escape(code)}</code></pre>")

    def insert_horizontal_rule(self) -> None:
        self.insert_markup("<hr>")

    def insert_three_js_block(self, height: int = DEFAULT_SCENE_HEIGHT) -> None:
        self.insert_node(ThreeJsSceneNode(height=height))

    def insert_html_block(self, snippet: str = "") -> None:
        self.insert_node(HtmlSnippetNode(html=snippet))

    def insert_image(self, src: str, alt: Optional[str] = None) -> None:
        alt_attr = f' alt="{html.escape(alt, quote=True)}"' if alt else ""
        self.insert_markup(f'<img src="{html.escape(src, quote=True)}"{alt_attr}>')

    def update_node(self, index: int, **attrs) -> None:
        """
        Update the attributes of a custom embed.

        3D scenes accept `height` (clamped to the resize range); snippets
        accept `html`.
        """
        node = self._nodes[index]
        if isinstance(node, MarkupNode):
            raise TypeError(f"node {index} is ordinary markup, not a custom embed")

        nodes = copy.deepcopy(self._nodes)
        updated = nodes[index]
        if isinstance(updated, ThreeJsSceneNode) and "height" in attrs:
            updated.height = int(attrs["height"])
            updated.clamp_height()
        if isinstance(updated, HtmlSnippetNode) and "html" in attrs:
            updated.html = attrs["html"] or ""
        self._commit(nodes, self._cursor)

    # ------------------------------------------------------------------
    # Inline marks and links
    # ------------------------------------------------------------------

    def toggle_mark(self, text: str, mark: str) -> bool:
        """
        Wrap the first occurrence of `text` in the tag for `mark`.

        Returns:
            True if the text was found.
        """
        if mark not in MARK_TAGS:
            raise ValueError(f"unknown mark '{mark}', expected one of {sorted(MARK_TAGS)}")
        return self._wrap_first(text, MARK_TAGS[mark], {})

    def set_link(self, text: str, url: Optional[str]) -> bool:
        """
        Link the first occurrence of `text`, or unlink it when url is "".

        A url of None means the author cancelled the prompt; nothing changes.
        """
        if url is None:
            return False
        if url == "":
            return self._unlink(text)
        return self._wrap_first(text, "a", {"href": url})

    def _wrap_first(self, text: str, tag_name: str, attrs: dict) -> bool:
        if not text:
            return False
        for index, node in enumerate(self._nodes):
            if not isinstance(node, MarkupNode):
                continue
            soup = BeautifulSoup(node.html, "html.parser")
            for string in soup.find_all(string=True):
                if string.parent is not None and string.parent.name in ("script", "style"):
                    continue
                position = string.find(text)
                if position < 0:
                    continue
                wrapper = soup.new_tag(tag_name, attrs=attrs)
                wrapper.string = text
                before, after = string[:position], string[position + len(text):]
                string.replace_with(wrapper)
                if before:
                    wrapper.insert_before(NavigableString(before))
                if after:
                    wrapper.insert_after(NavigableString(after))
                self._replace_markup(index, str(soup))
                return True
        return False

    def _unlink(self, text: str) -> bool:
        for index, node in enumerate(self._nodes):
            if not isinstance(node, MarkupNode):
                continue
            soup = BeautifulSoup(node.html, "html.parser")
            for link in soup.find_all("a"):
                if link.get_text() == text:
                    link.unwrap()
                    self._replace_markup(index, str(soup))
                    return True
        return False

    def _replace_markup(self, index: int, markup: str) -> None:
        nodes = copy.deepcopy(self._nodes)
        nodes[index] = MarkupNode(markup)
        self._commit(nodes, self._cursor)

    # ------------------------------------------------------------------
    # Image upload (toolbar, drop, paste)
    # ------------------------------------------------------------------

    async def upload_image(self, file: UploadFile) -> Optional[UploadedAsset]:
        """
        Upload an image and insert it at the cursor.

        A failed upload is logged and the insertion abandoned; the document
        is left as it was.
        """
        if self.uploader is None:
            logger.warning(f"No upload client configured; dropping image {file.filename}")
            return None
        try:
            asset = await self.uploader.upload(file)
        except UploadError as e:
            logger.error(f"Error uploading image {file.filename}: {e}")
            return None
        self.insert_image(asset.url)
        return asset

    async def handle_drop(self, files: Sequence[UploadFile], moved: bool = False) -> bool:
        """
        Handle files dropped on the editor.

        Returns:
            True if the drop was consumed (first file is an image).
        """
        if moved or not files or not files[0].is_image:
            return False
        await self.upload_image(files[0])
        return True

    async def handle_paste(self, files: Sequence[UploadFile]) -> bool:
        """Handle files pasted into the editor; same rules as a drop."""
        if not files or not files[0].is_image:
            return False
        await self.upload_image(files[0])
        return True
