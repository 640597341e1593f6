"""Tests for the rich-text editor document model."""

import logging
from unittest.mock import AsyncMock, Mock

import pytest

from portfolio_cms.content_tree import HtmlSnippetNode, ThreeJsSceneNode
from portfolio_cms.rich_editor import RichTextEditor, default_extensions
from portfolio_cms.uploads import UploadedAsset, UploadError, UploadFile


@pytest.fixture
def changes():
    return []


@pytest.fixture
def editor(changes):
    return RichTextEditor("<p>Hello world</p>", on_change=changes.append)


def _image(name: str = "cat.png", content_type: str = "image/png") -> UploadFile:
    return UploadFile(filename=name, content=b"\x89PNG", content_type=content_type)


class TestExtensions:
    """Tests for the configured extension set."""

    def test_extension_names(self):
        """Test that the editor carries the fixed extension set."""
        names = [ext.name for ext in default_extensions()]

        assert names == [
            "starter_kit", "code_block_lowlight", "image", "placeholder", "highlight",
            "text_style", "color", "link", "three_js_block", "html_block", "slash_command",
        ]

    def test_heading_levels_and_link_behaviour(self):
        """Test heading levels 1-3 and links that do not open on click."""
        options = {ext.name: ext.options for ext in default_extensions()}

        assert options["starter_kit"]["heading"]["levels"] == [1, 2, 3]
        assert options["link"]["open_on_click"] is False
        assert options["image"]["allow_base64"] is True


class TestInserts:
    """Tests for structural inserts."""

    def test_insert_heading_emits_html(self, editor, changes):
        """Test that an insert serializes and notifies."""
        editor.insert_heading(2, "Section")

        assert editor.html == "<p>Hello world</p><h2>Section</h2>"
        assert changes == [editor.html]

    def test_heading_level_out_of_range(self, editor):
        """Test that only levels 1-3 are accepted."""
        with pytest.raises(ValueError):
            editor.insert_heading(4)

    def test_insert_at_cursor(self, editor):
        """Test that inserts land at the cursor position."""
        editor.set_cursor(0)
        editor.insert_horizontal_rule()

        assert editor.html == "<hr><p>Hello world</p>"
        assert editor.cursor == 1

    def test_lists_quote_and_code(self):
        """Test list, blockquote and code block markup."""
        editor = RichTextEditor()
        editor.insert_bullet_list(["a"])
        editor.insert_ordered_list(["b"])
        editor.insert_blockquote("q")
        editor.insert_code_block("x < y", language="python")

        assert editor.html == (
            "<ul><li><p>a</p></li></ul>"
            "<ol><li><p>b</p></li></ol>"
            "<blockquote><p>q</p></blockquote>"
            '<pre><code class="language-python">x &lt; y</code></pre>'
        )

    def test_custom_embeds(self):
        """Test inserting a 3D scene and an HTML widget."""
        editor = RichTextEditor()
        editor.insert_three_js_block()
        editor.insert_html_block("<b>x</b>")

        assert editor.html == (
            '<three-js-block height="300"></three-js-block>'
            '<html-snippet html="&lt;b&gt;x&lt;/b&gt;"></html-snippet>'
        )

    def test_update_scene_height_is_clamped(self):
        """Test that resizing a scene stays within 200-600px."""
        editor = RichTextEditor('<three-js-block height="300"></three-js-block>')

        editor.update_node(0, height=1000)

        assert editor.nodes[0] == ThreeJsSceneNode(height=600)

    def test_update_snippet_html(self):
        """Test editing an HTML widget's content."""
        editor = RichTextEditor('<html-snippet html=""></html-snippet>')

        editor.update_node(0, html="<i>new</i>")

        assert editor.nodes[0] == HtmlSnippetNode(html="<i>new</i>")

    def test_update_markup_node_rejected(self, editor):
        """Test that plain markup has no editable attributes."""
        with pytest.raises(TypeError):
            editor.update_node(0, height=300)


class TestMarksAndLinks:
    """Tests for inline marks and links."""

    def test_bold(self, editor):
        """Test wrapping text in a bold mark."""
        assert editor.toggle_mark("world", "bold")
        assert editor.html == "<p>Hello <strong>world</strong></p>"

    def test_unknown_mark(self, editor):
        """Test that unknown marks are rejected."""
        with pytest.raises(ValueError):
            editor.toggle_mark("world", "underline")

    def test_text_not_found(self, editor, changes):
        """Test that a missing selection changes nothing."""
        assert not editor.toggle_mark("absent", "italic")
        assert changes == []

    def test_set_and_unset_link(self, editor):
        """Test that an empty URL removes the link."""
        editor.set_link("world", "https://example.com")
        assert editor.html == '<p>Hello <a href="https://example.com">world</a></p>'

        editor.set_link("world", "")

        assert editor.html == "<p>Hello world</p>"

    def test_cancelled_link_prompt(self, editor, changes):
        """Test that a cancelled prompt is a no-op."""
        assert not editor.set_link("world", None)
        assert changes == []


class TestSyncAndHistory:
    """Tests for external content sync and undo/redo."""

    def test_set_content_same_value_is_noop(self, editor, changes):
        """Test that echoing the current HTML back does not replace it."""
        assert not editor.set_content(editor.html)
        assert changes == []

    def test_set_content_different_value_replaces_silently(self, editor, changes):
        """Test that host content replaces the document without notifying."""
        assert editor.set_content("<p>New</p>")
        assert editor.html == "<p>New</p>"
        assert changes == []

    def test_set_content_compares_normalized_markup(self, editor, changes):
        """Test that equivalent host content does not re-sync the document."""
        assert editor.set_content("<p>Intro</p><three-js-block></three-js-block>")
        editor.set_cursor(0)

        assert not editor.set_content("<p>Intro</p><three-js-block></three-js-block>")
        assert not editor.set_content("<p>Intro</p><three-js-block height='300'></three-js-block>")
        assert editor.cursor == 0
        assert changes == []

    def test_undo_redo(self, editor, changes):
        """Test undoing and redoing an insert."""
        editor.insert_paragraph("More")

        assert editor.undo()
        assert editor.html == "<p>Hello world</p>"
        assert editor.redo()
        assert editor.html == "<p>Hello world</p><p>More</p>"
        assert changes[-1] == editor.html

    def test_new_edit_clears_redo(self, editor):
        """Test that editing after undo drops the redo stack."""
        editor.insert_paragraph("A")
        editor.undo()
        editor.insert_paragraph("B")

        assert not editor.can_redo()
        assert not editor.redo()

    def test_undo_with_empty_history(self):
        """Test undo on a fresh editor."""
        assert not RichTextEditor().undo()

    def test_plain_text(self):
        """Test visible text extraction."""
        editor = RichTextEditor("<h1>Title</h1><p>Body  text</p>")

        assert editor.plain_text == "Title Body text"


class TestImageUpload:
    """Tests for image drop, paste and upload."""

    @pytest.mark.asyncio
    async def test_drop_uploads_and_inserts_image(self, changes):
        """Test that a dropped image is uploaded and inserted."""
        uploader = Mock()
        uploader.upload = AsyncMock(return_value=UploadedAsset(url="/uploads/public-assets/x.png", path="x.png"))
        editor = RichTextEditor(on_change=changes.append, uploader=uploader)

        handled = await editor.handle_drop([_image()])

        assert handled
        assert editor.html == '<img src="/uploads/public-assets/x.png">'
        uploader.upload.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_paste_non_image_is_not_handled(self):
        """Test that non-image files are left to the default behaviour."""
        uploader = Mock()
        uploader.upload = AsyncMock()
        editor = RichTextEditor(uploader=uploader)

        handled = await editor.handle_paste([_image("notes.pdf", "application/pdf")])

        assert not handled
        uploader.upload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_moved_content_drop_is_not_handled(self):
        """Test that internal drag moves are not treated as uploads."""
        editor = RichTextEditor(uploader=Mock())

        assert not await editor.handle_drop([_image()], moved=True)

    @pytest.mark.asyncio
    async def test_failed_upload_abandons_insertion(self, editor, changes, caplog):
        """Test that an upload error leaves the document as it was."""
        editor.uploader = Mock()
        editor.uploader.upload = AsyncMock(side_effect=UploadError("Upload failed (500): boom"))

        with caplog.at_level(logging.ERROR):
            handled = await editor.handle_paste([_image()])

        assert handled
        assert editor.html == "<p>Hello world</p>"
        assert changes == []
        assert "boom" in caplog.text

    @pytest.mark.asyncio
    async def test_no_uploader(self):
        """Test that without an upload client nothing is inserted."""
        editor = RichTextEditor()

        assert await editor.upload_image(_image()) is None
        assert editor.html == ""
