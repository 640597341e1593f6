"""Tests for the interactive content renderer."""

import logging

import pytest

from portfolio_cms.interactive_renderer import (
    extract_snippets,
    render_interactive,
    render_interactive_html,
    strip_html_wrappers,
)


class TestStripHtmlWrappers:
    """Tests for document wrapper stripping."""

    def test_strips_full_document_skeleton(self):
        """Test that doctype, html, head and body tags are removed."""
        assert strip_html_wrappers("<!DOCTYPE html><html><head></head><body>Content</body></html>") == "Content"

    @pytest.mark.parametrize("tag", ["<  html  >", "<  /  html  >", '<html lang="en">', "<BODY class='x'>", "< head >"])
    def test_strips_whitespace_and_attribute_variants(self, tag):
        """Test malformed-whitespace and attribute variants."""
        assert strip_html_wrappers(f"{tag}x") == "x"

    def test_keeps_html_snippet_marker(self):
        """Test that the snippet marker is not mistaken for <html>."""
        marker = '<html-snippet html="&lt;b&gt;x&lt;/b&gt;"></html-snippet>'

        assert strip_html_wrappers(marker) == marker

    def test_keeps_lookalike_tags(self):
        """Test that tags merely starting with head/body are kept."""
        assert strip_html_wrappers("<header>x</header><bodyguard>") == "<header>x</header><bodyguard>"


class TestRenderInteractive:
    """Tests for render_interactive."""

    def test_fast_path_returns_input_unchanged(self):
        """Test that content without markers is rendered verbatim."""
        html = "<p>Hello <b>world</b></p>"

        result = render_interactive(html)

        assert result.mode == "fast"
        assert result.html == html

    def test_fast_path_is_idempotent(self):
        """Test that rendering twice equals rendering once."""
        html = "<h2>Title</h2><p>x</p>"

        once = render_interactive_html(html)

        assert render_interactive_html(once) == once

    def test_none_is_empty(self):
        """Test that missing content renders as empty."""
        assert render_interactive(None).html == ""

    def test_three_js_height_and_dropped_siblings(self):
        """Test that only the 3D scene is emitted at the marker's height."""
        result = render_interactive('<three-js-block height="450"></three-js-block><p>Trailing text</p>')

        assert result.mode == "three_js"
        assert result.scene_height == 450
        assert 'data-height="450"' in result.html
        assert "height: 450px" in result.html
        assert "Trailing text" not in result.html

    @pytest.mark.parametrize("marker", [
        "<three-js-block></three-js-block>",
        '<three-js-block height="abc"></three-js-block>',
    ])
    def test_three_js_default_height(self, marker):
        """Test the 300px default for absent or non-numeric heights."""
        assert render_interactive(marker).scene_height == 300

    def test_three_js_takes_precedence(self):
        """Test that a 3D marker wins over snippets."""
        html = '<html-snippet html="&lt;p&gt;s&lt;/p&gt;"></html-snippet><three-js-block height="200"></three-js-block>'

        assert render_interactive(html).mode == "three_js"

    def test_snippets_decoded_and_concatenated(self):
        """Test that snippets are decoded in order and surrounding markup dropped."""
        html = (
            '<p>Before</p>'
            '<html-snippet html="&lt;div&gt;One&lt;/div&gt;"></html-snippet>'
            '<p>Between</p>'
            '<html-snippet html="&lt;span&gt;&amp;&quot;Two&quot;&#39;&lt;/span&gt;"></html-snippet>'
        )

        result = render_interactive(html)

        assert result.mode == "snippet"
        assert result.html == "<div>One</div><span>&\"Two\"'</span>"

    def test_snippet_fragment_wrappers_stripped(self):
        """Test that a snippet holding a full document is unwrapped."""
        encoded = "&lt;!DOCTYPE html&gt;&lt;html&gt;&lt;body&gt;&lt;p&gt;Hi&lt;/p&gt;&lt;/body&gt;&lt;/html&gt;"

        assert render_interactive_html(f'<html-snippet html="{encoded}"></html-snippet>') == "<p>Hi</p>"

    def test_document_wrappers_stripped_before_markers(self):
        """Test that outer document tags do not hide a marker."""
        html = '<html><body><html-snippet html="&lt;p&gt;x&lt;/p&gt;"></html-snippet></body></html>'

        assert render_interactive_html(html) == "<p>x</p>"

    def test_empty_snippet_falls_back_to_plain_render(self, caplog):
        """Test that a snippet without content falls through to the plain path."""
        html = '<body><p>Keep me</p><html-snippet></html-snippet></body>'

        with caplog.at_level(logging.WARNING):
            result = render_interactive(html)

        assert result.mode == "fast"
        assert result.html == "<p>Keep me</p><html-snippet></html-snippet>"
        assert "Snippet marker without content" in caplog.text

    def test_extract_snippets_skips_empty(self):
        """Test that empty snippet attributes are ignored."""
        html = '<html-snippet html=""></html-snippet><html-snippet html="&lt;b&gt;y&lt;/b&gt;"></html-snippet>'

        assert extract_snippets(html) == ["<b>y</b>"]

    def test_is_deterministic(self, snippet_html):
        """Test that repeated renders agree."""
        assert render_interactive(snippet_html) == render_interactive(snippet_html)
