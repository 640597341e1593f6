"""Tests for the AI content-fix service and dialog."""

import asyncio
import json
from unittest.mock import Mock

import httpx
import pytest

from portfolio_cms.ai_fix import (
    APPLIED_MESSAGE,
    AIFixDialog,
    ContentFixer,
    DialogState,
    WindowGeometry,
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://cms.test")


def _ok(fixed: str = "<p>Fixed</p>"):
    return lambda request: httpx.Response(200, json={"fixedHtml": fixed})


class Recorder:
    """Collects notifications and applied content."""

    def __init__(self):
        self.notifications = []
        self.applied = []

    def notify(self, level, message):
        self.notifications.append((level, message))


@pytest.fixture
def recorder():
    return Recorder()


def _dialog(client, recorder, **kwargs) -> AIFixDialog:
    dialog = AIFixDialog(
        client,
        on_apply=recorder.applied.append,
        content="<p>Orig</p>",
        notify=recorder.notify,
        **kwargs,
    )
    dialog.open(1000, 800)
    return dialog


class TestContentFixer:
    """Tests for the server-side fixer."""

    def test_fix_blog_reports_missing_images(self):
        """Test that dropped images are listed with the result."""
        llm = Mock()
        llm.fix_html.return_value = "<p>Cleaned</p>"

        result = ContentFixer(llm).fix_blog('<p>x</p><img src="/a.png">')

        assert result.fixed_html == "<p>Cleaned</p>"
        assert result.missing_images == ["/a.png"]

    def test_enrich_work_passes_title(self):
        """Test that the title reaches the LLM client."""
        llm = Mock()
        llm.enrich_work.return_value = "<h2>Overview</h2>"

        result = ContentFixer(llm).enrich_work("<p>x</p>", "Robot")

        llm.enrich_work.assert_called_once_with("<p>x</p>", "Robot")
        assert result.missing_images == []


class TestWindowGeometry:
    """Tests for the floating window geometry."""

    def test_centered_at_95_percent(self):
        """Test the initial centered window."""
        geometry = WindowGeometry.centered(1000, 800)

        assert geometry == WindowGeometry(x=25, y=20, width=950, height=760)

    def test_resize_keeps_minimum(self):
        """Test the 400x300 minimum size."""
        geometry = WindowGeometry(x=0, y=0, width=800, height=600).resized(100, 100, 1000, 800)

        assert (geometry.width, geometry.height) == (400, 300)

    def test_move_stays_in_viewport(self):
        """Test that moving cannot push the window off screen."""
        geometry = WindowGeometry(x=0, y=0, width=400, height=300)

        assert geometry.moved(900, -50, 1000, 800) == WindowGeometry(x=600, y=0, width=400, height=300)

    def test_resize_bounded_by_viewport(self):
        """Test that resizing stops at the viewport edge."""
        geometry = WindowGeometry(x=100, y=100, width=400, height=300).resized(5000, 5000, 1000, 800)

        assert (geometry.width, geometry.height) == (900, 700)


class TestAIFixDialog:
    """Tests for the dialog workflow."""

    @pytest.mark.asyncio
    async def test_fix_posts_content_and_extra_params(self, recorder):
        """Test the request body and ready state."""
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"fixedHtml": "<p>Better</p>"})

        async with _client(handler) as client:
            dialog = _dialog(client, recorder, endpoint="/api/ai/enrich-work", extra_params={"title": "Robot"})
            assert await dialog.fix()

        assert seen == {"path": "/api/ai/enrich-work", "body": {"html": "<p>Orig</p>", "title": "Robot"}}
        assert dialog.state == DialogState.READY
        assert dialog.fixed_html == "<p>Better</p>"

    @pytest.mark.asyncio
    async def test_default_endpoint(self, recorder):
        """Test that the blog cleanup endpoint is the default."""
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={"fixedHtml": "x"})

        async with _client(handler) as client:
            await _dialog(client, recorder).fix()

        assert paths == ["/api/ai/fix-blog"]

    @pytest.mark.asyncio
    async def test_error_response_notifies_and_allows_retry(self, recorder):
        """Test the failed state and retry."""
        responses = iter([
            httpx.Response(500, json={"error": "Missing API key"}),
            httpx.Response(200, json={"fixedHtml": "<p>ok</p>"}),
        ])

        async with _client(lambda request: next(responses)) as client:
            dialog = _dialog(client, recorder)
            assert not await dialog.fix()
            assert dialog.state == DialogState.FAILED
            assert recorder.notifications == [("error", "Missing API key")]

            assert await dialog.fix()

        assert dialog.state == DialogState.READY
        assert recorder.applied == []

    @pytest.mark.asyncio
    async def test_missing_fixed_html_fails(self, recorder):
        """Test that a success without fixedHtml is a failure."""
        async with _client(lambda request: httpx.Response(200, json={})) as client:
            dialog = _dialog(client, recorder)
            assert not await dialog.fix()

        assert dialog.state == DialogState.FAILED
        assert recorder.notifications[0][0] == "error"

    @pytest.mark.asyncio
    async def test_transport_error_fails(self, recorder):
        """Test that network errors are reported."""
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        async with _client(handler) as client:
            dialog = _dialog(client, recorder)
            assert not await dialog.fix()

        assert recorder.notifications == [("error", "unreachable")]

    @pytest.mark.asyncio
    async def test_apply_hands_over_result_and_closes(self, recorder):
        """Test apply with an edited preview."""
        async with _client(_ok()) as client:
            dialog = _dialog(client, recorder)
            await dialog.fix()

        dialog.edit_result("<p>Fixed and edited</p>")

        assert dialog.apply()
        assert recorder.applied == ["<p>Fixed and edited</p>"]
        assert not dialog.is_open
        assert dialog.fixed_html is None
        assert recorder.notifications == [("success", APPLIED_MESSAGE)]

    def test_apply_without_result_is_noop(self, recorder):
        """Test that apply does nothing before a result exists."""
        dialog = _dialog(Mock(), recorder)

        assert not dialog.apply()
        assert recorder.applied == []
        assert dialog.is_open

    @pytest.mark.asyncio
    async def test_second_fix_while_loading_is_ignored(self, recorder):
        """Test the single in-flight request."""
        release = asyncio.Event()
        calls = []

        async def handler(request):
            calls.append(request)
            await release.wait()
            return httpx.Response(200, json={"fixedHtml": "<p>done</p>"})

        async with _client(handler) as client:
            dialog = _dialog(client, recorder)
            first = asyncio.create_task(dialog.fix())
            await asyncio.sleep(0)

            assert dialog.state == DialogState.LOADING
            assert not await dialog.fix()

            release.set()
            assert await first

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_result_after_close_is_discarded(self, recorder):
        """Test that closing mid-request discards the late result."""
        release = asyncio.Event()

        async def handler(request):
            await release.wait()
            return httpx.Response(200, json={"fixedHtml": "<p>late</p>"})

        async with _client(handler) as client:
            dialog = _dialog(client, recorder)
            pending = asyncio.create_task(dialog.fix())
            await asyncio.sleep(0)
            dialog.close()
            release.set()

            assert not await pending

        assert dialog.fixed_html is None
        assert dialog.state == DialogState.IDLE
        assert recorder.applied == []
        assert recorder.notifications == []
