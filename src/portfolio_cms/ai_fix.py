"""
AI content-fix: server-side service and the admin review dialog.

ContentFixer runs the model calls behind the /api/ai endpoints and checks
that no images were lost. AIFixDialog is the editor-side workflow: request
a rewrite, review it beside the current content, edit it, then apply or
discard it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

import httpx

from .image_guard import missing_images
from .llm_client import LLMClient

logger = logging.getLogger(__name__)


DEFAULT_FIX_ENDPOINT = "/api/ai/fix-blog"
ENRICH_WORK_ENDPOINT = "/api/ai/enrich-work"

APPLIED_MESSAGE = "AI changes applied successfully"
FAILED_MESSAGE = "Failed to fix content"


# =============================================================================
# Server side
# =============================================================================

@dataclass
class FixResult:
    """Rewritten HTML plus any image sources the model dropped."""
    fixed_html: str
    missing_images: list[str] = field(default_factory=list)


class ContentFixer:
    """Runs AI cleanup and checks the output kept every image."""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    def fix_blog(self, html: str) -> FixResult:
        fixed = self.llm.fix_html(html)
        return FixResult(fixed_html=fixed, missing_images=missing_images(html, fixed))

    def enrich_work(self, html: str, title: Optional[str] = None) -> FixResult:
        enriched = self.llm.enrich_work(html, title)
        return FixResult(fixed_html=enriched, missing_images=missing_images(html, enriched))


# =============================================================================
# Dialog
# =============================================================================

class DialogState(str, Enum):
    """Lifecycle of a fix request within the dialog."""
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


MIN_WIDTH = 400
MIN_HEIGHT = 300
VIEWPORT_FRACTION = 0.95


@dataclass
class WindowGeometry:
    """Position and size of the floating dialog window, in pixels."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def centered(cls, viewport_width: float, viewport_height: float) -> "WindowGeometry":
        """A window covering 95% of the viewport, centered."""
        width = viewport_width * VIEWPORT_FRACTION
        height = viewport_height * VIEWPORT_FRACTION
        return cls(
            x=(viewport_width - width) / 2,
            y=(viewport_height - height) / 2,
            width=width,
            height=height,
        )

    def moved(self, x: float, y: float, viewport_width: float, viewport_height: float) -> "WindowGeometry":
        """Move the window, keeping it inside the viewport."""
        return WindowGeometry(
            x=_clamp(x, 0, viewport_width - self.width),
            y=_clamp(y, 0, viewport_height - self.height),
            width=self.width,
            height=self.height,
        )

    def resized(
        self,
        width: float,
        height: float,
        viewport_width: float,
        viewport_height: float,
    ) -> "WindowGeometry":
        """Resize from the top-left corner, honoring the minimum size and viewport."""
        width = max(MIN_WIDTH, min(width, viewport_width - self.x))
        height = max(MIN_HEIGHT, min(height, viewport_height - self.y))
        x = _clamp(self.x, 0, viewport_width - width)
        y = _clamp(self.y, 0, viewport_height - height)
        return WindowGeometry(x=x, y=y, width=width, height=height)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, max(low, high)))


def log_notifier(level: str, message: str) -> None:
    """Default notifier: report through the module logger."""
    if level == "error":
        logger.error(message)
    else:
        logger.info(message)


class AIFixDialog:
    """
    Review-and-apply workflow for an AI rewrite.

    Args:
        client: httpx.AsyncClient pointed at the CMS.
        on_apply: Receives the accepted HTML.
        content: Current editor HTML, shown read-only.
        endpoint: AI endpoint to POST to.
        extra_params: Additional JSON body fields (e.g. {"title": ...}).
        notify: Callable(level, message) for user-facing toasts; level is
            "success" or "error".
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        on_apply: Callable[[str], None],
        content: str = "",
        endpoint: str = DEFAULT_FIX_ENDPOINT,
        extra_params: Optional[dict[str, Any]] = None,
        notify: Callable[[str, str], None] = log_notifier,
    ):
        self.client = client
        self.on_apply = on_apply
        self.content = content
        self.endpoint = endpoint
        self.extra_params = dict(extra_params or {})
        self.notify = notify

        self.is_open = False
        self.state = DialogState.IDLE
        self.fixed_html: Optional[str] = None
        self.geometry: Optional[WindowGeometry] = None
        # Bumped on open/close so late responses from an earlier session are dropped
        self._session = 0

    def open(self, viewport_width: float, viewport_height: float) -> None:
        self._session += 1
        self.is_open = True
        self.state = DialogState.IDLE
        self.fixed_html = None
        self.geometry = WindowGeometry.centered(viewport_width, viewport_height)

    def close(self) -> None:
        """Dismiss without applying. An in-flight request is left to finish and ignored."""
        self._session += 1
        self.is_open = False
        self.state = DialogState.IDLE
        self.fixed_html = None

    def move(self, x: float, y: float, viewport_width: float, viewport_height: float) -> None:
        if self.geometry is not None:
            self.geometry = self.geometry.moved(x, y, viewport_width, viewport_height)

    def resize(self, width: float, height: float, viewport_width: float, viewport_height: float) -> None:
        if self.geometry is not None:
            self.geometry = self.geometry.resized(width, height, viewport_width, viewport_height)

    async def fix(self) -> bool:
        """
        Request a rewrite of the current content.

        Returns:
            True if a result is ready for review. A call made while another
            request is in flight is ignored and returns False.
        """
        if self.state == DialogState.LOADING:
            return False

        session = self._session
        self.state = DialogState.LOADING
        self.fixed_html = None

        body = {"html": self.content, **self.extra_params}
        try:
            fixed = await self._request(body)
        except _FixFailed as e:
            if session != self._session:
                logger.info(f"Discarding AI fix error after dialog closed: {e}")
                return False
            self.state = DialogState.FAILED
            self.notify("error", str(e))
            return False

        if session != self._session:
            logger.info("Discarding AI fix result after dialog closed")
            return False

        self.fixed_html = fixed
        self.state = DialogState.READY
        return True

    async def _request(self, body: dict[str, Any]) -> str:
        try:
            response = await self.client.post(self.endpoint, json=body)
        except httpx.HTTPError as e:
            raise _FixFailed(str(e) or FAILED_MESSAGE)

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success:
            raise _FixFailed(str(data.get("error") or FAILED_MESSAGE))

        fixed = data.get("fixedHtml")
        if not isinstance(fixed, str):
            raise _FixFailed("AI response did not include fixed content")
        return fixed

    def edit_result(self, html: str) -> None:
        """Replace the preview with the author's edits."""
        if self.state == DialogState.READY:
            self.fixed_html = html

    def apply(self) -> bool:
        """Hand the reviewed result to the caller and close."""
        if not self.fixed_html:
            return False
        fixed = self.fixed_html
        self.on_apply(fixed)
        self.close()
        self.notify("success", APPLIED_MESSAGE)
        return True


class _FixFailed(Exception):
    pass
