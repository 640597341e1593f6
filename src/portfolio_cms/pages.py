"""
Public page rendering.

Builds the visitor-facing HTML pages from stored records with Jinja2
templates. Stored content fields are dispatched to the block renderer or the
interactive renderer according to their representation.
"""

import logging
from typing import Any, Optional

import jinja2

from .block_renderer import render_blocks
from .config import CMSConfig
from .interactive_renderer import render_interactive
from .models import BlocksContent, HtmlContent, parse_content_field
from .storage import ContentStore, RecordNotFoundError

logger = logging.getLogger(__name__)


HOME_RECENT_POSTS = 2
HOME_FEATURED_WORKS = 3

DEFAULT_HEADLINE = "Hi, I am John, Creative Technologist"
DEFAULT_INTRO = (
    "Amet minim mollit non deserunt ullamco est sit aliqua dolor do amet sint. "
    "Velit officia consequat duis enim velit mollit. Exercitation veniam consequat "
    "sunt nostrud amet."
)

_jinja_env: Optional[jinja2.Environment] = None


def get_jinja_env() -> jinja2.Environment:
    """Get or create the Jinja2 environment with the package template loader."""
    global _jinja_env
    if _jinja_env is None:
        _jinja_env = jinja2.Environment(
            loader=jinja2.PackageLoader("portfolio_cms", "templates"),
            autoescape=True,
        )
    return _jinja_env


def render_content_field(raw: Any) -> str:
    """
    Render a stored content field to HTML.

    Block content goes through the block renderer, rich-HTML through the
    interactive renderer; anything else renders as "".
    """
    content = parse_content_field(raw)
    if isinstance(content, BlocksContent):
        return render_blocks(content.blocks)
    if isinstance(content, HtmlContent):
        return render_interactive(content.html).html
    return ""


class PageRenderer:
    """Renders each public page from the content store."""

    def __init__(self, store: ContentStore, config: CMSConfig):
        self.store = store
        self.config = config

    def _render(self, template_name: str, **context) -> str:
        template = get_jinja_env().get_template(template_name)
        settings = self.store.get_site_settings()
        return template.render(
            site_name=self.config.site_name,
            settings=settings,
            **context,
        )

    def home(self) -> str:
        page = self.store.get_page("home")
        content = page.content if page is not None and isinstance(page.content, dict) else {}
        return self._render(
            "home.html",
            headline=content.get("headline") or DEFAULT_HEADLINE,
            intro_text=content.get("introText") or DEFAULT_INTRO,
            profile_image_url=content.get("profileImageUrl"),
            recent_posts=self.store.list_published("blogs", limit=HOME_RECENT_POSTS),
            featured_works=self.store.list_published("works", limit=HOME_FEATURED_WORKS),
        )

    def blog_index(self) -> str:
        return self._render("blog_list.html", posts=self.store.list_published("blogs"))

    def blog_detail(self, slug: str) -> str:
        """Raises RecordNotFoundError for unknown or unpublished slugs."""
        post = self.store.get_published_by_slug("blogs", slug)
        return self._render("blog_detail.html", post=post, body=render_content_field(post.content))

    def works_index(self) -> str:
        return self._render("works_list.html", works=self.store.list_published("works"))

    def work_detail(self, slug: str) -> str:
        """Raises RecordNotFoundError for unknown or unpublished slugs."""
        work = self.store.get_published_by_slug("works", slug)
        thumbnail_url = None
        if work.thumbnail_asset_id:
            try:
                asset = self.store.get_asset(work.thumbnail_asset_id)
                thumbnail_url = self.config.public_url(asset.bucket, asset.path)
            except RecordNotFoundError:
                logger.warning(f"Work {work.id} references missing thumbnail {work.thumbnail_asset_id}")
        return self._render(
            "work_detail.html",
            work=work,
            thumbnail_url=thumbnail_url,
            body=render_content_field(work.content),
        )

    def _content_page(self, slug: str, default_title: str) -> str:
        page = self.store.get_page(slug)
        title = (page.title if page is not None else "") or default_title
        body = render_content_field(page.content) if page is not None else ""
        return self._render("content_page.html", slug=slug, title=title, body=body)

    def introduction(self) -> str:
        return self._content_page("introduction", "Introduction")

    def contact(self) -> str:
        return self._content_page("contact", "Contact")

    def resume(self) -> str:
        settings = self.store.get_site_settings()
        resume_url = None
        if settings.resume_asset_id:
            try:
                asset = self.store.get_asset(settings.resume_asset_id)
                resume_url = self.config.public_url(asset.bucket, asset.path)
            except RecordNotFoundError:
                logger.warning(f"Resume asset {settings.resume_asset_id} not found")
        return self._render("resume.html", resume_url=resume_url)

    def not_found(self) -> str:
        return self._render("not_found.html")
