"""
Portfolio CMS

A personal portfolio and blog content-management system that:
- Renders public pages from block or rich-HTML content
- Edits content through a block editor and a rich-text editor with 3D-scene
  and raw-HTML embeds
- Cleans up and enriches content with an AI review-and-apply workflow
"""

__version__ = "1.0.0"
__author__ = "Portfolio CMS Team"

from .config import CMSConfig, ConfigError

from .models import (
    Block,
    BlocksContent,
    HtmlContent,
    EmptyContent,
    BlogPost,
    Work,
    Page,
    SiteSettings,
    Asset,
    detect_content_kind,
    parse_content_field,
    serialize_content_field,
    slugify,
)

# Content representations
from .content_tree import (
    MarkupNode,
    ThreeJsSceneNode,
    HtmlSnippetNode,
    parse_rich_content,
    serialize_rich_content,
)

# Rendering
from .block_renderer import render_block, render_blocks
from .interactive_renderer import RenderResult, render_interactive, strip_html_wrappers
from .pages import PageRenderer, render_content_field

# Editing
from .block_editor import BlockEditor
from .rich_editor import RichTextEditor
from .commands import CommandPalette, SlashCommand, filter_commands

# AI cleanup and uploads
from .llm_client import LLMClient, LLMClientError, create_llm_client
from .ai_fix import AIFixDialog, ContentFixer, DialogState
from .image_guard import missing_images
from .uploads import AssetUploadClient, UploadError

# Storage
from .storage import AssetStorage, ContentStore, RecordNotFoundError, StoreError

__all__ = [
    # Config
    "CMSConfig",
    "ConfigError",
    # Models
    "Block",
    "BlocksContent",
    "HtmlContent",
    "EmptyContent",
    "BlogPost",
    "Work",
    "Page",
    "SiteSettings",
    "Asset",
    "detect_content_kind",
    "parse_content_field",
    "serialize_content_field",
    "slugify",
    # Content tree
    "MarkupNode",
    "ThreeJsSceneNode",
    "HtmlSnippetNode",
    "parse_rich_content",
    "serialize_rich_content",
    # Rendering
    "render_block",
    "render_blocks",
    "RenderResult",
    "render_interactive",
    "strip_html_wrappers",
    "PageRenderer",
    "render_content_field",
    # Editing
    "BlockEditor",
    "RichTextEditor",
    "CommandPalette",
    "SlashCommand",
    "filter_commands",
    # AI cleanup and uploads
    "LLMClient",
    "LLMClientError",
    "create_llm_client",
    "AIFixDialog",
    "ContentFixer",
    "DialogState",
    "missing_images",
    "AssetUploadClient",
    "UploadError",
    # Storage
    "AssetStorage",
    "ContentStore",
    "RecordNotFoundError",
    "StoreError",
]
