"""
Data models for Portfolio CMS.

This module defines the content representations (block sequences and
rich-HTML documents), the persisted content field that holds either of them,
and the records stored by the CMS (blog posts, works, pages, site settings,
assets).
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Union


# =============================================================================
# Block model (legacy content representation)
# =============================================================================

# Block type literals, using the stored wire values
BlockType = Literal[
    "h1",        # Heading 1
    "h2",        # Heading 2
    "h3",        # Heading 3
    "p",         # Paragraph
    "ul",        # Bullet list container
    "ol",        # Numbered list container
    "image",     # Image with optional caption
    "code",      # Code listing
    "divider",   # Horizontal rule
]

BLOCK_TYPES: tuple[str, ...] = ("h1", "h2", "h3", "p", "ul", "ol", "image", "code", "divider")

# Type used for items inside ul/ol children
LIST_ITEM_TYPE = "li"

LIST_TYPES = ("ul", "ol")
HEADING_TYPES = ("h1", "h2", "h3")


def new_block_id() -> str:
    """Generate a fresh block identifier."""
    return str(uuid.uuid4())


def _parse_marks(raw: Any) -> list[str]:
    """Stored marks as a list; a bare string is a single mark."""
    if isinstance(raw, str):
        return [raw] if raw else []
    if isinstance(raw, list):
        return [str(mark) for mark in raw if mark]
    return []


@dataclass
class Block:
    """
    A single structural unit of block content.

    Unknown `type` values are kept as-is so content written by newer
    editors survives a load/save cycle; renderers skip them.
    """
    id: str
    type: str
    text: Optional[str] = None
    src: Optional[str] = None  # image only
    alt: Optional[str] = None  # image only
    caption: Optional[str] = None  # image only
    children: list["Block"] = field(default_factory=list)  # ul/ol only
    marks: list[str] = field(default_factory=list)  # bold, italic, ...

    @classmethod
    def create(cls, block_type: str, block_id: Optional[str] = None, **payload) -> "Block":
        """Factory for a block with an auto-generated ID and empty text."""
        payload.setdefault("text", "")
        return cls(id=block_id or new_block_id(), type=block_type, **payload)

    @property
    def is_known_type(self) -> bool:
        """Check if the block type is part of the closed enumeration."""
        return self.type in BLOCK_TYPES

    @property
    def is_list(self) -> bool:
        """Check if this block is a list container."""
        return self.type in LIST_TYPES

    @property
    def is_heading(self) -> bool:
        """Check if this block is a heading."""
        return self.type in HEADING_TYPES

    def merged(self, updates: dict[str, Any]) -> "Block":
        """Return a copy with a partial payload merged in."""
        data = self.to_dict()
        data.update(updates)
        return Block.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored JSON shape, dropping absent fields."""
        data: dict[str, Any] = {"id": self.id, "type": self.type}
        for name in ("text", "src", "alt", "caption"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        if self.marks:
            data["marks"] = list(self.marks)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Block":
        """Load a block from its stored JSON shape."""
        children = data.get("children") or []
        return cls(
            id=str(data.get("id") or new_block_id()),
            type=str(data.get("type", "")),
            text=data.get("text"),
            src=data.get("src"),
            alt=data.get("alt"),
            caption=data.get("caption"),
            children=[
                child if isinstance(child, Block) else cls.from_dict(child)
                for child in children
                if isinstance(child, (Block, dict))
            ],
            marks=_parse_marks(data.get("marks")),
        )


# =============================================================================
# Persisted content field
#
# The stored field is a tagged union. Legacy records carry no discriminant
# and are told apart by key presence ("blocks" vs "html"); records written
# here also carry an explicit "kind".
# =============================================================================

ContentKind = Literal["blocks", "html", "empty"]


@dataclass
class BlocksContent:
    """Content stored as a block sequence."""
    blocks: list[Block] = field(default_factory=list)
    kind: ContentKind = "blocks"


@dataclass
class HtmlContent:
    """Content stored as a rich-HTML string."""
    html: str = ""
    kind: ContentKind = "html"


@dataclass
class EmptyContent:
    """A content field holding neither representation."""
    kind: ContentKind = "empty"


ContentField = Union[BlocksContent, HtmlContent, EmptyContent]


def detect_content_kind(raw: Any) -> ContentKind:
    """
    Decide which representation a stored content field holds.

    An explicit "kind" wins; otherwise key presence decides, with "blocks"
    checked before "html".
    """
    if not isinstance(raw, dict):
        return "empty"
    kind = raw.get("kind")
    if kind in ("blocks", "html"):
        return kind
    if "blocks" in raw:
        return "blocks"
    if "html" in raw:
        return "html"
    return "empty"


def parse_content_field(raw: Any) -> ContentField:
    """Parse a stored content field into its typed variant."""
    kind = detect_content_kind(raw)
    if kind == "blocks":
        blocks = raw.get("blocks")
        if not isinstance(blocks, list):
            blocks = []
        return BlocksContent(
            blocks=[Block.from_dict(b) for b in blocks if isinstance(b, dict)]
        )
    if kind == "html":
        html = raw.get("html")
        return HtmlContent(html=html if isinstance(html, str) else "")
    return EmptyContent()


def serialize_content_field(content: ContentField) -> dict[str, Any]:
    """Serialize a typed content field, always writing the discriminant."""
    if isinstance(content, BlocksContent):
        return {"kind": "blocks", "blocks": [b.to_dict() for b in content.blocks]}
    if isinstance(content, HtmlContent):
        return {"kind": "html", "html": content.html}
    return {}


def with_content_kind(raw: Any) -> Any:
    """
    Add an explicit discriminant to a stored content field.

    Extra keys (e.g. page-specific settings) are preserved. Fields holding
    neither representation are returned unchanged.
    """
    if not isinstance(raw, dict):
        return raw
    kind = detect_content_kind(raw)
    if kind == "empty" or raw.get("kind") == kind:
        return raw
    updated = dict(raw)
    updated["kind"] = kind
    return updated


# =============================================================================
# Stored records
# =============================================================================

def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def slugify(title: str) -> str:
    """Derive a URL slug from a title."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower())
    return slug.strip("-")


def parse_tags(raw: Union[str, list, None]) -> list[str]:
    """Parse tags from a comma-separated string (or pass a list through)."""
    if raw is None:
        return []
    items = raw if isinstance(raw, list) else str(raw).split(",")
    return [str(tag).strip() for tag in items if str(tag).strip()]


def asset_kind(mime_type: str) -> str:
    """Classify an uploaded file by MIME type."""
    if mime_type.startswith("image/"):
        return "image"
    if mime_type == "application/pdf":
        return "pdf"
    if mime_type.startswith("audio/"):
        return "audio"
    return "other"


@dataclass
class BlogPost:
    """A blog post record."""
    id: str
    title: str
    slug: str
    excerpt: str = ""
    tags: list[str] = field(default_factory=list)
    published: bool = False
    content: dict = field(default_factory=dict)
    published_at: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class Work:
    """A portfolio work record."""
    id: str
    title: str
    slug: str
    excerpt: str = ""
    year: Optional[int] = None
    category: str = ""
    tags: list[str] = field(default_factory=list)
    published: bool = False
    content: dict = field(default_factory=dict)
    thumbnail_asset_id: Optional[str] = None
    published_at: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class Page:
    """A free-form page (home, introduction, contact, ...)."""
    id: str
    slug: str
    title: str = ""
    content: dict = field(default_factory=dict)


@dataclass
class SiteSettings:
    """Singleton site-wide settings."""
    owner_name: str = "John Doe"
    tagline: str = "Creative Technologist"
    facebook_url: str = ""
    instagram_url: str = ""
    twitter_url: str = ""
    linkedin_url: str = ""
    github_url: str = ""
    resume_asset_id: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def social_links(self) -> list[tuple[str, str]]:
        """Non-empty (label, url) pairs for the footer."""
        links = [
            ("Facebook", self.facebook_url),
            ("Instagram", self.instagram_url),
            ("Twitter", self.twitter_url),
            ("LinkedIn", self.linkedin_url),
            ("GitHub", self.github_url),
        ]
        return [(label, url) for label, url in links if url]


@dataclass
class Asset:
    """An uploaded file tracked by the CMS."""
    id: str
    bucket: str
    path: str
    mime_type: str = "application/octet-stream"
    size: int = 0
    kind: str = "other"
    created_by: Optional[str] = None
    created_at: Optional[str] = None
