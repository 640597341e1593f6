"""
Local content and asset storage.

ContentStore keeps each record collection as a JSON array file under the
data directory; AssetStorage keeps uploaded files in one directory per
bucket. Every write rewrites the whole file (last write wins).
"""

import functools
import json
import logging
import os
import tempfile
import threading
import uuid
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Optional, Union

from .config import CMSConfig
from .models import (
    Asset,
    BlogPost,
    Page,
    SiteSettings,
    Work,
    parse_tags,
    slugify,
    utc_now_iso,
    with_content_kind,
)

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when stored data cannot be read or written."""
    pass


class RecordNotFoundError(StoreError):
    """Raised when a record id or slug does not exist."""
    pass


class InvalidRecordError(StoreError):
    """Raised when a write is rejected (missing title, duplicate slug, ...)."""
    pass


Record = Union[BlogPost, Work]

# Collections of slugged, publishable records
RECORD_TYPES: dict[str, type] = {
    "blogs": BlogPost,
    "works": Work,
}

_FILES = {
    "blogs": "blogs.json",
    "works": "works.json",
    "pages": "pages.json",
    "assets": "assets.json",
}
_SETTINGS_FILE = "site_settings.json"


def _from_dict(cls, data: dict[str, Any]):
    """Build a record dataclass, ignoring unknown keys."""
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in names})


def _locked(method):
    """Run a store method while holding the store lock."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


def _parse_year(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRecordError(f"year must be an integer, got {value!r}")


class ContentStore:
    """
    JSON-file store for blog posts, works, pages, site settings and assets.

    Args:
        data_dir: Directory holding the collection files. Created on first
            write.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)
        # Writers read, modify and rewrite whole files
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: CMSConfig) -> "ContentStore":
        return cls(config.data_dir)

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def _path(self, name: str) -> Path:
        return self.data_dir / name

    def _read_json(self, name: str, default: Any) -> Any:
        path = self._path(name)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8") or "null") or default
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Could not read {path}: {e}")

    def _write_json(self, name: str, data: Any) -> None:
        path = self._path(name)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=path.parent, prefix=f".{name}.", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(json.dumps(data, indent=2, ensure_ascii=False) + "\n")
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"Could not write {path}: {e}")

    def _load(self, collection: str) -> list[dict]:
        items = self._read_json(_FILES[collection], [])
        if not isinstance(items, list):
            raise StoreError(f"{_FILES[collection]} must contain a JSON array")
        return [item for item in items if isinstance(item, dict)]

    def _save(self, collection: str, items: list[dict]) -> None:
        self._write_json(_FILES[collection], items)

    @staticmethod
    def _record_type(kind: str) -> type:
        if kind not in RECORD_TYPES:
            raise StoreError(f"Unknown collection '{kind}', expected one of {sorted(RECORD_TYPES)}")
        return RECORD_TYPES[kind]

    # ------------------------------------------------------------------
    # Blog posts and works
    # ------------------------------------------------------------------

    def list_records(self, kind: str) -> list[Record]:
        """All records of a collection, newest first by creation time."""
        cls = self._record_type(kind)
        records = [_from_dict(cls, item) for item in self._load(kind)]
        return sorted(records, key=lambda r: r.created_at or "", reverse=True)

    def get_record(self, kind: str, record_id: str) -> Record:
        cls = self._record_type(kind)
        for item in self._load(kind):
            if item.get("id") == record_id:
                return _from_dict(cls, item)
        raise RecordNotFoundError(f"No {kind} record with id '{record_id}'")

    def list_published(self, kind: str, limit: Optional[int] = None) -> list[Record]:
        """Published records, most recently published first."""
        cls = self._record_type(kind)
        records = [
            _from_dict(cls, item) for item in self._load(kind) if item.get("published")
        ]
        records.sort(key=lambda r: r.published_at or "", reverse=True)
        return records[:limit] if limit is not None else records

    def get_published_by_slug(self, kind: str, slug: str) -> Record:
        """A published record by slug; drafts are treated as missing."""
        cls = self._record_type(kind)
        for item in self._load(kind):
            if item.get("slug") == slug and item.get("published"):
                return _from_dict(cls, item)
        raise RecordNotFoundError(f"No published {kind} record with slug '{slug}'")

    @_locked
    def create_record(self, kind: str, data: dict[str, Any]) -> Record:
        """
        Create a blog post or work.

        The slug is derived from the title unless given; tags may be a
        comma-separated string; published_at is stamped when published.

        Raises:
            InvalidRecordError: Missing title, empty slug or a slug already in use.
        """
        cls = self._record_type(kind)
        title = (data.get("title") or "").strip()
        if not title:
            raise InvalidRecordError("title is required")

        slug = data.get("slug") or slugify(title)
        if not slug:
            raise InvalidRecordError(f"Could not derive a slug from title '{title}'")

        items = self._load(kind)
        if any(item.get("slug") == slug for item in items):
            raise InvalidRecordError(f"Slug '{slug}' is already used in {kind}")

        now = utc_now_iso()
        published = bool(data.get("published", False))
        values: dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "title": title,
            "slug": slug,
            "excerpt": data.get("excerpt") or "",
            "tags": parse_tags(data.get("tags")),
            "published": published,
            "content": with_content_kind(data.get("content") or {}),
            "published_at": now if published else None,
            "created_at": now,
        }
        if cls is Work:
            values["year"] = _parse_year(data.get("year"))
            values["category"] = data.get("category") or ""
            values["thumbnail_asset_id"] = data.get("thumbnail_asset_id") or None

        record = _from_dict(cls, values)
        items.append(asdict(record))
        self._save(kind, items)
        logger.info(f"Created {kind} record {record.id} ({slug})")
        return record

    @_locked
    def update_record(self, kind: str, record_id: str, data: dict[str, Any]) -> Record:
        """
        Update a blog post or work with the fields present in `data`.

        The slug stays fixed unless given explicitly. Publishing keeps an
        existing published_at; unpublishing clears it.
        """
        cls = self._record_type(kind)
        items = self._load(kind)
        for index, item in enumerate(items):
            if item.get("id") == record_id:
                break
        else:
            raise RecordNotFoundError(f"No {kind} record with id '{record_id}'")

        updated = dict(item)
        if "title" in data and data["title"] is not None:
            title = data["title"].strip()
            if not title:
                raise InvalidRecordError("title cannot be empty")
            updated["title"] = title
        if data.get("slug"):
            if any(other.get("slug") == data["slug"] and other.get("id") != record_id for other in items):
                raise InvalidRecordError(f"Slug '{data['slug']}' is already used in {kind}")
            updated["slug"] = data["slug"]
        if "excerpt" in data and data["excerpt"] is not None:
            updated["excerpt"] = data["excerpt"]
        if "tags" in data and data["tags"] is not None:
            updated["tags"] = parse_tags(data["tags"])
        if "content" in data and data["content"] is not None:
            updated["content"] = with_content_kind(data["content"])
        if "published" in data and data["published"] is not None:
            published = bool(data["published"])
            updated["published"] = published
            if not published:
                updated["published_at"] = None
            elif not updated.get("published_at"):
                updated["published_at"] = utc_now_iso()
        if cls is Work:
            if "year" in data:
                updated["year"] = _parse_year(data["year"])
            if "category" in data and data["category"] is not None:
                updated["category"] = data["category"]
            if "thumbnail_asset_id" in data:
                updated["thumbnail_asset_id"] = data["thumbnail_asset_id"] or None

        record = _from_dict(cls, updated)
        items[index] = asdict(record)
        self._save(kind, items)
        return record

    @_locked
    def delete_record(self, kind: str, record_id: str) -> None:
        self._record_type(kind)
        items = self._load(kind)
        remaining = [item for item in items if item.get("id") != record_id]
        if len(remaining) == len(items):
            raise RecordNotFoundError(f"No {kind} record with id '{record_id}'")
        self._save(kind, remaining)
        logger.info(f"Deleted {kind} record {record_id}")

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def list_pages(self) -> list[Page]:
        return sorted((_from_dict(Page, item) for item in self._load("pages")), key=lambda p: p.slug)

    def get_page(self, slug: str) -> Optional[Page]:
        """Page by slug, or None when it has never been created."""
        for item in self._load("pages"):
            if item.get("slug") == slug:
                return _from_dict(Page, item)
        return None

    @_locked
    def create_page(self, slug: str, title: str = "", content: Optional[dict] = None) -> Page:
        items = self._load("pages")
        if any(item.get("slug") == slug for item in items):
            raise InvalidRecordError(f"Page '{slug}' already exists")
        page = Page(id=str(uuid.uuid4()), slug=slug, title=title, content=with_content_kind(content or {}))
        items.append(asdict(page))
        self._save("pages", items)
        return page

    @_locked
    def update_page(self, page_id: str, title: Optional[str] = None, content: Optional[dict] = None) -> Page:
        """Update a page's title and/or content by id."""
        items = self._load("pages")
        for index, item in enumerate(items):
            if item.get("id") == page_id:
                if title is not None:
                    item["title"] = title
                if content is not None:
                    item["content"] = with_content_kind(content)
                page = _from_dict(Page, item)
                items[index] = asdict(page)
                self._save("pages", items)
                return page
        raise RecordNotFoundError(f"No page with id '{page_id}'")

    # ------------------------------------------------------------------
    # Site settings
    # ------------------------------------------------------------------

    def get_site_settings(self) -> SiteSettings:
        """Stored settings, falling back to defaults for anything unset."""
        data = self._read_json(_SETTINGS_FILE, {})
        if not isinstance(data, dict):
            raise StoreError(f"{_SETTINGS_FILE} must contain a JSON object")
        return _from_dict(SiteSettings, data)

    @_locked
    def update_site_settings(self, data: dict[str, Any]) -> SiteSettings:
        current = asdict(self.get_site_settings())
        current.update({k: v for k, v in data.items() if k in current and k != "updated_at" and v is not None})
        current["updated_at"] = utc_now_iso()
        settings = _from_dict(SiteSettings, current)
        self._write_json(_SETTINGS_FILE, asdict(settings))
        return settings

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def list_assets(self) -> list[Asset]:
        return [_from_dict(Asset, item) for item in self._load("assets")]

    def get_asset(self, asset_id: str) -> Asset:
        for item in self._load("assets"):
            if item.get("id") == asset_id:
                return _from_dict(Asset, item)
        raise RecordNotFoundError(f"No asset with id '{asset_id}'")

    @_locked
    def add_asset(self, asset: Asset) -> Asset:
        items = self._load("assets")
        items.append(asdict(asset))
        self._save("assets", items)
        return asset

    @_locked
    def delete_asset(self, asset_id: str) -> Asset:
        """Remove an asset record and return it."""
        asset = self.get_asset(asset_id)
        self._save("assets", [item for item in self._load("assets") if item.get("id") != asset_id])
        return asset

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    @_locked
    def add_content_kinds(self) -> int:
        """
        Write an explicit "kind" into every stored content field lacking one.

        Returns:
            Number of records changed.
        """
        changed = 0
        for collection in ("blogs", "works", "pages"):
            items = self._load(collection)
            dirty = False
            for item in items:
                tagged = with_content_kind(item.get("content"))
                if tagged is not item.get("content"):
                    item["content"] = tagged
                    changed += 1
                    dirty = True
            if dirty:
                self._save(collection, items)
        logger.info(f"Tagged content kind on {changed} record(s)")
        return changed


class AssetStorage:
    """Directory-per-bucket object storage for uploaded files."""

    def __init__(self, config: CMSConfig):
        self.config = config

    def _bucket_dir(self, bucket: str) -> Path:
        if not bucket or "/" in bucket or "\\" in bucket or bucket in (".", ".."):
            raise InvalidRecordError(f"Invalid bucket name '{bucket}'")
        return self.config.bucket_dir(bucket)

    @staticmethod
    def object_name(filename: str) -> str:
        """Random object name keeping the uploaded file's extension."""
        suffix = Path(filename or "").suffix.lower()
        return f"{uuid.uuid4()}{suffix}"

    def save(self, bucket: str, filename: str, content: bytes) -> str:
        """
        Store file bytes under a fresh name.

        Returns:
            Object path within the bucket.
        """
        directory = self._bucket_dir(bucket)
        path = self.object_name(filename)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            (directory / path).write_bytes(content)
        except OSError as e:
            raise StoreError(f"Could not store {filename} in bucket '{bucket}': {e}")
        return path

    def remove(self, bucket: str, path: str) -> bool:
        """Delete a stored object. Returns False if it was already gone."""
        target = self._bucket_dir(bucket) / Path(path).name
        if not target.exists():
            logger.warning(f"Asset file already missing: {bucket}/{path}")
            return False
        try:
            target.unlink()
        except OSError as e:
            raise StoreError(f"Could not delete {bucket}/{path}: {e}")
        return True

    def public_url(self, bucket: str, path: str) -> str:
        return self.config.public_url(bucket, path)
