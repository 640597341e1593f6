"""
FastAPI app for Portfolio CMS - Vercel Serverless Function.

Serves the public site pages, the admin JSON API used by the editors, the
asset upload endpoint and the AI cleanup endpoints.
"""

import logging
import uuid
from dataclasses import asdict
from typing import Any, Optional, Union

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from portfolio_cms import __version__
from portfolio_cms.ai_fix import ContentFixer, FixResult
from portfolio_cms.config import CMSConfig
from portfolio_cms.llm_client import LLMClientError, create_llm_client
from portfolio_cms.models import Asset, asset_kind, utc_now_iso
from portfolio_cms.pages import PageRenderer
from portfolio_cms.storage import (
    AssetStorage,
    ContentStore,
    InvalidRecordError,
    RecordNotFoundError,
    StoreError,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Request / Response Models
# ============================================================================

class BlogInput(BaseModel):
    """Blog post fields accepted on create and update."""
    title: Optional[str] = None
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    tags: Optional[Union[str, list[str]]] = Field(None, description="List or comma-separated string")
    published: Optional[bool] = None
    content: Optional[dict[str, Any]] = Field(None, description="Stored content field ({blocks} or {html})")


class WorkInput(BlogInput):
    """Work fields accepted on create and update."""
    year: Optional[Union[int, str]] = None
    category: Optional[str] = None
    thumbnail_asset_id: Optional[str] = None


class PageUpdate(BaseModel):
    """Page update: identify the page by id, or by slug to create it on first save."""
    id: Optional[str] = None
    slug: Optional[str] = None
    title: Optional[str] = None
    content: Optional[dict[str, Any]] = None


class SiteSettingsUpdate(BaseModel):
    owner_name: Optional[str] = None
    tagline: Optional[str] = None
    facebook_url: Optional[str] = None
    instagram_url: Optional[str] = None
    twitter_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    resume_asset_id: Optional[str] = None


class AIFixRequest(BaseModel):
    """AI cleanup request; extra fields from the dialog are accepted and ignored."""
    model_config = ConfigDict(extra="allow")

    html: Optional[str] = None
    title: Optional[str] = None


class AIFixResponse(BaseModel):
    fixedHtml: str
    missingImages: list[str] = Field(default_factory=list)


class UploadResponse(BaseModel):
    id: str
    url: str
    path: str


class DashboardResponse(BaseModel):
    """Record counts for the admin dashboard."""
    works: int
    blogs: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


# ============================================================================
# Dependencies
# ============================================================================

def get_config(request: Request) -> CMSConfig:
    return request.app.state.config


def get_store(request: Request) -> ContentStore:
    return request.app.state.store


def get_asset_storage(request: Request) -> AssetStorage:
    return request.app.state.asset_storage


def get_content_fixer(request: Request) -> ContentFixer:
    """Build the AI fixer on first use; fails with LLMClientError without an API key."""
    fixer = getattr(request.app.state, "content_fixer", None)
    if fixer is None:
        fixer = ContentFixer(create_llm_client(request.app.state.config))
        request.app.state.content_fixer = fixer
    return fixer


def require_admin(
    config: CMSConfig = Depends(get_config),
    authorization: Optional[str] = Header(None),
) -> str:
    """Check the shared admin bearer token. Returns the acting user name."""
    if not config.admin_enabled:
        raise HTTPException(status_code=401, detail="Unauthorized")
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or token != config.admin_token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return "admin"


# ============================================================================
# App
# ============================================================================

def create_app(config: Optional[CMSConfig] = None, store: Optional[ContentStore] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Runtime configuration (defaults to CMSConfig.from_env()).
        store: Content store (defaults to one rooted at config.data_dir).
    """
    config = config or CMSConfig.from_env()

    app = FastAPI(
        title="Portfolio CMS API",
        description="Portfolio and blog content management: public pages, admin API, uploads and AI cleanup",
        version=__version__,
    )
    app.state.config = config
    app.state.store = store or ContentStore.from_config(config)
    app.state.asset_storage = AssetStorage(config)
    app.state.pages = PageRenderer(app.state.store, config)

    # Enable CORS for all origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if config.public_base_url.startswith("/"):
        app.mount(
            config.public_base_url,
            StaticFiles(directory=str(config.upload_dir), check_dir=False),
            name="uploads",
        )

    _register_error_handlers(app)
    _register_record_routes(app, "blogs", BlogInput)
    _register_record_routes(app, "works", WorkInput)
    _register_routes(app)
    _register_public_pages(app)
    return app


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RecordNotFoundError)
    async def not_found_error(request: Request, exc: RecordNotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(InvalidRecordError)
    async def invalid_record_error(request: Request, exc: InvalidRecordError):
        return _error(400, str(exc))

    @app.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError):
        logger.error(f"Store error on {request.url.path}: {exc}")
        return _error(500, str(exc))

    @app.exception_handler(LLMClientError)
    async def llm_error(request: Request, exc: LLMClientError):
        logger.error(f"AI error on {request.url.path}: {exc}")
        return _error(500, str(exc))


def _register_record_routes(app: FastAPI, kind: str, input_model: type[BlogInput]) -> None:
    """Admin CRUD routes for one publishable collection."""
    base = f"/api/admin/{kind}"

    @app.get(base, name=f"list_{kind}")
    def list_records(store: ContentStore = Depends(get_store), user: str = Depends(require_admin)):
        return [asdict(record) for record in store.list_records(kind)]

    @app.post(base, status_code=201, name=f"create_{kind}")
    def create_record(
        payload: input_model,
        store: ContentStore = Depends(get_store),
        user: str = Depends(require_admin),
    ):
        return asdict(store.create_record(kind, payload.model_dump()))

    @app.get(base + "/{record_id}", name=f"get_{kind}")
    def get_record(record_id: str, store: ContentStore = Depends(get_store), user: str = Depends(require_admin)):
        return asdict(store.get_record(kind, record_id))

    @app.put(base + "/{record_id}", name=f"update_{kind}")
    def update_record(
        record_id: str,
        payload: input_model,
        store: ContentStore = Depends(get_store),
        user: str = Depends(require_admin),
    ):
        return asdict(store.update_record(kind, record_id, payload.model_dump(exclude_unset=True)))

    @app.delete(base + "/{record_id}", name=f"delete_{kind}")
    def delete_record(record_id: str, store: ContentStore = Depends(get_store), user: str = Depends(require_admin)):
        store.delete_record(kind, record_id)
        return {"success": True}


def _register_routes(app: FastAPI) -> None:
    @app.get("/api/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(status="healthy", version=__version__)

    @app.get("/api/admin/dashboard", response_model=DashboardResponse)
    def dashboard(store: ContentStore = Depends(get_store), user: str = Depends(require_admin)):
        return DashboardResponse(
            works=len(store.list_records("works")),
            blogs=len(store.list_records("blogs")),
        )

    # ------------------------------------------------------------------
    # Pages and site settings
    # ------------------------------------------------------------------

    @app.get("/api/admin/pages")
    def list_pages(store: ContentStore = Depends(get_store), user: str = Depends(require_admin)):
        return [asdict(page) for page in store.list_pages()]

    @app.put("/api/admin/pages")
    def update_page(
        payload: PageUpdate,
        store: ContentStore = Depends(get_store),
        user: str = Depends(require_admin),
    ):
        if payload.id:
            store.update_page(payload.id, title=payload.title, content=payload.content)
        elif payload.slug:
            page = store.get_page(payload.slug)
            if page is None:
                store.create_page(payload.slug, title=payload.title or "", content=payload.content)
            else:
                store.update_page(page.id, title=payload.title, content=payload.content)
        else:
            raise HTTPException(status_code=400, detail="Page ID is required")
        return {"success": True}

    @app.get("/api/admin/site-settings")
    def get_site_settings(store: ContentStore = Depends(get_store)):
        return asdict(store.get_site_settings())

    @app.put("/api/admin/site-settings")
    def update_site_settings(
        payload: SiteSettingsUpdate,
        store: ContentStore = Depends(get_store),
        user: str = Depends(require_admin),
    ):
        return asdict(store.update_site_settings(payload.model_dump(exclude_unset=True)))

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    @app.post("/api/uploads", response_model=UploadResponse)
    async def upload_asset(
        file: Optional[UploadFile] = File(None),
        bucket: Optional[str] = Form(None),
        config: CMSConfig = Depends(get_config),
        store: ContentStore = Depends(get_store),
        storage: AssetStorage = Depends(get_asset_storage),
        user: str = Depends(require_admin),
    ):
        if file is None or not file.filename:
            raise HTTPException(status_code=400, detail="No file uploaded")

        bucket = bucket or config.default_bucket
        content = await file.read()
        mime_type = file.content_type or "application/octet-stream"
        path = storage.save(bucket, file.filename, content)

        try:
            asset = store.add_asset(Asset(
                id=str(uuid.uuid4()),
                bucket=bucket,
                path=path,
                mime_type=mime_type,
                size=len(content),
                kind=asset_kind(mime_type),
                created_by=user,
                created_at=utc_now_iso(),
            ))
        except StoreError:
            logger.error(f"Could not record upload {bucket}/{path}; removing stored file")
            storage.remove(bucket, path)
            raise
        logger.info(f"Stored upload {file.filename} as {bucket}/{path}")
        return UploadResponse(id=asset.id, url=storage.public_url(bucket, path), path=path)

    @app.delete("/api/uploads")
    def delete_asset(
        id: Optional[str] = None,
        store: ContentStore = Depends(get_store),
        storage: AssetStorage = Depends(get_asset_storage),
        user: str = Depends(require_admin),
    ):
        if not id:
            raise HTTPException(status_code=400, detail="Asset ID is required")
        try:
            asset = store.get_asset(id)
        except RecordNotFoundError:
            raise HTTPException(status_code=404, detail="Asset not found")
        storage.remove(asset.bucket, asset.path)
        store.delete_asset(id)
        return {"success": True}

    # ------------------------------------------------------------------
    # AI cleanup
    # ------------------------------------------------------------------

    def _ai_response(result: FixResult) -> AIFixResponse:
        return AIFixResponse(fixedHtml=result.fixed_html, missingImages=result.missing_images)

    @app.post("/api/ai/fix-blog", response_model=AIFixResponse)
    def fix_blog(payload: AIFixRequest, request: Request, user: str = Depends(require_admin)):
        if not payload.html:
            raise HTTPException(status_code=400, detail="HTML content is required")
        fixer = get_content_fixer(request)
        return _ai_response(fixer.fix_blog(payload.html))

    @app.post("/api/ai/enrich-work", response_model=AIFixResponse)
    def enrich_work(payload: AIFixRequest, request: Request, user: str = Depends(require_admin)):
        if not payload.html:
            raise HTTPException(status_code=400, detail="Content is required")
        fixer = get_content_fixer(request)
        return _ai_response(fixer.enrich_work(payload.html, payload.title))


def _register_public_pages(app: FastAPI) -> None:
    pages: PageRenderer = app.state.pages

    def _not_found() -> HTMLResponse:
        return HTMLResponse(content=pages.not_found(), status_code=404)

    @app.get("/", response_class=HTMLResponse)
    def home():
        return HTMLResponse(content=pages.home())

    @app.get("/blog", response_class=HTMLResponse)
    def blog_index():
        return HTMLResponse(content=pages.blog_index())

    @app.get("/blog/{slug}", response_class=HTMLResponse)
    def blog_detail(slug: str):
        try:
            return HTMLResponse(content=pages.blog_detail(slug))
        except RecordNotFoundError:
            return _not_found()

    @app.get("/works", response_class=HTMLResponse)
    def works_index():
        return HTMLResponse(content=pages.works_index())

    @app.get("/works/{slug}", response_class=HTMLResponse)
    def work_detail(slug: str):
        try:
            return HTMLResponse(content=pages.work_detail(slug))
        except RecordNotFoundError:
            return _not_found()

    @app.get("/introduction", response_class=HTMLResponse)
    def introduction():
        return HTMLResponse(content=pages.introduction())

    @app.get("/resume", response_class=HTMLResponse)
    def resume():
        return HTMLResponse(content=pages.resume())

    @app.get("/contact", response_class=HTMLResponse)
    def contact():
        return HTMLResponse(content=pages.contact())


app = create_app()
