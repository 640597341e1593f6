# -*- coding: utf-8 -*-
"""
Centralized configuration for Portfolio CMS.

A single CMSConfig is built once at process start (usually via
CMSConfig.from_env()) and handed to the LLM client, the stores and the API
app. Nothing else in the package reads the environment.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional


DEFAULT_AI_MODEL = "claude-sonnet-4-20250514"
DEFAULT_BUCKET = "public-assets"


class ConfigError(Exception):
    """Raised when configuration values are invalid."""
    pass


@dataclass
class CMSConfig:
    """
    Runtime configuration for the CMS.

    Attributes:
        data_dir: Directory holding the JSON content store.
        upload_dir: Directory acting as object storage for uploaded assets.
            One sub-directory per bucket.
        public_base_url: URL prefix under which uploaded assets are served.
        default_bucket: Bucket used when an upload does not name one.
        admin_token: Shared bearer token guarding the admin API. None
            disables the admin API entirely.
        anthropic_api_key: API key for the AI cleanup endpoints. None
            disables them (they answer 500 with an error message).
        ai_model: Model identifier for the AI cleanup endpoints.
        ai_max_tokens: Maximum tokens the model may return.
        ai_timeout: Read timeout (seconds) for AI calls.
        ai_connect_timeout: Connect timeout (seconds) for AI calls.
        site_name: Fallback site title used by the page templates.
    """

    data_dir: Path = field(default_factory=lambda: Path("data"))
    upload_dir: Path = field(default_factory=lambda: Path("data") / "uploads")
    public_base_url: str = "/uploads"
    default_bucket: str = DEFAULT_BUCKET

    admin_token: Optional[str] = None

    anthropic_api_key: Optional[str] = None
    ai_model: str = DEFAULT_AI_MODEL
    ai_max_tokens: int = 8192
    ai_timeout: float = 60.0
    ai_connect_timeout: float = 30.0

    site_name: str = "Portfolio"

    def __post_init__(self):
        """Normalize paths and validate values."""
        self.data_dir = Path(self.data_dir)
        self.upload_dir = Path(self.upload_dir)
        self.public_base_url = self.public_base_url.rstrip("/")

        if not self.default_bucket or "/" in self.default_bucket:
            raise ConfigError(
                f"default_bucket must be a non-empty name without '/', "
                f"got '{self.default_bucket}'"
            )
        if self.ai_max_tokens < 1:
            raise ConfigError(f"ai_max_tokens must be >= 1, got {self.ai_max_tokens}")
        if self.ai_timeout <= 0 or self.ai_connect_timeout <= 0:
            raise ConfigError(
                f"AI timeouts must be positive, got {self.ai_timeout}/{self.ai_connect_timeout}"
            )

    @property
    def ai_enabled(self) -> bool:
        """Check if the AI cleanup endpoints can reach the model."""
        return bool(self.anthropic_api_key)

    @property
    def admin_enabled(self) -> bool:
        """Check if the admin API accepts requests."""
        return bool(self.admin_token)

    def bucket_dir(self, bucket: str) -> Path:
        """Directory backing an upload bucket."""
        return self.upload_dir / bucket

    def public_url(self, bucket: str, path: str) -> str:
        """Public URL for an uploaded object."""
        return f"{self.public_base_url}/{bucket}/{path}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "CMSConfig":
        """Create config from environment variables.

        Recognized variables: CMS_DATA_DIR, CMS_UPLOAD_DIR,
        CMS_PUBLIC_BASE_URL, CMS_DEFAULT_BUCKET, CMS_ADMIN_TOKEN,
        ANTHROPIC_API_KEY, CMS_AI_MODEL, CMS_SITE_NAME.

        Args:
            environ: Mapping to read from (defaults to os.environ).
            **overrides: Explicit values that win over the environment.

        Returns:
            CMSConfig built from the environment.
        """
        env = os.environ if environ is None else environ

        data_dir = Path(env.get("CMS_DATA_DIR", "data"))
        values = {
            "data_dir": data_dir,
            "upload_dir": Path(env.get("CMS_UPLOAD_DIR", str(data_dir / "uploads"))),
            "public_base_url": env.get("CMS_PUBLIC_BASE_URL", "/uploads"),
            "default_bucket": env.get("CMS_DEFAULT_BUCKET", DEFAULT_BUCKET),
            "admin_token": env.get("CMS_ADMIN_TOKEN") or None,
            "anthropic_api_key": env.get("ANTHROPIC_API_KEY") or None,
            "ai_model": env.get("CMS_AI_MODEL", DEFAULT_AI_MODEL),
            "site_name": env.get("CMS_SITE_NAME", "Portfolio"),
        }
        values.update(overrides)
        return cls(**values)
