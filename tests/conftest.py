"""
Pytest fixtures and configuration for Portfolio CMS tests.
"""

import json
from pathlib import Path

import pytest

from portfolio_cms.config import CMSConfig
from portfolio_cms.models import Block
from portfolio_cms.storage import ContentStore


@pytest.fixture
def config(tmp_path: Path) -> CMSConfig:
    """Config rooted in a temporary directory with the admin API enabled."""
    return CMSConfig(
        data_dir=tmp_path / "data",
        upload_dir=tmp_path / "uploads",
        admin_token="secret-token",
    )


@pytest.fixture
def store(config: CMSConfig) -> ContentStore:
    """Empty content store."""
    return ContentStore.from_config(config)


@pytest.fixture
def sample_blocks() -> list[Block]:
    """A short block document covering each common type."""
    return [
        Block(id="b1", type="h1", text="Project Notes"),
        Block(id="b2", type="p", text="First paragraph."),
        Block(id="b3", type="ul", children=[
            Block(id="b3a", type="li", text="One"),
            Block(id="b3b", type="li", text="Two"),
        ]),
        Block(id="b4", type="image", src="/uploads/public-assets/cat.png", alt="Cat", caption="A cat"),
        Block(id="b5", type="code", text="print('hi')"),
        Block(id="b6", type="divider"),
    ]


@pytest.fixture
def snippet_html() -> str:
    """Stored rich-HTML with a single encoded snippet marker."""
    return '<p>Intro</p><html-snippet html="&lt;div class=&quot;w&quot;&gt;Hi&lt;/div&gt;"></html-snippet>'


@pytest.fixture
def content_json(tmp_path: Path):
    """Write a JSON document to a temp file and return its path."""
    def _write(data, name: str = "content.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write
