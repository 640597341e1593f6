"""
Image preservation check for AI-rewritten HTML.

The cleanup prompts tell the model to keep every <img> tag; this module
verifies it did.
"""

import logging

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


def find_image_sources(html: str) -> list[str]:
    """Image src values in document order (duplicates kept)."""
    soup = BeautifulSoup(html or "", "html.parser")
    return [img["src"] for img in soup.find_all("img") if img.get("src")]


def missing_images(original: str, fixed: str) -> list[str]:
    """
    Image sources present in `original` but absent from `fixed`.

    Returns:
        Missing srcs in their original order, each listed once.
    """
    kept = set(find_image_sources(fixed))
    missing: list[str] = []
    for src in find_image_sources(original):
        if src not in kept and src not in missing:
            missing.append(src)

    if missing:
        logger.warning(f"AI output dropped {len(missing)} image(s): {', '.join(missing)}")
    return missing
