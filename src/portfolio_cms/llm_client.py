"""
LLM client for AI-assisted content cleanup.

Wraps the Anthropic Claude API behind two operations used by the admin
editor: editorial cleanup of a blog post's HTML and enrichment of a
portfolio work's description.
"""

import logging
import re
from typing import Optional

import anthropic
import httpx

from .config import DEFAULT_AI_MODEL, CMSConfig

logger = logging.getLogger(__name__)


class LLMClientError(Exception):
    """Raised when LLM operations fail."""
    pass


DEFAULT_WORK_TITLE = "Untitled Project"

# System prompt for blog cleanup
FIX_BLOG_SYSTEM_PROMPT = """You are an expert technical blog editor.
Your task is to clean up and format the provided HTML content from a rich-text editor.

Rules:
1. CODE BLOCKS: Identify text that looks like code (e.g., imports, function definitions, console commands) and wrap it in <pre><code class="language-xyz">...</code></pre>.
2. FORMATTING: Fix grammar, spelling, and punctuation. Improve paragraph structure.
3. IMAGES: You MUST preserve all <img> tags exactly as they are. Do not remove or alter `src`, `alt`, or `class` attributes.
4. STRUCTURE: Use proper HTML tags (h1, h2, p, ul, ol).
5. RETURN ONLY HTML: Do not include markdown fences or explanation. Return the raw HTML string."""


def enrich_work_system_prompt(title: Optional[str]) -> str:
    """
    Build the system prompt for enriching a portfolio work description.

    Args:
        title: Work title; empty or None uses "Untitled Project".
    """
    title = title or DEFAULT_WORK_TITLE
    return f"""You are an expert technical portfolio editor and career coach.
Your task is to take a raw, potentially brief or unstructured project description for a project titled "{title}" and transform it into a professional, compelling, and well-structured portfolio entry.

GOAL:
Enrich the content to highlight technical depth, problem-solving skills, and professional value, specifically for "{title}".

RULES:
1. TONE: Professional, confident, and technical. Avoid flowery language.
2. STRUCTURE:
   - Use <h2> tags for section headers (e.g., <h2>Overview</h2>).
   - Use <ul> and <li> for structured points and <strong> for key terms.
   - Sections: <h2>Overview</h2> (a compelling summary of "{title}"), <h2>Key Features</h2> (a bulleted list), <h2>Technical Stack</h2> (a detailed breakdown), <h2>Challenges & Solutions</h2> (optional).
   - Start with a short text introduction before the first heading.
3. ENHANCEMENT: Expand vague terms, infer standard technical practices where appropriate, and fix grammar, spelling and punctuation.
4. IMAGES: If the input HTML contains <img> tags, you MUST keep every one of them in the output, where they originally appeared or where they fit best.
5. LANGUAGE: Keep the output in the SAME language as the input.
6. FORMAT: Return ONLY valid HTML. Do not include markdown code fences."""


# Matches a leading ```html fence or a trailing ``` fence
_FENCE_PATTERN = re.compile(r"^```html\s*|\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model may wrap its HTML in."""
    return _FENCE_PATTERN.sub("", text)


class LLMClient:
    """
    Client for LLM-based content cleanup.

    Supports Anthropic Claude API.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_AI_MODEL,
        max_tokens: int = 8192,
        timeout: float = 60.0,
        connect_timeout: float = 30.0,
    ):
        """
        Initialize the LLM client.

        Args:
            api_key: Anthropic API key.
            model: Model identifier to use.
            max_tokens: Maximum tokens in a response.
            timeout: Read timeout in seconds.
            connect_timeout: Connect timeout in seconds.
        """
        if not api_key:
            raise LLMClientError(
                "No API key provided. Set the ANTHROPIC_API_KEY environment variable."
            )

        self.model = model
        self.max_tokens = max_tokens

        http_client = httpx.Client(
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
            follow_redirects=True,
        )
        self.client = anthropic.Anthropic(
            api_key=api_key,
            http_client=http_client,
        )

    def _complete(self, system: str, content: str) -> str:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system,
            messages=[{"role": "user", "content": content}],
        )
        if not response.content:
            return ""
        return response.content[0].text or ""

    def fix_html(self, html: str) -> str:
        """
        Clean up a blog post's HTML.

        Args:
            html: HTML produced by the rich-text editor.

        Returns:
            Cleaned HTML with any markdown fences removed.
        """
        try:
            fixed = self._complete(FIX_BLOG_SYSTEM_PROMPT, html)
        except Exception as e:
            logger.error(f"AI fix failed: {e}")
            raise LLMClientError(f"AI fix failed: {e}")
        return strip_code_fences(fixed)

    def enrich_work(self, html: str, title: Optional[str] = None) -> str:
        """
        Turn a rough project description into a structured portfolio entry.

        Args:
            html: Current description HTML.
            title: Work title used to steer the rewrite.

        Returns:
            Enriched HTML with any markdown fences removed.
        """
        try:
            enriched = self._complete(enrich_work_system_prompt(title), html)
        except Exception as e:
            logger.error(f"AI enrich failed: {e}")
            raise LLMClientError(f"AI enrich failed: {e}")
        return strip_code_fences(enriched)


def create_llm_client(config: CMSConfig) -> LLMClient:
    """
    Factory function to create an LLM client from configuration.

    Raises:
        LLMClientError: If no API key is configured.
    """
    return LLMClient(
        api_key=config.anthropic_api_key,
        model=config.ai_model,
        max_tokens=config.ai_max_tokens,
        timeout=config.ai_timeout,
        connect_timeout=config.ai_connect_timeout,
    )
