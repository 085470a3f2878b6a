"""Fetch markdown exercise cards and prepare them for rendering."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple
from urllib.parse import urlsplit

import requests
import yaml
from fastapi import HTTPException, status

from app.core.config import settings

logger = logging.getLogger(__name__)

FRONTMATTER_PATTERN = re.compile(r"^---\s*\n([\s\S]*?)\n---\s*\n")
GITHUB_RAW_ROOT = re.compile(r"^(https://raw\.githubusercontent\.com/[^/]+/[^/]+/[^/]+)")
ROOT_RELATIVE_IMAGE = re.compile(r"!\[([^\]]*)\]\(/([^)]+)\)")
DOT_RELATIVE_IMAGE = re.compile(r"!\[([^\]]*)\]\(\./([^)]+)\)")
BARE_RELATIVE_IMAGE = re.compile(r"!\[([^\]]*)\]\((?!https?://)([^/)][^)]*)\)")


@dataclass
class MarkdownCard:
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    content: str = ""
    base_url: str = ""


def parse_frontmatter(markdown: str) -> Tuple[Dict[str, Any], str]:
    """Split a leading YAML block from the body.

    Unparsable YAML (or YAML that is not a mapping) counts as no front matter
    and the markdown is returned untouched.
    """
    match = FRONTMATTER_PATTERN.match(markdown)
    if not match:
        return {}, markdown
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        return {}, markdown
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return {}, markdown
    return data, markdown[match.end():]


def base_url_for(card_url: str) -> str:
    """Origin plus directory of the card, e.g. ``https://host/repo/main/cards``."""
    try:
        parts = urlsplit(card_url)
    except ValueError:
        return ""
    if not parts.scheme or not parts.netloc:
        return ""
    directory = parts.path.rsplit("/", 1)[0] if "/" in parts.path else ""
    return f"{parts.scheme}://{parts.netloc}{directory}"


def resolve_image_paths(content: str, base_url: str) -> str:
    """Rewrite relative markdown image links against the card location."""
    if not base_url:
        return content

    root_match = GITHUB_RAW_ROOT.match(base_url)
    repo_root = root_match.group(1) if root_match else base_url

    content = ROOT_RELATIVE_IMAGE.sub(lambda m: f"![{m.group(1)}]({repo_root}/{m.group(2)})", content)
    content = DOT_RELATIVE_IMAGE.sub(lambda m: f"![{m.group(1)}]({base_url}/{m.group(2)})", content)
    return BARE_RELATIVE_IMAGE.sub(lambda m: f"![{m.group(1)}]({base_url}/{m.group(2)})", content)


def validate_card_url(card_url: str | None) -> str:
    if not card_url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="cardUrl is required")
    try:
        parts = urlsplit(card_url)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid cardUrl format") from exc
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid cardUrl format")
    return card_url


def fetch_card(card_url: str | None) -> MarkdownCard:
    """Download a card; upstream 404 passes through, other failures become 502."""
    url = validate_card_url(card_url)
    try:
        response = requests.get(
            url,
            headers={
                "Accept": "text/plain, text/markdown, */*",
                "User-Agent": settings.card_user_agent,
            },
            timeout=settings.card_fetch_timeout_seconds,
        )
    except requests.RequestException as exc:
        logger.warning("Card fetch failed for %s: %s", url, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to fetch card") from exc

    if not response.ok:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND if response.status_code == 404 else status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to fetch card: {response.status_code} {response.reason}",
        )

    frontmatter, body = parse_frontmatter(response.text)
    base_url = base_url_for(url)
    return MarkdownCard(frontmatter=frontmatter, content=resolve_image_paths(body, base_url), base_url=base_url)
